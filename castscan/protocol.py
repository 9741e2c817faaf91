"""Protocol definitions for cast discovery over multicast DNS."""

import ipaddress
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Union

from dnslib import CLASS, QTYPE, DNSHeader, DNSQuestion, DNSRecord
from dnslib.dns import DNSError

from .exceptions import MalformedResponse

SERVICE_NAME = "_googlecast._tcp.local"
INTERFACE = "0.0.0.0"
MULTICAST_ADDR = "224.0.0.251"
MULTICAST_PORT = 5353


class RecordKind(IntEnum):
    """DNS record types used in cast discovery."""
    A = 1      # IPv4 address
    PTR = 12   # Service instance pointer
    TXT = 16   # Key/value metadata
    SRV = 33   # Service location


@dataclass(frozen=True)
class ServiceLocation:
    """Payload of a service-location (SRV) record."""
    target: str
    port: int
    priority: int = 0
    weight: int = 0


@dataclass(frozen=True)
class Answer:
    """Answer section entry, reduced to its owner name and data."""
    name: str
    data: str


@dataclass(frozen=True)
class Record:
    """Additional section entry of a kind the extractor consumes."""
    name: str
    kind: RecordKind
    payload: Union[ipaddress.IPv4Address, ServiceLocation, str]


@dataclass
class Response:
    """Structured DNS response handed to the record extractor."""
    answers: List[Answer] = field(default_factory=list)
    additional: List[Record] = field(default_factory=list)

    def first(self, kind: RecordKind) -> Optional[Record]:
        """Return the first additional record of the given kind, if any."""
        for record in self.additional:
            if record.kind == kind:
                return record
        return None


def build_query() -> bytes:
    """Build the DNS-SD query asking for cast service instances.

    mDNS queries use message id 0 and do not request recursion.
    """
    query = DNSRecord(
        DNSHeader(id=0, rd=0),
        q=DNSQuestion(SERVICE_NAME, QTYPE.PTR, CLASS.IN),
    )
    return query.pack()


def parse_response(data: bytes) -> Response:
    """Parse a received datagram into a Response.

    Additional records whose type is not one of RecordKind are dropped.

    Raises:
        MalformedResponse: If the datagram is not a valid DNS message
    """
    try:
        message = DNSRecord.parse(data)
        answers = [Answer(_name(rr.rname), _name(rr.rdata)) for rr in message.rr]
        additional = []
        for rr in message.ar:
            record = _convert_record(rr)
            if record is not None:
                additional.append(record)
    except (DNSError, ValueError) as e:
        raise MalformedResponse(f"Invalid DNS message: {e}") from e

    return Response(answers=answers, additional=additional)


def _convert_record(rr) -> Optional[Record]:
    """Convert a dnslib resource record into a Record.

    Args:
        rr: Resource record from the additional section

    Returns:
        Record with a kind-specific payload, or None for other record types
    """
    try:
        kind = RecordKind(rr.rtype)
    except ValueError:
        return None

    if kind == RecordKind.A:
        payload = ipaddress.IPv4Address(str(rr.rdata))
    elif kind == RecordKind.SRV:
        payload = ServiceLocation(
            target=_name(rr.rdata.target),
            port=rr.rdata.port,
            priority=rr.rdata.priority,
            weight=rr.rdata.weight,
        )
    elif kind == RecordKind.TXT:
        # TXT strings are concatenated without separators
        payload = b"".join(rr.rdata.data).decode("utf-8", errors="replace")
    else:
        payload = _name(rr.rdata)

    return Record(name=_name(rr.rname), kind=kind, payload=payload)


def _name(value) -> str:
    """Render a DNS name without the trailing root dot."""
    return str(value).rstrip(".")
