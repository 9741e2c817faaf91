"""Cast device identity and its extraction from DNS responses."""

import ipaddress
import re
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .protocol import SERVICE_NAME, RecordKind, Response
from .exceptions import (
    DeviceNameFormat,
    InvalidIdentity,
    MalformedText,
    MissingAddress,
    MissingIdentity,
    MissingPort,
    MissingText,
    NotRelevant,
)

_HEX_ID = re.compile(r"[0-9a-fA-F]{32}")


class ExtractionMode(Enum):
    """Where a response carries the device identity and name."""
    TEXT = "text"    # id from the address record, name/model from TXT
    LABEL = "label"  # id and model from the Model-Name-<id> instance label


@dataclass(frozen=True)
class Device:
    """A cast device found on the network."""
    id: uuid.UUID
    name: str
    model: str
    address: ipaddress.IPv4Address
    port: int

    @property
    def socket_address(self) -> Tuple[str, int]:
        """Address tuple for opening a control connection."""
        return (str(self.address), self.port)

    def __str__(self) -> str:
        return f"{self.name} ({self.model}) at {self.address}:{self.port}"


def is_cast_response(response: Response) -> bool:
    """Figure out if a response comes from a cast device.

    Only the first answer is looked at; it has to name the cast service.
    """
    if not response.answers:
        return False
    return response.answers[0].name == SERVICE_NAME


def parse_identity(text: str) -> uuid.UUID:
    """Parse a 32 digit hex string into a device id.

    Raises:
        InvalidIdentity: If the text is not exactly 32 hex digits
    """
    if not _HEX_ID.fullmatch(text):
        raise InvalidIdentity(f"Invalid device id: {text!r}")
    return uuid.UUID(hex=text)


def parse_label(label: str) -> Tuple[str, uuid.UUID]:
    """Split an instance label such as ``Chromecast-Ultra-<id>._googlecast._tcp.local``.

    Args:
        label: Service instance name or its first label

    Returns:
        Tuple of (model, id); the model is every segment but the last,
        joined with spaces.

    Raises:
        DeviceNameFormat: If the label has fewer than two segments
        InvalidIdentity: If the last segment is not a valid id
    """
    segments = label.split(".", 1)[0].split("-")
    if len(segments) < 2:
        raise DeviceNameFormat(f"Instance label doesn't match Model-Name-<id>: {label!r}")

    device_id = parse_identity(segments.pop())
    return " ".join(segments), device_id


def parse_text_fields(text: str) -> Tuple[str, str]:
    """Extract the friendly name and model from a flat TXT run.

    Fields are concatenated without delimiters, so each value runs from
    its key up to the key that follows it on real devices:
    ``fn=`` up to ``ca=`` and ``md=`` up to ``ic=``.

    Returns:
        Tuple of (name, model)

    Raises:
        MalformedText: If any of the markers is missing
    """
    return _between(text, "fn=", "ca="), _between(text, "md=", "ic=")


def _between(text: str, start: str, end: str) -> str:
    """Return the text after `start` up to the next `end`.

    Raises:
        MalformedText: If either marker is missing
    """
    begin = text.find(start)
    if begin == -1:
        raise MalformedText(f"Text record has no {start!r} field")
    begin += len(start)

    stop = text.find(end, begin)
    if stop == -1:
        raise MalformedText(f"Text record has no {end!r} field after {start!r}")
    return text[begin:stop]


def extract(response: Response, mode: ExtractionMode = ExtractionMode.TEXT) -> Device:
    """Turn a DNS response into a Device.

    The checks run in order and stop at the first failure. When several
    records of one kind are present the first one is used.

    Args:
        response: Parsed DNS response
        mode: Where to read the device identity and name from

    Returns:
        Fully populated Device

    Raises:
        ExtractError: Subclass naming the first check that failed
    """
    if not is_cast_response(response):
        raise NotRelevant("Response does not answer the cast service query")

    if mode == ExtractionMode.LABEL:
        model, device_id = parse_label(response.answers[0].data)
        name = model
    else:
        device_id = _identity_from_address_record(response)

    address = _address(response)
    port = _port(response)

    if mode == ExtractionMode.TEXT:
        text = response.first(RecordKind.TXT)
        if text is None:
            raise MissingText("Response has no text record")
        name, model = parse_text_fields(text.payload)

    return Device(id=device_id, name=name, model=model, address=address, port=port)


def _identity_from_address_record(response: Response) -> uuid.UUID:
    """Parse the device id from the first address record's owner name.

    Raises:
        MissingIdentity: If there is no address record
        InvalidIdentity: If the owner name does not start with a valid id
    """
    record = response.first(RecordKind.A)
    if record is None:
        raise MissingIdentity("Response has no address record to identify the device")
    return parse_identity(record.name.split(".", 1)[0])


def _address(response: Response) -> ipaddress.IPv4Address:
    """IPv4 address from the first address record."""
    record = response.first(RecordKind.A)
    if record is None:
        raise MissingAddress("Response has no address record")
    return record.payload


def _port(response: Response) -> int:
    """Control port from the first service record."""
    record = response.first(RecordKind.SRV)
    if record is None:
        raise MissingPort("Response has no service record")
    return record.payload.port
