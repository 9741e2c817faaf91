"""Shared fixtures for castscan tests."""

import pytest
from dnslib import PTR, QTYPE, RR, SRV, TXT, A, DNSHeader, DNSRecord

DEVICE_HEX = "bc7866b8d9b0a99263a2020cd11355f8"


def _build_reply(
    device_hex=DEVICE_HEX,
    ip="192.168.1.50",
    port=8009,
    name="Salon",
    model="Chromecast Ultra",
    service="_googlecast._tcp.local",
    txt=None,
    extra=(),
):
    instance = f"{model.replace(' ', '-')}-{device_hex}.{service}"
    reply = DNSRecord(DNSHeader(id=0, qr=1, aa=1))
    reply.add_answer(RR(service, QTYPE.PTR, ttl=120, rdata=PTR(instance)))
    reply.add_ar(RR(f"{device_hex}.local", QTYPE.A, ttl=120, rdata=A(ip)))
    reply.add_ar(RR(instance, QTYPE.SRV, ttl=120, rdata=SRV(port=port, target=f"{device_hex}.local")))
    reply.add_ar(RR(instance, QTYPE.TXT, ttl=4500, rdata=TXT(txt or [
        f"id={device_hex}",
        f"md={model}",
        "ic=/setup/icon.png",
        f"fn={name}",
        "ca=4101",
        "st=0",
    ])))
    for rr in extra:
        reply.add_ar(rr)
    return reply.pack()


@pytest.fixture
def cast_reply():
    """Factory for packed mDNS replies shaped like a Chromecast's."""
    return _build_reply
