"""castscan - Discover cast devices on the local network."""

from .scanner import CastScanner, scan, scan_for
from .device import Device, ExtractionMode, extract, is_cast_response
from .exceptions import (
    CastScanException,
    ScanError,
    ProvisionError,
    BroadcastError,
    ExtractError,
)

__version__ = "0.1.0"
__all__ = [
    "CastScanner",
    "scan",
    "scan_for",
    "Device",
    "ExtractionMode",
    "extract",
    "is_cast_response",
    "CastScanException",
    "ScanError",
    "ProvisionError",
    "BroadcastError",
    "ExtractError",
]
