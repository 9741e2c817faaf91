"""Custom exceptions for castscan."""


class CastScanException(Exception):
    """Base exception for castscan."""
    pass


class ScanError(CastScanException):
    """Exception raised when a scan cannot be carried out."""
    pass


class ProvisionError(ScanError):
    """Exception raised when the scan sockets cannot be set up."""
    pass


class ListenerBindFailed(ProvisionError):
    """Listener socket could not bind to the mDNS port."""
    pass


class MulticastJoinFailed(ProvisionError):
    """Listener socket could not join the mDNS multicast group."""
    pass


class TimeoutConfigFailed(ProvisionError):
    """Receive timeout could not be applied to the listener socket."""
    pass


class ClientBindFailed(ProvisionError):
    """Client socket could not bind to a free local port."""
    pass


class ClientConnectFailed(ProvisionError):
    """Client socket could not be connected to the multicast group."""
    pass


class BroadcastError(ScanError):
    """Exception raised when the discovery query cannot be sent."""
    pass


class BroadcastFailed(BroadcastError):
    """Discovery query could not be sent on the client socket."""
    pass


class ExtractError(CastScanException):
    """Exception raised when a response does not describe a cast device.

    These are per-packet failures. A scan skips the packet and keeps
    listening.
    """
    pass


class MalformedResponse(ExtractError):
    """Datagram is not a valid DNS message."""
    pass


class NotRelevant(ExtractError):
    """Response does not answer the cast service query."""
    pass


class MissingIdentity(ExtractError):
    """Response carries no address record to take the device id from."""
    pass


class InvalidIdentity(ExtractError):
    """Device id is not a 32 digit hex string."""
    pass


class DeviceNameFormat(ExtractError):
    """Instance label is not of the form Model-Name-<id>."""
    pass


class MissingAddress(ExtractError):
    """Response carries no IPv4 address record."""
    pass


class MissingPort(ExtractError):
    """Response carries no service record."""
    pass


class MissingText(ExtractError):
    """Response carries no text record."""
    pass


class MalformedText(ExtractError):
    """Text record lacks the name or model fields."""
    pass
