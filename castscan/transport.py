"""UDP sockets used by a scan: provisioning and the outbound query."""

import logging
import socket
import struct
from typing import Tuple

from .protocol import INTERFACE, MULTICAST_ADDR, MULTICAST_PORT, build_query
from .exceptions import (
    BroadcastFailed,
    ClientBindFailed,
    ClientConnectFailed,
    ListenerBindFailed,
    MulticastJoinFailed,
    TimeoutConfigFailed,
)

logger = logging.getLogger(__name__)


def provision(timeout: float, reuse_address: bool = False) -> Tuple[socket.socket, socket.socket]:
    """Open the listener and client sockets for a scan.

    Args:
        timeout: Receive timeout for the listener in seconds
        reuse_address: Set SO_REUSEADDR on the listener so it can share
            the mDNS port with a system responder (default: False)

    Returns:
        Tuple of (listener, client), both ready to use

    Raises:
        ProvisionError: Subclass naming the step that failed
    """
    listener = _listener_socket(timeout, reuse_address)
    try:
        client = _client_socket()
    except Exception:
        listener.close()
        raise

    logger.debug(f"Sockets ready: listening on {INTERFACE}:{MULTICAST_PORT}, client bound to {client.getsockname()}")
    return listener, client


def _listener_socket(timeout: float, reuse_address: bool) -> socket.socket:
    """Open the listener bound to the mDNS port and joined to the group.

    Args:
        timeout: Receive timeout in seconds, must be positive
        reuse_address: Set SO_REUSEADDR before binding

    Returns:
        Configured listener socket

    Raises:
        TimeoutConfigFailed: If the timeout is missing or not positive
        ListenerBindFailed: If the mDNS port cannot be bound
        MulticastJoinFailed: If the group cannot be joined
    """
    # 0 would make the socket non-blocking and None would block forever
    if timeout is None or timeout <= 0:
        raise TimeoutConfigFailed(f"Listener timeout must be positive, got {timeout!r}")

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    try:
        try:
            if reuse_address:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((INTERFACE, MULTICAST_PORT))
        except OSError as e:
            raise ListenerBindFailed(f"Could not bind listener to {INTERFACE}:{MULTICAST_PORT}: {e}") from e

        try:
            membership = struct.pack("4s4s", socket.inet_aton(MULTICAST_ADDR), socket.inet_aton(INTERFACE))
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, membership)
        except OSError as e:
            raise MulticastJoinFailed(f"Could not join multicast group {MULTICAST_ADDR}: {e}") from e

        try:
            sock.settimeout(timeout)
        except (OSError, ValueError) as e:
            raise TimeoutConfigFailed(f"Could not set timeout {timeout!r} on listener: {e}") from e
    except Exception:
        sock.close()
        raise
    return sock


def _client_socket() -> socket.socket:
    """Open the client socket with the multicast group as its destination.

    Raises:
        ClientBindFailed: If no local port can be bound
        ClientConnectFailed: If the group address cannot be set
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    try:
        try:
            sock.bind((INTERFACE, 0))
        except OSError as e:
            raise ClientBindFailed(f"Could not bind client to {INTERFACE} on a free port: {e}") from e

        try:
            # Fixes the default destination; UDP stays connectionless
            sock.connect((MULTICAST_ADDR, MULTICAST_PORT))
        except OSError as e:
            raise ClientConnectFailed(f"Could not connect client to {MULTICAST_ADDR}:{MULTICAST_PORT}: {e}") from e
    except Exception:
        sock.close()
        raise
    return sock


def broadcast(client: socket.socket):
    """Send the discovery query once and close the client socket.

    Raises:
        BroadcastFailed: If the query cannot be sent
    """
    packet = build_query()
    try:
        sent = client.send(packet)
        if sent != len(packet):
            raise BroadcastFailed(f"Sent {sent} of {len(packet)} query bytes")
        logger.debug(f"Sent discovery query to {MULTICAST_ADDR}:{MULTICAST_PORT} ({len(packet)} bytes)")
    except OSError as e:
        raise BroadcastFailed(f"Could not send discovery query: {e}") from e
    finally:
        client.close()
