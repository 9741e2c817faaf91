"""Tests for socket provisioning and the discovery broadcast."""

import socket
import struct

import pytest
from unittest.mock import MagicMock, call, patch

from castscan.transport import broadcast, provision
from castscan.protocol import build_query
from castscan.exceptions import (
    BroadcastError,
    BroadcastFailed,
    ClientBindFailed,
    ClientConnectFailed,
    ListenerBindFailed,
    MulticastJoinFailed,
    ProvisionError,
    ScanError,
    TimeoutConfigFailed,
)

MEMBERSHIP = struct.pack("4s4s", socket.inet_aton("224.0.0.251"), socket.inet_aton("0.0.0.0"))


@pytest.fixture
def sockets():
    """Patch socket creation, yielding (listener, client) mocks."""
    listener = MagicMock(name="listener")
    client = MagicMock(name="client")
    with patch('castscan.transport.socket.socket', side_effect=[listener, client]) as mock_socket:
        yield mock_socket, listener, client


class TestProvision:
    """Test provision function."""

    def test_success(self, sockets):
        """Test both sockets are configured and returned."""
        mock_socket, listener, client = sockets

        result = provision(0.35)

        assert result == (listener, client)
        assert mock_socket.call_count == 2
        listener.bind.assert_called_once_with(("0.0.0.0", 5353))
        listener.setsockopt.assert_called_once_with(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, MEMBERSHIP)
        listener.settimeout.assert_called_once_with(0.35)
        client.bind.assert_called_once_with(("0.0.0.0", 0))
        client.connect.assert_called_once_with(("224.0.0.251", 5353))
        listener.close.assert_not_called()
        client.close.assert_not_called()

    def test_reuse_address(self, sockets):
        """Test SO_REUSEADDR is set before binding when requested."""
        _, listener, _ = sockets

        provision(1.0, reuse_address=True)

        assert listener.setsockopt.call_args_list[0] == call(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    def test_listener_bind_failure(self, sockets):
        """Test bind failure on the mDNS port."""
        mock_socket, listener, _ = sockets
        listener.bind.side_effect = OSError(98, "Address already in use")

        with pytest.raises(ListenerBindFailed) as exc_info:
            provision(0.35)

        assert "0.0.0.0:5353" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, OSError)
        listener.close.assert_called_once()
        assert mock_socket.call_count == 1

    def test_multicast_join_failure(self, sockets):
        _, listener, _ = sockets
        listener.setsockopt.side_effect = OSError(19, "No such device")

        with pytest.raises(MulticastJoinFailed):
            provision(0.35)

        listener.close.assert_called_once()

    def test_timeout_failure(self, sockets):
        """Test a rejected timeout is reported as a configuration failure."""
        _, listener, _ = sockets
        listener.settimeout.side_effect = ValueError("Timeout value out of range")

        with pytest.raises(TimeoutConfigFailed):
            provision(0.35)

        listener.close.assert_called_once()

    @pytest.mark.parametrize("timeout", [0, 0.0, -1, None])
    def test_timeout_must_be_positive(self, timeout):
        """Test zero, negative and missing timeouts are refused before any socket is opened."""
        with patch('castscan.transport.socket.socket', wraps=socket.socket) as mock_socket:
            with pytest.raises(TimeoutConfigFailed) as exc_info:
                provision(timeout)

        assert repr(timeout) in str(exc_info.value)
        mock_socket.assert_not_called()

    def test_client_bind_failure(self, sockets):
        """Test client failure also releases the listener."""
        _, listener, client = sockets
        client.bind.side_effect = OSError(13, "Permission denied")

        with pytest.raises(ClientBindFailed):
            provision(0.35)

        client.close.assert_called_once()
        listener.close.assert_called_once()

    def test_client_connect_failure(self, sockets):
        _, listener, client = sockets
        client.connect.side_effect = OSError(101, "Network is unreachable")

        with pytest.raises(ClientConnectFailed):
            provision(0.35)

        client.close.assert_called_once()
        listener.close.assert_called_once()

    def test_failures_are_fatal_scan_errors(self, sockets):
        _, listener, _ = sockets
        listener.bind.side_effect = OSError("boom")

        with pytest.raises(ProvisionError) as exc_info:
            provision(0.35)

        assert isinstance(exc_info.value, ScanError)


class TestBroadcast:
    """Test broadcast function."""

    def test_sends_query_once(self):
        """Test the query is sent once and the client is closed."""
        client = MagicMock()
        client.send.side_effect = lambda data: len(data)

        broadcast(client)

        client.send.assert_called_once_with(build_query())
        client.close.assert_called_once()

    def test_send_failure(self):
        client = MagicMock()
        client.send.side_effect = OSError(101, "Network is unreachable")

        with pytest.raises(BroadcastFailed) as exc_info:
            broadcast(client)

        assert isinstance(exc_info.value, BroadcastError)
        assert isinstance(exc_info.value.__cause__, OSError)
        client.send.assert_called_once()
        client.close.assert_called_once()

    def test_partial_send(self):
        """Test a truncated send counts as a failure."""
        client = MagicMock()
        client.send.return_value = 3

        with pytest.raises(BroadcastFailed):
            broadcast(client)

        client.close.assert_called_once()
