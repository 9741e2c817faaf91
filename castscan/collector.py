"""Response collector: receives mDNS datagrams on a worker thread."""

import logging
import queue
import socket
import threading
from time import monotonic
from enum import Enum
from typing import Optional

from .device import ExtractionMode, extract
from .protocol import parse_response
from .exceptions import ExtractError

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 1500

# Posted on the channel once the collector stops
END_OF_SCAN = object()


class CollectorState(Enum):
    """Lifecycle of a ResponseCollector."""
    LISTENING = "listening"
    STOPPED = "stopped"


class ResponseCollector:
    """Reads responses off the listener socket and hands devices to a queue.

    The collector owns the listener socket and closes it when it stops.
    It stops when a receive times out or the scan deadline passes;
    datagrams that are not cast responses are skipped.
    """

    def __init__(
        self,
        listener: socket.socket,
        channel: queue.Queue,
        timeout: float,
        mode: ExtractionMode = ExtractionMode.TEXT,
        buffer_size: int = DEFAULT_BUFFER_SIZE
    ):
        """Initialize the collector.

        Args:
            listener: Bound listener socket, already joined to the group
            channel: Queue devices are handed off through
            timeout: Receive timeout and overall listening window in seconds
            mode: Extraction mode applied to each response
            buffer_size: Largest datagram accepted (default: 1500)
        """
        self.listener = listener
        self.channel = channel
        self.timeout = timeout
        self.mode = mode
        self.buffer_size = buffer_size

        self._state = CollectorState.LISTENING
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._received = 0
        self._discarded = 0
        self._delivered = 0

    @property
    def state(self) -> CollectorState:
        """Current lifecycle state."""
        with self._lock:
            return self._state

    @property
    def received(self) -> int:
        """Datagrams read off the socket."""
        with self._lock:
            return self._received

    @property
    def discarded(self) -> int:
        """Datagrams skipped as malformed or unrelated."""
        with self._lock:
            return self._discarded

    @property
    def delivered(self) -> int:
        """Devices handed off through the channel."""
        with self._lock:
            return self._delivered

    def start(self) -> threading.Thread:
        """Run the collector on a daemon thread."""
        self._thread = threading.Thread(target=self.run, name="castscan-collector", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None):
        """Wait for the collector thread to finish.

        Args:
            timeout: Longest wait in seconds, None to wait until it ends
        """
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self):
        """Receive loop; returns once the collector is stopped."""
        deadline = monotonic() + self.timeout
        try:
            while self._listen_once(deadline):
                pass
        finally:
            with self._lock:
                self._state = CollectorState.STOPPED
            self.listener.close()
            self._close_channel()
            logger.debug(f"Collector stopped: {self._received} received, "
                         f"{self._discarded} discarded, {self._delivered} delivered")

    def _listen_once(self, deadline: float) -> bool:
        """Receive and handle one datagram.

        Args:
            deadline: Monotonic time at which listening ends

        Returns:
            bool: True to keep listening, False once the collector should stop
        """
        remaining = deadline - monotonic()
        if remaining <= 0:
            return False

        try:
            self.listener.settimeout(min(self.timeout, remaining))
            data = self.listener.recv(self.buffer_size)
        except socket.timeout:
            return False
        except OSError as e:
            logger.warning(f"Stopped listening after socket error: {e}")
            return False

        with self._lock:
            self._received += 1

        try:
            device = extract(parse_response(data), self.mode)
        except ExtractError as e:
            logger.debug(f"Skipping response: {type(e).__name__}: {e}")
            with self._lock:
                self._discarded += 1
            return True

        try:
            self.channel.put(device, timeout=self.timeout)
        except queue.Full:
            logger.warning(f"Handoff channel stayed full for {self.timeout}s, dropping {device}")
            return False

        with self._lock:
            self._delivered += 1
        return True

    def _close_channel(self):
        """Post END_OF_SCAN so the consumer stops draining."""
        try:
            self.channel.put(END_OF_SCAN, timeout=self.timeout)
        except queue.Full:
            # Consumer has given up; its own wait bound ends the scan
            pass
