"""Cast device scanner: one mDNS query, a bounded listening window."""

import logging
import queue
from typing import List

from .collector import DEFAULT_BUFFER_SIZE, END_OF_SCAN, ResponseCollector
from .device import Device, ExtractionMode
from .transport import broadcast, provision
from .exceptions import TimeoutConfigFailed

logger = logging.getLogger(__name__)

DEFAULT_SCAN_DURATION = 0.35


class CastScanner:
    """Scanner for cast devices on the local network.

    A scan proceeds in four steps:
    - open the listener and client sockets
    - send a single DNS-SD query for the cast service
    - collect responses on a worker thread until the receive timeout fires
    - return the devices in the order their responses arrived

    Socket and send failures abort the scan. Responses that are malformed
    or come from other services are skipped.
    """

    def __init__(
        self,
        duration: float = DEFAULT_SCAN_DURATION,
        mode: ExtractionMode = ExtractionMode.TEXT,
        channel_capacity: int = 0,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        reuse_address: bool = False
    ):
        """Initialize the scanner.

        Args:
            duration: Listening window in seconds (default: 0.35)
            mode: Where responses carry the device identity (default: TEXT)
            channel_capacity: Maximum devices buffered between the collector
                and the caller, 0 for unbounded (default: 0)
            buffer_size: Largest datagram accepted in bytes (default: 1500)
            reuse_address: Share the mDNS port with a running responder (default: False)

        Raises:
            TimeoutConfigFailed: If duration is not positive
        """
        if duration is None or duration <= 0:
            raise TimeoutConfigFailed(f"Scan duration must be positive, got {duration!r}")

        self.duration = duration
        self.mode = mode
        self.channel_capacity = channel_capacity
        self.buffer_size = buffer_size
        self.reuse_address = reuse_address

    def scan(self) -> List[Device]:
        """Run one scan.

        Returns:
            Devices that answered within the window, possibly none. The same
            device answering twice is listed twice.

        Raises:
            ProvisionError: If the sockets cannot be set up
            BroadcastError: If the query cannot be sent
        """
        logger.info(f"Scanning for cast devices ({self.duration}s)")

        listener, client = provision(self.duration, reuse_address=self.reuse_address)
        try:
            broadcast(client)
        except Exception:
            listener.close()
            raise

        channel: queue.Queue = queue.Queue(maxsize=self.channel_capacity)
        collector = ResponseCollector(
            listener,
            channel,
            self.duration,
            mode=self.mode,
            buffer_size=self.buffer_size,
        )
        collector.start()

        devices = self._drain(channel)
        collector.join(self.duration)

        logger.info(f"Scan finished: {len(devices)} device(s) found")
        return devices

    def _drain(self, channel: queue.Queue) -> List[Device]:
        devices: List[Device] = []
        while True:
            try:
                item = channel.get(timeout=self.duration)
            except queue.Empty:
                break

            if item is END_OF_SCAN:
                break

            logger.info(f"Found cast device: {item}")
            devices.append(item)
        return devices


def scan() -> List[Device]:
    """Scan for cast devices with the default window."""
    return CastScanner().scan()


def scan_for(duration: float, **options) -> List[Device]:
    """Scan for cast devices, listening for `duration` seconds.

    Keyword arguments are passed on to CastScanner.

    Raises:
        ScanError: If the duration is not positive, the sockets cannot be
            set up or the query cannot be sent
    """
    return CastScanner(duration, **options).scan()
