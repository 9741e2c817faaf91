#!/usr/bin/env python3
"""Example usage of castscan.

This example lists the cast devices answering on the local network.
"""

import logging
from castscan import CastScanner, ExtractionMode, ScanError

# Setup logging to see what's happening
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

def main():
    """Main example function."""
    print("castscan - Example Usage")
    print("=" * 50)

    # Listen a little longer than the default so slow devices get a chance.
    # reuse_address lets the scan run alongside avahi or mDNSResponder.
    scanner = CastScanner(duration=1.0, mode=ExtractionMode.TEXT, reuse_address=True)

    try:
        devices = scanner.scan()
    except ScanError as e:
        print(f"Scan failed: {e}")
        return

    if not devices:
        print("No cast devices answered")
        return

    print(f"\nFound {len(devices)} device(s):")
    for device in devices:
        print(f"  - {device.name}")
        print(f"      Model:   {device.model}")
        print(f"      Id:      {device.id}")
        print(f"      Address: {device.address}:{device.port}")

if __name__ == "__main__":
    main()
