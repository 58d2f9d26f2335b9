#!/usr/bin/env python3
"""
USB keyboard locator.

Finds the Fusion RGB keyboard among the USB devices visible to this process.

Supported devices:
- Gigabyte Aero 15X (Fusion / ITE): VID=0x1044, PID=0x7A39

Only one keyboard is expected per laptop.  When several devices match (an
external keyboard of the same model, a docking setup) the locator refuses to
guess: pass a USB path (``fusion-kbd detect --all`` lists them) or save one
with ``fusion-kbd select N``.
"""

import logging
from typing import List, Optional

import usb.core

from .core.errors import AmbiguousDevice, DeviceNotFound
from .core.models import FUSION_KBD, DetectedKeyboard, DeviceIdentity

log = logging.getLogger(__name__)


def usb_path_of(dev) -> str:
    """Physical location of a pyusb device, e.g. ``"2-1.4"``.

    Falls back to ``"<bus>@<address>"`` when the backend cannot report
    port numbers.
    """
    try:
        ports = dev.port_numbers
    except (usb.core.USBError, NotImplementedError):
        ports = None
    if ports:
        return f"{dev.bus}-{'.'.join(str(p) for p in ports)}"
    return f"{dev.bus}@{dev.address}"


def find_keyboards(identity: DeviceIdentity = FUSION_KBD) -> List[DetectedKeyboard]:
    """Enumerate all devices matching *identity*, in enumeration order."""
    found = usb.core.find(
        find_all=True,
        idVendor=identity.vendor_id,
        idProduct=identity.product_id,
    )
    keyboards = [
        DetectedKeyboard(
            identity=identity,
            bus=dev.bus,
            address=dev.address,
            usb_path=usb_path_of(dev),
            device=dev,
        )
        for dev in (found or [])
    ]
    log.debug("Found %d device(s) matching %s", len(keyboards), identity)
    return keyboards


def locate(identity: DeviceIdentity = FUSION_KBD, usb_path: Optional[str] = None):
    """Return the pyusb device for the single keyboard matching *identity*.

    Args:
        identity: Vendor/product pair to match exactly.
        usb_path: Optional physical path to pick one of several matches.

    Raises:
        DeviceNotFound: No match (or no match at *usb_path*).
        AmbiguousDevice: Several matches and no *usb_path* given.
    """
    keyboards = find_keyboards(identity)

    if usb_path:
        for kbd in keyboards:
            if kbd.usb_path == usb_path:
                log.info("Using keyboard %s at %s", identity, usb_path)
                return kbd.device
        raise DeviceNotFound(f"No keyboard {identity} at USB path {usb_path}")

    if not keyboards:
        raise DeviceNotFound(
            f"Keyboard {identity} not found. Is it connected, and are you "
            f"running as root (or installed the udev rule)?"
        )

    if len(keyboards) > 1:
        paths = [k.usb_path for k in keyboards]
        raise AmbiguousDevice(
            f"{len(keyboards)} keyboards match {identity} ({', '.join(paths)}); "
            f"choose one with --device",
            candidates=paths,
        )

    kbd = keyboards[0]
    log.info("Using keyboard %s at %s", identity, kbd.usb_path)
    return kbd.device
