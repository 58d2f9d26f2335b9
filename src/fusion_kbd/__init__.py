"""
fusion-kbd - RGB backlight control for the Gigabyte Aero 15X keyboard

Drives the keyboard's ITE controller (USB 1044:7a39) directly over libusb:
temporarily detaches usbhid, sends the lighting command, and rebinds it.

Features:
- 13 firmware presets with color, speed and brightness
- Upload of raw 512-byte per-key profiles into 5 custom slots
- Brightness changes by re-selecting the current mode

Usage:
    # As a library
    from fusion_kbd import FusionKeyboard, resolve_preset
    FusionKeyboard().set_preset(resolve_preset('static', 'red', brightness=40))

    # Command line
    fusion-kbd preset wave
    fusion-kbd custom layout.bin
"""

from fusion_kbd.__version__ import __version__

from fusion_kbd.core.errors import KbdError, TransferFailed
from fusion_kbd.core.models import (
    FUSION_KBD,
    Color,
    CustomSelection,
    DeviceIdentity,
    Preset,
    PresetSelection,
)
from fusion_kbd.device_binding import InterfaceBinding
from fusion_kbd.device_detector import find_keyboards, locate
from fusion_kbd.device_kbd import FusionKeyboard, TransferDispatcher
from fusion_kbd.kbd_protocol import encode_brightness, encode_custom, encode_preset
from fusion_kbd.payload import load_custom_file, resolve_custom, resolve_preset

__all__ = [
    # Version
    "__version__",
    # Models
    "FUSION_KBD",
    "Color",
    "CustomSelection",
    "DeviceIdentity",
    "Preset",
    "PresetSelection",
    "KbdError",
    "TransferFailed",
    # Device
    "FusionKeyboard",
    "InterfaceBinding",
    "TransferDispatcher",
    "find_keyboards",
    "locate",
    # Protocol
    "encode_brightness",
    "encode_custom",
    "encode_preset",
    # Payloads
    "load_custom_file",
    "resolve_custom",
    "resolve_preset",
]
