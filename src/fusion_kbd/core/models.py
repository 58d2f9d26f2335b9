"""
Fusion keyboard models - immutable data classes shared by every layer.

Nothing here touches USB.  Validation that the firmware depends on (field
ranges, payload sizes) happens at construction so a bad value can never
reach the dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Dict, Optional, Union

from ..constants import (
    BRIGHTNESS_MAX,
    CUSTOM_CHUNK_SIZE,
    CUSTOM_CONFIG_MAX,
    CUSTOM_SLOT_COUNT,
    DEFAULT_BRIGHTNESS,
    DEFAULT_SPEED,
    FUSION_PID,
    FUSION_VID,
    REQUEST_PAYLOAD_SIZES,
    SPEED_MAX,
)
from .errors import ColorRequired, InvalidPayloadLength, InvalidSelection

# =============================================================================
# Device identity
# =============================================================================


@dataclass(frozen=True)
class DeviceIdentity:
    """USB vendor/product pair of one keyboard model."""
    vendor_id: int
    product_id: int

    def __post_init__(self):
        for name in ('vendor_id', 'product_id'):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFF:
                raise ValueError(f"{name} out of u16 range: {value:#x}")

    def __str__(self) -> str:
        return f"{self.vendor_id:04x}:{self.product_id:04x}"


FUSION_KBD = DeviceIdentity(FUSION_VID, FUSION_PID)


@dataclass
class DetectedKeyboard:
    """One enumerated USB device matching a DeviceIdentity."""
    identity: DeviceIdentity
    bus: int
    address: int
    usb_path: str                               # e.g. "1-4", "2-1.4"
    device: Any = field(default=None, repr=False)  # usb.core.Device


# =============================================================================
# Firmware enums
# =============================================================================


class Preset(IntEnum):
    """Built-in lighting modes, value is the firmware mode byte."""
    STATIC = 0x01
    BREATHING = 0x02
    WAVE = 0x03
    FADE_ON_KEYPRESS = 0x04
    MARQUEE = 0x05
    RIPPLE = 0x06
    FLASH_ON_KEYPRESS = 0x07
    NEON = 0x08
    RAINBOW_MARQUEE = 0x09
    RAINDROP = 0x0A
    CIRCLE_MARQUEE = 0x0B
    HEDGE = 0x0C
    ROTATE = 0x0D

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def needs_color(self) -> bool:
        # wave and neon cycle colors on their own
        return self not in (Preset.WAVE, Preset.NEON)


class Color(IntEnum):
    """Predefined preset colors, value is the firmware color byte."""
    RAND = 0x00
    RED = 0x01
    GREEN = 0x02
    YELLOW = 0x03
    BLUE = 0x04
    ORANGE = 0x05
    PURPLE = 0x06
    WHITE = 0x07

    @property
    def label(self) -> str:
        return self.name.lower()


COLOR_ALIASES = {
    'rainbow': Color.RAND,
    'cycle': Color.RAND,
}


# =============================================================================
# Mode selections
# =============================================================================


def _check_range(name: str, value: int, maximum: int) -> None:
    if not isinstance(value, int) or not 0 <= value <= maximum:
        raise InvalidSelection(f"{name} must be a number from 0 - {maximum}, got {value!r}")


@dataclass(frozen=True)
class PresetSelection:
    """A preset plus the parameter bytes needed to select it."""
    preset: Preset
    color: Optional[Color] = None
    speed: int = DEFAULT_SPEED
    brightness: int = DEFAULT_BRIGHTNESS

    def __post_init__(self):
        _check_range('speed', self.speed, SPEED_MAX)
        _check_range('brightness', self.brightness, BRIGHTNESS_MAX)
        if self.color is None and self.preset.needs_color:
            raise ColorRequired(f"Color must be specified for preset `{self.preset.label}`")

    @property
    def color_byte(self) -> int:
        return int(self.color) if self.color is not None else int(Color.RAND)

    def with_brightness(self, level: int) -> 'PresetSelection':
        return replace(self, brightness=level)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'preset',
            'preset': self.preset.label,
            'color': self.color.label if self.color is not None else None,
            'speed': self.speed,
            'brightness': self.brightness,
        }


@dataclass(frozen=True)
class CustomSelection:
    """An uploaded custom slot as the active mode."""
    slot: int = 0
    brightness: int = DEFAULT_BRIGHTNESS

    def __post_init__(self):
        _check_range('slot', self.slot, CUSTOM_SLOT_COUNT - 1)
        _check_range('brightness', self.brightness, BRIGHTNESS_MAX)

    def with_brightness(self, level: int) -> 'CustomSelection':
        return replace(self, brightness=level)

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'custom', 'slot': self.slot, 'brightness': self.brightness}


ModeSelection = Union[PresetSelection, CustomSelection]


# =============================================================================
# Payloads and wire requests
# =============================================================================


@dataclass(frozen=True)
class CustomConfigPayload:
    """Opaque per-key lighting bytes; only the gross length is checked."""
    data: bytes = field(repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'data', bytes(self.data))
        if not 0 < len(self.data) <= CUSTOM_CONFIG_MAX:
            raise InvalidPayloadLength(
                f"Custom payload must be 1 - {CUSTOM_CONFIG_MAX} bytes, got {len(self.data)}",
                length=len(self.data), expected=CUSTOM_CONFIG_MAX,
            )

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ControlRequest:
    """One USB control transfer.

    The payload length is fixed by the request code; a mismatch is
    rejected here, before anything is sent.
    """
    request_type: int
    request: int
    value: int
    index: int
    payload: bytes

    def __post_init__(self):
        object.__setattr__(self, 'payload', bytes(self.payload))
        expected = REQUEST_PAYLOAD_SIZES.get(self.request)
        if expected is None:
            raise ValueError(f"Unsupported request code {self.request:#04x}")
        if len(self.payload) != expected:
            raise InvalidPayloadLength(
                f"Request {self.request:#04x} needs {expected} payload bytes, "
                f"got {len(self.payload)}",
                length=len(self.payload), expected=expected,
            )


@dataclass(frozen=True)
class InterruptChunk:
    """One fixed-size chunk of a custom upload, sent in ``sequence`` order."""
    endpoint: int
    sequence: int
    payload: bytes

    def __post_init__(self):
        object.__setattr__(self, 'payload', bytes(self.payload))
        if len(self.payload) != CUSTOM_CHUNK_SIZE:
            raise InvalidPayloadLength(
                f"Chunk {self.sequence} must be {CUSTOM_CHUNK_SIZE} bytes, "
                f"got {len(self.payload)}",
                length=len(self.payload), expected=CUSTOM_CHUNK_SIZE,
            )


TransferRequest = Union[ControlRequest, InterruptChunk]


# =============================================================================
# Driver state / results
# =============================================================================


@dataclass
class OriginalDriverState:
    """Kernel driver binding of one interface before acquisition."""
    interface: int
    was_attached: bool = False
    detached: bool = False      # True once we detached it ourselves
    consumed: bool = False      # set by release; reattach happens at most once


@dataclass
class ApplyResult:
    """Outcome of one locate -> acquire -> send -> release run."""
    sent: int = 0
    warnings: list = field(default_factory=list)  # DriverReattachFailed

    @property
    def ok(self) -> bool:
        return not self.warnings
