"""
Payload sources: preset names and raw custom configuration bytes.

Only structure is checked here.  Custom configuration files are produced by
other tools (the vendor app's export, hand-made layouts) and uploaded as-is;
their per-key content is the firmware's business.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Union

from .constants import CUSTOM_CONFIG_SIZE, DEFAULT_BRIGHTNESS, DEFAULT_SPEED
from .core.errors import InvalidPayloadLength, PayloadFileError, UnknownColor, UnknownPreset
from .core.models import COLOR_ALIASES, Color, CustomConfigPayload, Preset, PresetSelection

log = logging.getLogger(__name__)


def preset_names() -> List[str]:
    return [p.label for p in Preset]


def color_names() -> List[str]:
    return [c.label for c in Color] + sorted(COLOR_ALIASES)


def _normalize(name: str) -> str:
    return name.strip().lower().replace('-', '_')


def parse_preset(name: str) -> Preset:
    """Case-insensitive preset lookup (``fade-on-keypress`` also accepted)."""
    try:
        return Preset[_normalize(name).upper()]
    except KeyError:
        raise UnknownPreset(
            f"Unknown preset '{name}'. Valid: {', '.join(preset_names())}"
        ) from None


def parse_color(name: str) -> Color:
    key = _normalize(name)
    if key in COLOR_ALIASES:
        return COLOR_ALIASES[key]
    try:
        return Color[key.upper()]
    except KeyError:
        raise UnknownColor(
            f"Unknown color '{name}'. Valid: {', '.join(color_names())}"
        ) from None


def resolve_preset(name: str, color: Optional[Union[str, Color]] = None,
                   speed: int = DEFAULT_SPEED,
                   brightness: int = DEFAULT_BRIGHTNESS) -> PresetSelection:
    """Turn user input into a validated PresetSelection.

    Raises:
        UnknownPreset / UnknownColor: Name not known to the firmware.
        ColorRequired: Preset needs a color and none was given.
        InvalidSelection: Speed or brightness out of range.
    """
    preset = parse_preset(name)
    if isinstance(color, str):
        color = parse_color(color)
    return PresetSelection(preset=preset, color=color, speed=speed, brightness=brightness)


def resolve_custom(data: bytes) -> CustomConfigPayload:
    """Wrap raw configuration bytes after checking the firmware size.

    Raises:
        InvalidPayloadLength: ``len(data)`` is not exactly 512.
    """
    if len(data) != CUSTOM_CONFIG_SIZE:
        raise InvalidPayloadLength(
            f"Custom configuration must be exactly {CUSTOM_CONFIG_SIZE} bytes, "
            f"got {len(data)}",
            length=len(data), expected=CUSTOM_CONFIG_SIZE,
        )
    return CustomConfigPayload(bytes(data))


def load_custom_file(path: Union[str, os.PathLike]) -> CustomConfigPayload:
    """Read a whole configuration file, then validate its length."""
    try:
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise PayloadFileError(f"Couldn't open '{path}': {e}") from e
    log.debug("Read %d bytes from %s", len(data), path)
    return resolve_custom(data)
