"""User settings for fusion-kbd.

Config is stored at ~/.config/fusion-kbd/config.json (XDG-compliant).

The keyboard cannot report its current mode, so the last mode applied
through this tool is remembered here; ``fusion-kbd brightness`` re-sends it
with a new brightness.

Usage:
    from fusion_kbd.conf import load_config, save_config
    from fusion_kbd.conf import get_last_mode, save_last_mode
"""
from __future__ import annotations

import json
import logging
import os
from typing import Optional

from .constants import BRIGHTNESS_MAX, DEFAULT_BRIGHTNESS, DEFAULT_SPEED, SPEED_MAX
from .core.models import CustomSelection, ModeSelection, PresetSelection
from .payload import parse_color, parse_preset

log = logging.getLogger(__name__)

# =========================================================================
# Config file location (XDG-compliant)
# =========================================================================

_XDG_CONFIG = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
CONFIG_DIR = os.path.join(_XDG_CONFIG, 'fusion-kbd')
CONFIG_PATH = os.path.join(CONFIG_DIR, 'config.json')


# =========================================================================
# Low-level config persistence
# =========================================================================

def load_config() -> dict:
    """Load user config from disk. Returns empty dict on missing/corrupt file."""
    try:
        with open(CONFIG_PATH, 'r') as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return {}
    return config if isinstance(config, dict) else {}


def save_config(config: dict):
    """Save user config to disk."""
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_PATH, 'w') as f:
        json.dump(config, f, indent=2)


# =========================================================================
# Selected device (disambiguates several matching keyboards)
# =========================================================================

def get_selected_device() -> Optional[str]:
    """Get the saved USB path (e.g. '1-4'). Returns None if unset."""
    return load_config().get('selected_device')


def save_selected_device(usb_path: str):
    config = load_config()
    config['selected_device'] = usb_path
    save_config(config)


# =========================================================================
# Defaults
# =========================================================================

def _saved_int(key: str, default: int, maximum: int) -> int:
    value = load_config().get(key, default)
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= maximum:
        return value
    log.warning("Ignoring invalid %s in %s: %r", key, CONFIG_PATH, value)
    return default


def get_default_brightness() -> int:
    """Brightness used when the command line gives none (0 - 80)."""
    return _saved_int('brightness', DEFAULT_BRIGHTNESS, BRIGHTNESS_MAX)


def get_default_speed() -> int:
    """Effect speed used when the command line gives none (0 - 10)."""
    return _saved_int('speed', DEFAULT_SPEED, SPEED_MAX)


# =========================================================================
# Last applied mode
# =========================================================================

def save_last_mode(mode: ModeSelection):
    """Remember the mode just applied to the keyboard."""
    config = load_config()
    config['last_mode'] = mode.to_dict()
    save_config(config)


def get_last_mode() -> Optional[ModeSelection]:
    """Last mode applied by this tool, or None if unknown/corrupt."""
    data = load_config().get('last_mode')
    if not isinstance(data, dict):
        return None

    try:
        if data.get('type') == 'preset':
            color = data.get('color')
            return PresetSelection(
                preset=parse_preset(data['preset']),
                color=parse_color(color) if color else None,
                speed=int(data.get('speed', DEFAULT_SPEED)),
                brightness=int(data.get('brightness', DEFAULT_BRIGHTNESS)),
            )
        if data.get('type') == 'custom':
            return CustomSelection(
                slot=int(data.get('slot', 0)),
                brightness=int(data.get('brightness', DEFAULT_BRIGHTNESS)),
            )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        log.warning("Ignoring corrupt last_mode in %s: %s", CONFIG_PATH, e)
        return None

    log.warning("Ignoring unknown last_mode type in %s: %r", CONFIG_PATH, data.get('type'))
    return None
