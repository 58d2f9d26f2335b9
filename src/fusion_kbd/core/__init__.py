"""
Fusion keyboard core - models and error kinds.

Models: immutable data classes (identities, presets, selections, requests)
Errors: one exception per failure kind, each mapped to a CLI exit code
"""

from .errors import (
    AmbiguousDevice,
    ColorRequired,
    DeviceBusy,
    DeviceNotFound,
    DriverDetachFailed,
    DriverReattachFailed,
    InvalidLength,
    InvalidPayloadLength,
    InvalidSelection,
    KbdError,
    PayloadFileError,
    TransferFailed,
    UnknownColor,
    UnknownPreset,
)
from .models import (
    FUSION_KBD,
    ApplyResult,
    Color,
    ControlRequest,
    CustomConfigPayload,
    CustomSelection,
    DetectedKeyboard,
    DeviceIdentity,
    InterruptChunk,
    OriginalDriverState,
    Preset,
    PresetSelection,
)

__all__ = [
    'FUSION_KBD',
    'ApplyResult',
    'Color',
    'ControlRequest',
    'CustomConfigPayload',
    'CustomSelection',
    'DetectedKeyboard',
    'DeviceIdentity',
    'InterruptChunk',
    'OriginalDriverState',
    'Preset',
    'PresetSelection',
    'AmbiguousDevice',
    'ColorRequired',
    'DeviceBusy',
    'DeviceNotFound',
    'DriverDetachFailed',
    'DriverReattachFailed',
    'InvalidLength',
    'InvalidPayloadLength',
    'InvalidSelection',
    'KbdError',
    'PayloadFileError',
    'TransferFailed',
    'UnknownColor',
    'UnknownPreset',
]
