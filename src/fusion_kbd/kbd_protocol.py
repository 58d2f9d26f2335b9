"""
Fusion keyboard wire protocol - header framing and request sequences.

Every command starts with an 8-byte header sent as a HID SET_REPORT
control transfer to interface 3:

    Byte 0: kind             0x08 preset/mode select, 0x12 custom upload
    Byte 1: reserved (0)
    Byte 2: mode             preset id, custom slot, or 0x33+slot to select it
    Byte 3: speed / length   effect speed, or number of chunks that follow
    Byte 4: brightness       0 - 0x50
    Byte 5: color            predefined color id
    Byte 6: reserved (0)
    Byte 7: checksum         ~sum(bytes 0-6) & 0xFF

A custom upload is an upload header followed by the configuration split into
64-byte interrupt chunks on endpoint 0x06.  The keyboard stores it in the
slot but keeps showing the old mode until that slot is selected.

There is no brightness-only command.  Brightness is changed by selecting the
current mode again with a new brightness byte, so the caller has to say what
the current mode is (the firmware read-back, kind 0x92, is not supported).
"""

from __future__ import annotations

import logging
from typing import List

from .constants import (
    CUSTOM_CHUNK_SIZE,
    CUSTOM_MODE_BASE,
    DEFAULT_BRIGHTNESS,
    EP_CUSTOM_OUT,
    HEADER_SIZE,
    HID_SET_REPORT,
    KIND_CUSTOM_CONFIG,
    KIND_PRESET,
    REPORT_INDEX,
    REPORT_VALUE,
    REQUEST_TYPE_CLASS_OUT,
)
from .core.models import (
    ControlRequest,
    CustomConfigPayload,
    CustomSelection,
    InterruptChunk,
    ModeSelection,
    PresetSelection,
    TransferRequest,
)

log = logging.getLogger(__name__)


# =========================================================================
# Header
# =========================================================================

def header_checksum(data: bytes) -> int:
    """One's complement of the byte sum of header bytes 0-6."""
    return ~sum(data[:HEADER_SIZE - 1]) & 0xFF


def build_header(kind: int, mode: int, speed_or_length: int,
                 brightness: int, color: int) -> bytes:
    """Build a complete 8-byte header with checksum."""
    header = bytearray(HEADER_SIZE)
    header[0] = kind
    header[2] = mode
    header[3] = speed_or_length
    header[4] = brightness
    header[5] = color
    header[7] = header_checksum(header)
    return bytes(header)


def _set_report(header: bytes) -> ControlRequest:
    return ControlRequest(
        request_type=REQUEST_TYPE_CLASS_OUT,
        request=HID_SET_REPORT,
        value=REPORT_VALUE,
        index=REPORT_INDEX,
        payload=header,
    )


# =========================================================================
# Presets
# =========================================================================

def encode_preset(selection: PresetSelection) -> List[ControlRequest]:
    """Requests that switch the keyboard to a built-in preset."""
    header = build_header(
        KIND_PRESET,
        int(selection.preset),
        selection.speed,
        selection.brightness,
        selection.color_byte,
    )
    return [_set_report(header)]


# =========================================================================
# Custom configuration
# =========================================================================

def split_chunks(data: bytes, chunk_size: int = CUSTOM_CHUNK_SIZE) -> List[bytes]:
    """Split *data* into ``ceil(len / chunk_size)`` chunks.

    The last chunk is zero-padded so every transfer has the same size.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    chunks = []
    for start in range(0, len(data), chunk_size):
        chunk = data[start:start + chunk_size]
        if len(chunk) < chunk_size:
            chunk = chunk + bytes(chunk_size - len(chunk))
        chunks.append(bytes(chunk))
    return chunks


def encode_custom_select(slot: int, brightness: int = DEFAULT_BRIGHTNESS) -> List[ControlRequest]:
    """Requests that switch the keyboard to a stored custom slot."""
    selection = CustomSelection(slot=slot, brightness=brightness)
    header = build_header(KIND_PRESET, CUSTOM_MODE_BASE + selection.slot, 0,
                          selection.brightness, 0)
    return [_set_report(header)]


def encode_custom(payload: CustomConfigPayload, slot: int = 0,
                  brightness: int = DEFAULT_BRIGHTNESS,
                  activate: bool = True) -> List[TransferRequest]:
    """Requests that upload *payload* into a custom slot.

    Sequence: upload header, chunks 0..n-1 in order, then (if *activate*)
    the mode select for the slot.  Order is part of the protocol; the
    firmware reassembles chunks by arrival.
    """
    selection = CustomSelection(slot=slot, brightness=brightness)
    chunks = split_chunks(payload.data)
    requests: List[TransferRequest] = [
        _set_report(build_header(KIND_CUSTOM_CONFIG, selection.slot, len(chunks), 0, 0)),
    ]
    requests.extend(
        InterruptChunk(endpoint=EP_CUSTOM_OUT, sequence=seq, payload=chunk)
        for seq, chunk in enumerate(chunks)
    )
    if activate:
        requests.extend(encode_custom_select(selection.slot, selection.brightness))
    log.debug("Custom upload to slot %d: %d bytes in %d chunks",
              selection.slot, len(payload), len(chunks))
    return requests


# =========================================================================
# Brightness
# =========================================================================

def encode_mode(mode: ModeSelection) -> List[ControlRequest]:
    """Mode-select requests for a preset or a custom slot."""
    if isinstance(mode, PresetSelection):
        return encode_preset(mode)
    if isinstance(mode, CustomSelection):
        return encode_custom_select(mode.slot, mode.brightness)
    raise TypeError(f"Not a mode selection: {mode!r}")


def encode_brightness(current_mode: ModeSelection, level: int) -> List[ControlRequest]:
    """Re-select *current_mode* with brightness *level*.

    Raises:
        InvalidSelection: *level* outside 0 - 0x50.
    """
    if not isinstance(current_mode, (PresetSelection, CustomSelection)):
        raise TypeError(f"Not a mode selection: {current_mode!r}")
    return encode_mode(current_mode.with_brightness(level))
