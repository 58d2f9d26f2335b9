"""Tests for kbd_protocol - header framing, chunking and request sequences.

No USB hardware involved; every function here is pure.
"""

import math

import pytest

from fusion_kbd.constants import (
    CUSTOM_CHUNK_SIZE,
    CUSTOM_CONFIG_SIZE,
    CUSTOM_MODE_BASE,
    EP_CUSTOM_OUT,
    HEADER_SIZE,
    HID_SET_REPORT,
    KIND_CUSTOM_CONFIG,
    KIND_PRESET,
    REPORT_INDEX,
    REPORT_VALUE,
    REQUEST_TYPE_CLASS_OUT,
)
from fusion_kbd.core.errors import InvalidPayloadLength, InvalidSelection
from fusion_kbd.core.models import (
    Color,
    ControlRequest,
    CustomConfigPayload,
    CustomSelection,
    InterruptChunk,
    Preset,
    PresetSelection,
)
from fusion_kbd.kbd_protocol import (
    build_header,
    encode_brightness,
    encode_custom,
    encode_custom_select,
    encode_mode,
    encode_preset,
    header_checksum,
    split_chunks,
)


def _selection(preset=Preset.STATIC, color=Color.RED, speed=5, brightness=26):
    return PresetSelection(preset=preset, color=color, speed=speed, brightness=brightness)


# =========================================================================
# Header
# =========================================================================

class TestHeader:

    def test_length(self):
        assert len(build_header(KIND_PRESET, 1, 5, 26, 1)) == HEADER_SIZE

    def test_field_positions(self):
        hdr = build_header(0x08, 0x03, 0x05, 0x1A, 0x04)
        assert hdr[0] == 0x08
        assert hdr[1] == 0x00
        assert hdr[2] == 0x03
        assert hdr[3] == 0x05
        assert hdr[4] == 0x1A
        assert hdr[5] == 0x04
        assert hdr[6] == 0x00

    def test_checksum_is_complement_of_sum(self):
        hdr = build_header(0x08, 0x01, 0x05, 0x1A, 0x01)
        # 0x08 + 0x01 + 0x05 + 0x1A + 0x01 = 0x29 -> ~0x29 = 0xD6
        assert hdr[7] == 0xD6

    def test_checksum_wraps(self):
        data = bytes([0xFF] * 7)
        assert header_checksum(data) == (~(0xFF * 7)) & 0xFF

    def test_checksum_ignores_last_byte(self):
        assert header_checksum(bytes(7) + b'\x55') == 0xFF

    def test_custom_select_header_bytes(self):
        """Slot 0 at brightness 26: 08 00 33 00 1a 00 00 aa."""
        (req,) = encode_custom_select(0, 26)
        assert req.payload == bytes([0x08, 0x00, 0x33, 0x00, 0x1A, 0x00, 0x00, 0xAA])


# =========================================================================
# Presets
# =========================================================================

class TestEncodePreset:

    @pytest.mark.parametrize("preset", list(Preset))
    def test_every_preset_is_one_full_header(self, preset):
        reqs = encode_preset(_selection(preset=preset, color=Color.BLUE))
        assert len(reqs) == 1
        assert all(isinstance(r, ControlRequest) for r in reqs)
        assert all(len(r.payload) == HEADER_SIZE for r in reqs)
        assert reqs[0].payload[2] == int(preset)

    def test_set_report_fields(self):
        (req,) = encode_preset(_selection())
        assert req.request_type == REQUEST_TYPE_CLASS_OUT
        assert req.request == HID_SET_REPORT
        assert req.value == REPORT_VALUE
        assert req.index == REPORT_INDEX

    def test_payload_fields(self):
        (req,) = encode_preset(_selection(Preset.RIPPLE, Color.PURPLE, speed=7, brightness=40))
        assert req.payload[0] == KIND_PRESET
        assert req.payload[2] == 0x06
        assert req.payload[3] == 7
        assert req.payload[4] == 40
        assert req.payload[5] == 0x06
        assert req.payload[7] == header_checksum(req.payload)

    def test_wave_without_color_uses_random(self):
        (req,) = encode_preset(PresetSelection(Preset.WAVE))
        assert req.payload[5] == Color.RAND

    def test_requests_are_fresh(self):
        sel = _selection()
        assert encode_preset(sel)[0] is not encode_preset(sel)[0]


# =========================================================================
# Chunking
# =========================================================================

class TestSplitChunks:

    def test_exact_multiple(self):
        chunks = split_chunks(bytes(range(128)), 64)
        assert len(chunks) == 2
        assert chunks[0] == bytes(range(64))
        assert chunks[1] == bytes(range(64, 128))

    def test_last_chunk_padded(self):
        chunks = split_chunks(b'\x01' * 70, 64)
        assert len(chunks) == 2
        assert chunks[1] == b'\x01' * 6 + bytes(58)

    @pytest.mark.parametrize("length", [1, 63, 64, 65, 200, 512, 513, 1000])
    def test_chunk_count_is_ceiling(self, length):
        chunks = split_chunks(bytes(length), 64)
        assert len(chunks) == math.ceil(length / 64)
        assert all(len(c) == 64 for c in chunks)

    def test_empty(self):
        assert split_chunks(b'', 64) == []

    def test_bad_chunk_size(self):
        with pytest.raises(ValueError):
            split_chunks(b'abc', 0)


# =========================================================================
# Custom upload
# =========================================================================

class TestEncodeCustom:

    def test_sequence_layout(self):
        payload = CustomConfigPayload(bytes(range(256)) * 2)
        reqs = encode_custom(payload, slot=2, brightness=30)

        assert len(reqs) == 1 + 8 + 1
        upload, chunks, select = reqs[0], reqs[1:-1], reqs[-1]

        assert isinstance(upload, ControlRequest)
        assert upload.payload[0] == KIND_CUSTOM_CONFIG
        assert upload.payload[2] == 2
        assert upload.payload[3] == 8

        assert all(isinstance(c, InterruptChunk) for c in chunks)
        assert all(c.endpoint == EP_CUSTOM_OUT for c in chunks)
        assert b''.join(c.payload for c in chunks) == payload.data

        assert select.payload[0] == KIND_PRESET
        assert select.payload[2] == CUSTOM_MODE_BASE + 2
        assert select.payload[4] == 30

    @pytest.mark.parametrize("length", [65, 200, 512, 1000])
    def test_chunk_indexes_ascending_without_gaps(self, length):
        reqs = encode_custom(CustomConfigPayload(bytes(length)), activate=False)
        chunks = [r for r in reqs if isinstance(r, InterruptChunk)]
        assert len(chunks) == math.ceil(length / CUSTOM_CHUNK_SIZE)
        assert [c.sequence for c in chunks] == list(range(len(chunks)))
        assert reqs[0].payload[3] == len(chunks)

    def test_no_activate(self):
        reqs = encode_custom(CustomConfigPayload(bytes(CUSTOM_CONFIG_SIZE)), activate=False)
        assert len(reqs) == 9
        assert isinstance(reqs[-1], InterruptChunk)

    def test_bad_slot(self):
        with pytest.raises(InvalidSelection):
            encode_custom(CustomConfigPayload(bytes(CUSTOM_CONFIG_SIZE)), slot=5)


# =========================================================================
# Brightness
# =========================================================================

class TestEncodeBrightness:

    def test_preset_only_brightness_changes(self):
        current = _selection(Preset.BREATHING, Color.GREEN, speed=3, brightness=10)
        (before,) = encode_preset(current)
        (after,) = encode_brightness(current, 60)

        assert after.payload[4] == 60
        for i in (0, 1, 2, 3, 5, 6):
            assert after.payload[i] == before.payload[i]
        assert after.payload[7] == header_checksum(after.payload)

    def test_custom_slot_reselected(self):
        (req,) = encode_brightness(CustomSelection(slot=3, brightness=10), 0)
        assert req.payload[2] == CUSTOM_MODE_BASE + 3
        assert req.payload[4] == 0

    def test_current_mode_not_modified(self):
        current = _selection(brightness=10)
        encode_brightness(current, 70)
        assert current.brightness == 10

    def test_level_out_of_range(self):
        with pytest.raises(InvalidSelection):
            encode_brightness(_selection(), 0x51)

    def test_rejects_non_mode(self):
        with pytest.raises(TypeError):
            encode_brightness("wave", 10)

    def test_encode_mode_matches_preset(self):
        sel = _selection()
        assert encode_mode(sel) == encode_preset(sel)


# =========================================================================
# Request validation
# =========================================================================

class TestRequestValidation:

    def test_control_request_wrong_length(self):
        with pytest.raises(InvalidPayloadLength):
            ControlRequest(REQUEST_TYPE_CLASS_OUT, HID_SET_REPORT, REPORT_VALUE,
                           REPORT_INDEX, bytes(7))

    def test_control_request_unknown_code(self):
        with pytest.raises(ValueError):
            ControlRequest(REQUEST_TYPE_CLASS_OUT, 0x01, 0, 0, bytes(8))

    def test_chunk_wrong_length(self):
        with pytest.raises(InvalidPayloadLength):
            InterruptChunk(EP_CUSTOM_OUT, 0, bytes(63))
