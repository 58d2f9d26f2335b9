"""Tests for payload - preset/color name resolution and custom config files."""

import pytest

from fusion_kbd.constants import CUSTOM_CONFIG_SIZE, DEFAULT_BRIGHTNESS, DEFAULT_SPEED
from fusion_kbd.core.errors import (
    ColorRequired,
    InvalidLength,
    InvalidPayloadLength,
    InvalidSelection,
    PayloadFileError,
    UnknownColor,
    UnknownPreset,
)
from fusion_kbd.core.models import Color, CustomConfigPayload, Preset
from fusion_kbd.payload import (
    color_names,
    load_custom_file,
    parse_color,
    parse_preset,
    preset_names,
    resolve_custom,
    resolve_preset,
)


class TestNames:

    def test_preset_names(self):
        names = preset_names()
        assert len(names) == 13
        assert names[0] == 'static'
        assert 'fade_on_keypress' in names

    def test_color_names_include_aliases(self):
        names = color_names()
        assert 'rand' in names
        assert 'rainbow' in names
        assert 'cycle' in names


class TestParse:

    @pytest.mark.parametrize("text, expected", [
        ('wave', Preset.WAVE),
        ('WAVE', Preset.WAVE),
        ('fade-on-keypress', Preset.FADE_ON_KEYPRESS),
        ('Rainbow_Marquee', Preset.RAINBOW_MARQUEE),
    ])
    def test_preset(self, text, expected):
        assert parse_preset(text) is expected

    def test_unknown_preset(self):
        with pytest.raises(UnknownPreset, match="Unknown preset 'sparkle'"):
            parse_preset('sparkle')

    @pytest.mark.parametrize("text, expected", [
        ('red', Color.RED),
        ('Purple', Color.PURPLE),
        ('rand', Color.RAND),
        ('rainbow', Color.RAND),
        ('cycle', Color.RAND),
    ])
    def test_color(self, text, expected):
        assert parse_color(text) is expected

    def test_unknown_color(self):
        with pytest.raises(UnknownColor):
            parse_color('pink')

    def test_unknown_is_invalid_selection(self):
        with pytest.raises(InvalidSelection):
            parse_color('pink')


class TestResolvePreset:

    def test_defaults(self):
        sel = resolve_preset('static', 'red')
        assert sel.preset is Preset.STATIC
        assert sel.color is Color.RED
        assert sel.speed == DEFAULT_SPEED
        assert sel.brightness == DEFAULT_BRIGHTNESS

    def test_color_enum_accepted(self):
        assert resolve_preset('marquee', Color.WHITE).color is Color.WHITE

    @pytest.mark.parametrize("name", ['wave', 'neon'])
    def test_color_optional(self, name):
        assert resolve_preset(name).color is None

    @pytest.mark.parametrize("name", [p.label for p in Preset
                                      if p not in (Preset.WAVE, Preset.NEON)])
    def test_color_required(self, name):
        with pytest.raises(ColorRequired):
            resolve_preset(name)

    def test_speed_range(self):
        with pytest.raises(InvalidSelection):
            resolve_preset('wave', speed=11)

    def test_brightness_range(self):
        with pytest.raises(InvalidSelection):
            resolve_preset('wave', brightness=81)


class TestResolveCustom:

    def test_exact_size(self):
        payload = resolve_custom(bytes(range(256)) * 2)
        assert isinstance(payload, CustomConfigPayload)
        assert len(payload) == CUSTOM_CONFIG_SIZE

    @pytest.mark.parametrize("size", [0, 1, 511, 513, 1024])
    def test_wrong_size(self, size):
        with pytest.raises(InvalidLength) as exc_info:
            resolve_custom(bytes(size))
        assert exc_info.value.length == size
        assert exc_info.value.expected == CUSTOM_CONFIG_SIZE

    def test_bytearray_accepted(self):
        assert resolve_custom(bytearray(CUSTOM_CONFIG_SIZE)).data == bytes(CUSTOM_CONFIG_SIZE)


class TestLoadCustomFile:

    def test_reads_whole_file(self, tmp_path):
        path = tmp_path / 'layout.bin'
        path.write_bytes(b'\xAB' * CUSTOM_CONFIG_SIZE)
        assert load_custom_file(path).data == b'\xAB' * CUSTOM_CONFIG_SIZE

    def test_missing_file(self, tmp_path):
        with pytest.raises(PayloadFileError, match="Couldn't open"):
            load_custom_file(tmp_path / 'missing.bin')

    def test_directory_is_file_error(self, tmp_path):
        with pytest.raises(PayloadFileError):
            load_custom_file(tmp_path)

    def test_short_file(self, tmp_path):
        path = tmp_path / 'short.bin'
        path.write_bytes(bytes(100))
        with pytest.raises(InvalidPayloadLength):
            load_custom_file(path)
