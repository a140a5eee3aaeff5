"""Tests for drawtext color conversion."""
import pytest

from app.pipeline.colors import (
    clamp_opacity,
    parse_rgb,
    resolve_bg_opacity,
    to_ffmpeg_color,
    to_ffmpeg_color_with_alpha,
)


class TestParseRGB:
    def test_hex_forms(self):
        assert parse_rgb("#FFF") == (255, 255, 255)
        assert parse_rgb("#1a2B3c") == (0x1A, 0x2B, 0x3C)
        assert parse_rgb("#11223380") == (0x11, 0x22, 0x33)

    def test_rgb_and_rgba(self):
        assert parse_rgb("rgb(10, 20, 30)") == (10, 20, 30)
        assert parse_rgb("rgba(10,20,30,0.5)") == (10, 20, 30)

    def test_channels_are_clamped(self):
        assert parse_rgb("rgb(300, -5, 128)") == (255, 0, 128)

    def test_unparseable(self):
        assert parse_rgb("white") is None
        assert parse_rgb("#12") is None
        assert parse_rgb("") is None


class TestTextColor:
    def test_hex_and_rgb_become_ffmpeg_hex(self):
        assert to_ffmpeg_color("#ff0000") == "0xFF0000"
        assert to_ffmpeg_color("rgba(0, 128, 255, 0.3)") == "0x0080FF"

    def test_named_color_passes_through(self):
        assert to_ffmpeg_color("yellow") == "yellow"

    def test_empty_uses_default(self):
        assert to_ffmpeg_color("") == "0xFFFFFF"
        assert to_ffmpeg_color(None, "#000") == "0x000000"

    def test_malformed_numeric_color_uses_default(self):
        assert to_ffmpeg_color("#zzzzzz") == "0xFFFFFF"


class TestBackgroundColor:
    def test_opacity_becomes_alpha_byte(self):
        assert to_ffmpeg_color_with_alpha("#000000", 0.8) == "0x000000CC"
        assert to_ffmpeg_color_with_alpha("#102030", 1.0) == "0x102030FF"
        assert to_ffmpeg_color_with_alpha("#102030", 0.0) == "0x10203000"

    def test_opacity_argument_overrides_color_alpha(self):
        assert to_ffmpeg_color_with_alpha("rgba(255, 255, 255, 0.1)", 0.5) == "0xFFFFFF7F"

    def test_opacity_is_clamped(self):
        assert to_ffmpeg_color_with_alpha("#000000", 3.0) == "0x000000FF"
        assert to_ffmpeg_color_with_alpha("#000000", -1.0) == "0x00000000"

    def test_empty_color_is_black(self):
        assert to_ffmpeg_color_with_alpha("", 0.8) == "0x000000CC"

    def test_named_color_uses_at_syntax(self):
        assert to_ffmpeg_color_with_alpha("navy", 0.5) == "navy@0.50"


class TestOpacity:
    @pytest.mark.parametrize("value,expected", [(None, 0.0), (-0.5, 0.0), (0.4, 0.4), (1.7, 1.0)])
    def test_clamp_opacity(self, value, expected):
        assert clamp_opacity(value) == expected

    def test_default_when_nothing_set(self):
        assert resolve_bg_opacity("", 0) == 0.8
        assert resolve_bg_opacity(None, None) == 0.8

    def test_explicit_color_without_opacity_is_transparent(self):
        assert resolve_bg_opacity("#000000", 0) == 0.0

    def test_explicit_opacity_is_clamped(self):
        assert resolve_bg_opacity("", 1.5) == 1.0


class TestFilterSafety:
    @pytest.mark.parametrize("color", ["white:x=0:y=0", "red,movie=/etc/passwd", "blue@0.5", "light blue"])
    def test_text_color_with_separators_uses_default(self, color):
        assert to_ffmpeg_color(color) == "0xFFFFFF"
        assert to_ffmpeg_color(color, "#00FF00") == "0x00FF00"

    def test_unusable_default_falls_back_to_white(self):
        assert to_ffmpeg_color("red,movie=/etc/passwd", "white:x=0") == "0xFFFFFF"

    @pytest.mark.parametrize("color", ["black,movie=/etc/passwd", "black:boxborderw=900", "navy;x"])
    def test_background_with_separators_is_black(self, color):
        assert to_ffmpeg_color_with_alpha(color, 0.5) == "0x0000007F"
