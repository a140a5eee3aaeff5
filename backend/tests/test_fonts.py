"""Tests for subtitle font resolution."""
from app.pipeline.fonts import (
    FALLBACK_FONT,
    FONT_LIBRARY,
    effective_weight,
    normalize_family,
    resolve_font_path,
)


class TestNormalizeFamily:
    def test_known_family_is_case_and_whitespace_insensitive(self):
        assert normalize_family("  Open   SANS ") == "open sans"

    def test_aliases_match_substrings(self):
        assert normalize_family("Space Grotesk Variable") == "space grotesk"
        assert normalize_family("Playfair") == "playfair display"
        assert normalize_family("Courier") == "courier new"
        assert normalize_family("JetBrains Mono") == "monospace"
        assert normalize_family("Inter Tight") == "inter"

    def test_unknown_or_empty_family_maps_to_default(self):
        assert normalize_family("Comic Sans") == "default"
        assert normalize_family("") == "default"
        assert normalize_family(None) == "default"


class TestEffectiveWeight:
    def test_missing_weight_defaults_to_regular(self):
        assert effective_weight(0) == 400
        assert effective_weight(None) == 400

    def test_bold_raises_light_weights(self):
        assert effective_weight(300, bold=True) == 600
        assert effective_weight(None, bold=True) == 600

    def test_bold_keeps_heavier_weights(self):
        assert effective_weight(800, bold=True) == 800


class TestResolveFontPath:
    def test_exact_weight(self):
        assert resolve_font_path("Poppins", 400) == "/usr/share/fonts/liberation/LiberationSans-Regular.ttf"
        assert resolve_font_path("Poppins", 700) == "/usr/share/fonts/liberation/LiberationSans-Bold.ttf"

    def test_nearest_weight_wins(self):
        # 900 is nearest to 700; 100 is nearest to 400
        assert resolve_font_path("Courier New", 900) == "/usr/share/fonts/liberation/LiberationMono-Bold.ttf"
        assert resolve_font_path("Courier New", 100) == "/usr/share/fonts/liberation/LiberationMono-Regular.ttf"

    def test_tie_goes_to_first_entry(self):
        # 550 is 50 away from both 600 and 500; 600 comes first in the table
        assert resolve_font_path("Playfair Display", 550) == "/usr/share/fonts/freefont/FreeSerifBold.ttf"

    def test_bold_flag_selects_bold_file(self):
        assert resolve_font_path("Inter", 400, bold=True) == "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf"

    def test_light_weight_in_default_family(self):
        assert resolve_font_path(None, 300) == "/usr/share/fonts/liberation/LiberationSans-Regular.ttf"

    def test_unknown_family_uses_default_table(self):
        assert resolve_font_path("Unknown Family", 400) == "/usr/share/fonts/dejavu/DejaVuSans.ttf"

    def test_resolution_is_deterministic(self):
        first = resolve_font_path("Space Grotesk", 650)
        assert all(resolve_font_path("Space Grotesk", 650) == first for _ in range(5))

    def test_every_family_resolves_to_a_table_path(self):
        for family, variants in FONT_LIBRARY.items():
            paths = {path for _, path in variants}
            assert resolve_font_path(family, 400) in paths
        assert FALLBACK_FONT
