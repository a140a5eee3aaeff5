"""Color parsing for FFmpeg drawtext parameters.

FFmpeg accepts `0xRRGGBB`, `0xRRGGBBAA` and color names, so user colors
(`#RRGGBB`, `rgb(...)`, `rgba(...)`, names) are normalized to those forms.
"""
import re
from typing import Optional, Tuple

DEFAULT_TEXT_COLOR = "#FFFFFF"
DEFAULT_BG_OPACITY = 0.8

_RGB_PATTERN = re.compile(
    r"^rgba?\(\s*(-?\d+)\s*,\s*(-?\d+)\s*,\s*(-?\d+)\s*(?:,\s*(-?[\d.]+%?)\s*)?\)$",
    re.IGNORECASE,
)
_HEX_PATTERN = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_NAME_PATTERN = re.compile(r"^[A-Za-z]+$")


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def clamp_opacity(opacity: Optional[float]) -> float:
    """Clamp an opacity into [0, 1]; None counts as 0."""
    if opacity is None:
        return 0.0
    return clamp(float(opacity), 0.0, 1.0)


def _parse_hex(color: str) -> Optional[Tuple[int, int, int]]:
    match = _HEX_PATTERN.match(color)
    if not color.startswith("#") or not match:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def _parse_rgb(color: str) -> Optional[Tuple[int, int, int]]:
    match = _RGB_PATTERN.match(color)
    if not match:
        return None
    r, g, b = (int(clamp(int(part), 0, 255)) for part in match.group(1, 2, 3))
    return r, g, b


def parse_rgb(color: Optional[str]) -> Optional[Tuple[int, int, int]]:
    """Parse a hex or rgb()/rgba() color into an (r, g, b) tuple, else None."""
    color = (color or "").strip()
    if not color:
        return None
    if color.startswith("#"):
        return _parse_hex(color)
    if color.lower().startswith("rgb"):
        return _parse_rgb(color)
    return None


def is_named_color(color: Optional[str]) -> bool:
    """True for a bare color name such as `white` or `navy`."""
    return bool(_NAME_PATTERN.match(color or ""))


def to_ffmpeg_color(color: Optional[str], default: str = DEFAULT_TEXT_COLOR) -> str:
    """
    Convert a user color to an FFmpeg color without alpha.

    Hex and rgb()/rgba() become `0xRRGGBB` (any alpha is ignored); bare
    color names pass through unchanged. Empty or unusable colors fall back
    to `default`, and to white when the default is unusable too.
    """
    color = (color or "").strip()
    rgb = parse_rgb(color)
    if rgb:
        return "0x%02X%02X%02X" % rgb
    if is_named_color(color):
        return color

    default = (default or "").strip()
    rgb = parse_rgb(default)
    if rgb:
        return "0x%02X%02X%02X" % rgb
    if is_named_color(default):
        return default
    return "0xFFFFFF"


def to_ffmpeg_color_with_alpha(color: Optional[str], opacity: float) -> str:
    """
    Convert a background color plus opacity into `0xRRGGBBAA`.

    The opacity argument always wins over any alpha carried by the color.
    Empty or unusable colors become black; bare color names use FFmpeg's
    `name@opacity` syntax.
    """
    opacity = clamp_opacity(opacity)
    alpha = int(opacity * 255)
    color = (color or "").strip()

    rgb = parse_rgb(color)
    if rgb:
        return "0x%02X%02X%02X%02X" % (*rgb, alpha)
    if is_named_color(color):
        return f"{color}@{opacity:.2f}"
    return "0x000000%02X" % alpha


def resolve_bg_opacity(bg_color: Optional[str], bg_opacity: Optional[float]) -> float:
    """Background opacity for a cue: 0.8 when neither color nor opacity is set, else clamped."""
    if not (bg_opacity or 0) and not (bg_color or "").strip():
        return DEFAULT_BG_OPACITY
    return clamp_opacity(bg_opacity)
