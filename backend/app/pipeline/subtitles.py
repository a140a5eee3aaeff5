"""Subtitle cues to FFmpeg drawtext filter chains.

Styles are authored against a 720px tall preview canvas and scaled to the
1920px tall vertical output. Each cue produces up to three drawtext layers,
drawn in order:

1. shadow: a black, text-less box offset downward (only when the cue has a
   visible background) approximating a soft drop shadow
2. base: the text on its background box with a thin text shadow
3. highlight: the text alone in the active color, fading in over 85% of
   the cue (only when an active color differs from the base color)
"""
import math
from dataclasses import asdict, dataclass, fields
from typing import Iterable, List, Optional

from app.pipeline.colors import (
    clamp,
    resolve_bg_opacity,
    to_ffmpeg_color,
    to_ffmpeg_color_with_alpha,
)
from app.pipeline.fonts import resolve_font_path

CANVAS_HEIGHT = 720.0
OUTPUT_HEIGHT = 1920.0
SCALE_FACTOR = OUTPUT_HEIGHT / CANVAS_HEIGHT

DEFAULT_FONT_SIZE = 20
MIN_SCALED_FONT_SIZE = 36
BOTTOM_MARGIN = 40.0
BOX_PADDING = 12.0
RADIUS_PADDING_RATIO = 0.3
TEXT_SHADOW_OFFSET = 1.0
TEXT_SHADOW_COLOR = "black@0.5"
BOX_SHADOW_OFFSET = 4.0
DEFAULT_SHADOW_BLUR = 12
HIGHLIGHT_FADE_RATIO = 0.85
MIN_CUE_DURATION = 0.1


@dataclass
class SubtitleCue:
    """One timed subtitle entry with its own style."""
    text: str
    start_time: float
    end_time: float
    font_family: str = ""
    font_size: int = 0
    font_weight: int = 0
    color: str = ""
    bg_color: str = ""
    bg_opacity: float = 0.0
    position: str = "bottom"  # top, center, bottom
    bold: bool = False
    italic: bool = False
    border_radius: int = 0
    shadow_blur: int = 0
    transition: str = ""
    active_text_color: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "SubtitleCue":
        """Build a cue from a dict, ignoring unknown keys and nulls."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known and v is not None})

    def to_dict(self) -> dict:
        return asdict(self)


def _round(value: float) -> int:
    """Round half away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def escape_drawtext(text: str) -> str:
    """
    Escape cue text for use inside a quoted drawtext `text='...'` value.

    Single quotes close the quoted value, are escaped, then reopen it;
    colons are option separators.
    """
    return text.replace("'", "'\\\\\\''").replace(":", "\\:")


def scaled_font_size(font_size: Optional[int], scale: float = SCALE_FACTOR) -> int:
    size = font_size if font_size and font_size > 0 else DEFAULT_FONT_SIZE
    return max(_round(size * scale), MIN_SCALED_FONT_SIZE)


def box_border(border_radius: Optional[int], scale: float = SCALE_FACTOR) -> int:
    minimum = _round(BOX_PADDING * scale)
    padded = _round((BOX_PADDING + (border_radius or 0) * RADIUS_PADDING_RATIO) * scale)
    return max(padded, minimum)


def anchor_y(position: Optional[str], scale: float = SCALE_FACTOR) -> float:
    """Vertical center of the text box in output pixels."""
    position = (position or "").strip().lower()
    if position == "top":
        target = BOTTOM_MARGIN
    elif position == "center":
        target = CANVAS_HEIGHT / 2
    else:
        target = CANVAS_HEIGHT - BOTTOM_MARGIN
    return target * scale


def visible_window(start_time: float, end_time: float) -> tuple:
    """Clamp a cue window so it never has a non-positive duration."""
    start = max(0.0, float(start_time or 0))
    end = float(end_time or 0)
    if end - start < MIN_CUE_DURATION:
        end = start + MIN_CUE_DURATION
    return start, end


def shadow_opacity(blur: int) -> float:
    return clamp(0.18 + blur / 60.0, 0.2, 0.55)


def build_cue_filters(cue: SubtitleCue, scale: float = SCALE_FACTOR) -> List[str]:
    """Drawtext layers for one cue: shadow, base, then highlight."""
    if not (cue.text or "").strip():
        return []

    text = escape_drawtext(cue.text)
    font_size = scaled_font_size(cue.font_size, scale)
    font_path = resolve_font_path(cue.font_family, cue.font_weight, cue.bold)

    text_color = to_ffmpeg_color(cue.color)
    bg_opacity = resolve_bg_opacity(cue.bg_color, cue.bg_opacity)
    bg_color = to_ffmpeg_color_with_alpha(cue.bg_color, bg_opacity)
    border = box_border(cue.border_radius, scale)

    start, end = visible_window(cue.start_time, cue.end_time)
    x_expr = "(w-text_w)/2"
    y_expr = f"({anchor_y(cue.position, scale):.2f})-text_h/2"
    enable = f"enable='between(t,{start:.2f},{end:.2f})'"
    common = f"text='{text}':fontfile={font_path}:fontsize={font_size}"

    layers = []

    if bg_opacity > 0:
        blur = cue.shadow_blur if cue.shadow_blur and cue.shadow_blur > 0 else DEFAULT_SHADOW_BLUR
        spread = _round(blur * scale / 6.0)
        shadow_color = "0x000000%02X" % _round(shadow_opacity(blur) * 255)
        offset = _round(BOX_SHADOW_OFFSET * scale)
        layers.append(
            f"drawtext={common}:fontcolor=0x000000@0:box=1:boxcolor={shadow_color}"
            f":boxborderw={border + spread}:x={x_expr}:y={y_expr}+{offset}:{enable}"
        )

    text_shadow_y = max(_round(TEXT_SHADOW_OFFSET * scale), 1)
    layers.append(
        f"drawtext={common}:fontcolor={text_color}:box=1:boxcolor={bg_color}"
        f":boxborderw={border}:x={x_expr}:y={y_expr}:{enable}"
        f":shadowx=0:shadowy={text_shadow_y}:shadowcolor={TEXT_SHADOW_COLOR}"
    )

    active = (cue.active_text_color or "").strip()
    if active and active != (cue.color or "").strip():
        active_color = to_ffmpeg_color(active, cue.color or "#FFFFFF")
        fade = (end - start) * HIGHLIGHT_FADE_RATIO
        layers.append(
            f"drawtext={common}:fontcolor={active_color}:box=0:x={x_expr}:y={y_expr}:{enable}"
            f":alpha='min(1\\,max(0\\,(t-{start:.2f})/{fade:.2f}))'"
        )

    return layers


def build_subtitles_filter(cues: Iterable[SubtitleCue], scale: float = SCALE_FACTOR) -> str:
    """
    Build one comma-joined filter expression for all cues.

    Cues keep their input order and are not merged; overlapping cues stack.

    Args:
        cues: Subtitle cues in display order
        scale: Multiplier from canvas pixels to output pixels

    Returns:
        Filter chain string, empty when no cue has visible text
    """
    filters: List[str] = []
    for cue in cues:
        filters.extend(build_cue_filters(cue, scale))
    return ",".join(filters)
