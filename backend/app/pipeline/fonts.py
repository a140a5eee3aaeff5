"""Font family and weight resolution for burned-in subtitles."""
from typing import Dict, List, Optional, Tuple

DEFAULT_FAMILY = "default"
DEFAULT_WEIGHT = 400
EMPHASIS_MIN_WEIGHT = 600
FALLBACK_FONT = "/usr/share/fonts/dejavu/DejaVuSans.ttf"

_DEJAVU = "/usr/share/fonts/dejavu"
_LIBERATION = "/usr/share/fonts/liberation"
_FREEFONT = "/usr/share/fonts/freefont"

# family -> (weight, font file) pairs; order matters for tie-breaking
FONT_LIBRARY: Dict[str, List[Tuple[int, str]]] = {
    "default": [
        (700, f"{_DEJAVU}/DejaVuSans-Bold.ttf"),
        (600, f"{_DEJAVU}/DejaVuSans-Bold.ttf"),
        (500, f"{_DEJAVU}/DejaVuSans.ttf"),
        (400, f"{_DEJAVU}/DejaVuSans.ttf"),
        (300, f"{_LIBERATION}/LiberationSans-Regular.ttf"),
    ],
    "inter": [
        (700, f"{_DEJAVU}/DejaVuSans-Bold.ttf"),
        (600, f"{_DEJAVU}/DejaVuSans-Bold.ttf"),
        (500, f"{_DEJAVU}/DejaVuSans.ttf"),
        (400, f"{_DEJAVU}/DejaVuSans.ttf"),
    ],
    "poppins": [
        (700, f"{_LIBERATION}/LiberationSans-Bold.ttf"),
        (600, f"{_LIBERATION}/LiberationSans-Bold.ttf"),
        (500, f"{_LIBERATION}/LiberationSans-Regular.ttf"),
        (400, f"{_LIBERATION}/LiberationSans-Regular.ttf"),
    ],
    "space grotesk": [
        (700, f"{_LIBERATION}/LiberationSans-Bold.ttf"),
        (600, f"{_LIBERATION}/LiberationSans-Bold.ttf"),
        (500, f"{_LIBERATION}/LiberationSans-Regular.ttf"),
        (400, f"{_LIBERATION}/LiberationSans-Regular.ttf"),
    ],
    "playfair display": [
        (700, f"{_FREEFONT}/FreeSerifBold.ttf"),
        (600, f"{_FREEFONT}/FreeSerifBold.ttf"),
        (500, f"{_FREEFONT}/FreeSerif.ttf"),
        (400, f"{_FREEFONT}/FreeSerif.ttf"),
    ],
    "open sans": [
        (700, f"{_LIBERATION}/LiberationSans-Bold.ttf"),
        (600, f"{_LIBERATION}/LiberationSans-Bold.ttf"),
        (500, f"{_LIBERATION}/LiberationSans-Regular.ttf"),
        (400, f"{_LIBERATION}/LiberationSans-Regular.ttf"),
    ],
    "courier new": [
        (700, f"{_LIBERATION}/LiberationMono-Bold.ttf"),
        (400, f"{_LIBERATION}/LiberationMono-Regular.ttf"),
    ],
    "monospace": [
        (700, f"{_LIBERATION}/LiberationMono-Bold.ttf"),
        (400, f"{_LIBERATION}/LiberationMono-Regular.ttf"),
    ],
}

# Substring aliases, checked in order
_ALIASES: List[Tuple[Tuple[str, ...], str]] = [
    (("space", "grotesk"), "space grotesk"),
    (("playfair",), "playfair display"),
    (("courier",), "courier new"),
    (("mono",), "monospace"),
    (("open sans",), "open sans"),
    (("poppins",), "poppins"),
    (("inter",), "inter"),
]


def normalize_family(font_family: Optional[str]) -> str:
    """Map a requested family name to a key of FONT_LIBRARY."""
    family = " ".join((font_family or "").lower().split())
    if not family:
        return DEFAULT_FAMILY

    for needles, canonical in _ALIASES:
        if all(needle in family for needle in needles):
            return canonical

    return family if family in FONT_LIBRARY else DEFAULT_FAMILY


def effective_weight(weight: Optional[int], bold: bool = False) -> int:
    """Target weight after defaults and the bold flag are applied."""
    target = weight if weight and weight > 0 else DEFAULT_WEIGHT
    if bold and target < EMPHASIS_MIN_WEIGHT:
        target = EMPHASIS_MIN_WEIGHT
    return target


def resolve_font_path(font_family: Optional[str], weight: Optional[int] = None, bold: bool = False) -> str:
    """
    Pick the font file closest to the requested family and weight.

    Args:
        font_family: Requested family name (case and whitespace insensitive)
        weight: Requested CSS-style weight (defaults to 400)
        bold: Emphasis flag, raises the target weight to at least 600

    Returns:
        Path to a font file. Ties go to the first entry in table order.
    """
    variants = FONT_LIBRARY.get(normalize_family(font_family))
    if not variants:
        return FALLBACK_FONT

    target = effective_weight(weight, bold)

    best_path = variants[0][1]
    best_diff = None
    for variant_weight, path in variants:
        diff = abs(target - variant_weight)
        if best_diff is None or diff < best_diff:
            best_diff = diff
            best_path = path

    return best_path
