from __future__ import annotations
import zlib
from typing import Dict, Tuple

# Cycled by hashing the person id, so a person keeps its color across reloads.
IDENTITY_PALETTE = [
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd",
    "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf",
]

RELATION_COLORS: Dict[str, str] = {
    "FRIEND": "#fbbf24",
    "FAMILY": "#f87171",
    "COLLEAGUE": "#60a5fa",
}
DEFAULT_LINK_COLOR = "#9ca3af"

HIGHLIGHT_COLOR = "#fbbf24"
NEUTRAL_BORDER = "#ffffff"
DARK_TEXT = "#000000"
LIGHT_TEXT = "#ffffff"


def identity_color(person_id: str) -> str:
    idx = zlib.crc32(str(person_id).encode("utf-8")) % len(IDENTITY_PALETTE)
    return IDENTITY_PALETTE[idx]


def relation_color(kind) -> str:
    """Palette entry for a relation kind; unknown kinds get the default, never transparent."""
    key = getattr(kind, "value", kind)
    return RELATION_COLORS.get(str(key).upper() if key is not None else "", DEFAULT_LINK_COLOR)


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    h = hex_color.lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    if len(h) != 6:
        raise ValueError(f"Not a hex color: {hex_color!r}")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def luminance(hex_color: str) -> float:
    """Weighted RGB luminance in [0, 1]."""
    r, g, b = hex_to_rgb(hex_color)
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255


def text_color_for(fill: str) -> str:
    """Black on light fills, white on dark ones."""
    return DARK_TEXT if luminance(fill) > 0.5 else LIGHT_TEXT
