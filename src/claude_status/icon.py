"""Tray icon artwork: a ring gauge filled to the current usage."""

from typing import Callable

from PIL import Image, ImageDraw

from .config import COLOR_DIM, COLOR_RED
from .shared_state import StatusSnapshot

ICON_SIZE = 64

_TRACK_COLOR = "#313244"
_BG_COLOR = "#1e1e2e"


def _hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Convert '#rrggbb' to (r, g, b)."""
    h = hex_color.lstrip("#")
    return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))


def create_icon_image(pct: float | None, color: str, size: int = ICON_SIZE) -> Image.Image:
    """Draw a ring gauge filled clockwise from 12 o'clock to pct.

    pct=None draws an empty dimmed ring (no data / needs login).
    """
    # Render at 2x then downsample for anti-aliasing
    s = size * 2
    img = Image.new("RGBA", (s, s), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    pad = 4
    ring = max(6, s // 7)
    box = [pad, pad, s - pad - 1, s - pad - 1]

    draw.ellipse(box, fill=_hex_to_rgb(_BG_COLOR))
    draw.arc(box, start=0, end=360, fill=_hex_to_rgb(_TRACK_COLOR), width=ring)

    if pct is None:
        dim = _hex_to_rgb(COLOR_DIM)
        inner = s // 2 - ring
        draw.ellipse([s // 2 - inner // 3, s // 2 - inner // 3, s // 2 + inner // 3, s // 2 + inner // 3], fill=dim)
    else:
        pct = max(0.0, min(100.0, pct))
        rgb = _hex_to_rgb(color)
        if pct > 0:
            draw.arc(box, start=-90, end=-90 + 360 * pct / 100.0, fill=rgb, width=ring)
        # Solid center dot in the band color
        inner = s // 2 - ring - pad
        draw.ellipse([s // 2 - inner // 2, s // 2 - inner // 2, s // 2 + inner // 2, s // 2 + inner // 2], fill=rgb)

    return img.resize((size, size), resample=Image.LANCZOS)


def icon_state(data: StatusSnapshot, color_for: Callable[[float], str]) -> tuple[float | None, str]:
    """Gauge value and color for a snapshot: the more urgent of the two windows."""
    if data.needs_login:
        return None, COLOR_RED
    usage = data.usage
    if usage is None:
        return None, color_for(0.0)
    worst = max(usage.five_hour_pct or 0.0, usage.seven_day_pct or 0.0)
    return worst, color_for(worst)
