"""Severity bands for usage percentages."""

from enum import IntEnum

from .config import COLOR_GREEN, COLOR_ORANGE, COLOR_RED, COLOR_YELLOW


class Band(IntEnum):
    """Ordered by severity, so bands compare with < and >."""
    GREEN = 0
    YELLOW = 1
    ORANGE = 2
    RED = 3


_BAND_COLORS = {
    Band.GREEN: COLOR_GREEN,
    Band.YELLOW: COLOR_YELLOW,
    Band.ORANGE: COLOR_ORANGE,
    Band.RED: COLOR_RED,
}


def classify(pct: float, yellow: float, orange: float, red: float) -> Band:
    """Return the band for a percentage given the three cut points."""
    if pct < yellow:
        return Band.GREEN
    elif pct < orange:
        return Band.YELLOW
    elif pct < red:
        return Band.ORANGE
    else:
        return Band.RED


def color_for_band(band: Band) -> str:
    return _BAND_COLORS[band]
