from __future__ import annotations

import math
from typing import Mapping, Optional, Tuple

from common.errors import CoordinateError
from common.types import Rectangle


INT32_MAX = 2147483647

# Context rectangle the hierarchy builder starts from: -2^30 .. 2^30-1 on
# both axes. Rectangles reaching outside it are never placed.
ROOT_RECT = Rectangle(-1073741824, -1073741824, INT32_MAX, INT32_MAX)


# -------------------------
# Number parsing
# -------------------------
def parse_float(text: Optional[str]) -> float:
    """
    Parse a coordinate into a float. Returns NaN for anything unusable:
    missing text, syntax errors, non-finite values, |v| > 2^31-1.
    """
    if text is None:
        return math.nan
    try:
        num = float(text.strip())
    except ValueError:
        return math.nan
    if not math.isfinite(num) or abs(num) > INT32_MAX:
        return math.nan
    return num


def round_half_away(num: float) -> int:
    """Round to nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    if num < 0:
        return -int(-num + 0.5)
    return int(num + 0.5)


def parse_number(text: Optional[str]) -> int:
    num = parse_float(text)
    if math.isnan(num):
        raise CoordinateError(f"Cannot parse number {text!r}")
    return round_half_away(num)


# -------------------------
# Boxes
# -------------------------
def parse_box(box: str) -> Rectangle:
    """
    Parse "x y width height" (whitespace and/or comma separated, optional
    "px" units) into a Rectangle.
    """
    fields = box.replace("px", " ").replace(",", " ").split()
    if len(fields) != 4:
        raise CoordinateError(f'Cannot parse box coordinates "{box}"')
    try:
        x, y, w, h = (parse_number(f) for f in fields)
    except CoordinateError:
        raise CoordinateError(f'Cannot parse box coordinates "{box}"') from None
    if w < 0 or h < 0:
        raise CoordinateError(f'Negative size in box coordinates "{box}"')
    return Rectangle(x, y, w, h)


def record_box(record: Mapping[str, str]) -> str:
    """Box text for a harvested rect record."""
    return " ".join(record.get(k, "") for k in ("x", "y", "width", "height"))


def rect_from_record(record: Mapping[str, str]) -> Rectangle:
    return parse_box(record_box(record))


def local_rect(rect: Rectangle, parent: Rectangle) -> Rectangle:
    """Express `rect` relative to the origin of `parent`."""
    return Rectangle(rect.x - parent.x, rect.y - parent.y, rect.width, rect.height)


def center_of(rect: Rectangle, offset_x: float = 0.0, offset_y: float = 0.0) -> Tuple[int, int]:
    """
    Rotation center of an asset in its own coordinates. Offsets follow the
    transform-center-x/-y convention: y grows upward.
    """
    cx = round_half_away(rect.width / 2.0 + offset_x)
    cy = round_half_away(rect.height / 2.0 - offset_y)
    return cx, cy
