from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from common.errors import CoordinateError, MetadataDecodeError
from common.geometry import ROOT_RECT, local_rect, record_box, rect_from_record
from common.logging_setup import get_logger
from common.types import MetadataRecord, Rectangle
from common.utils import strip_digits

from .metadata import new_image_asset
from .store import AssetNode


log = get_logger("catalog.hierarchy")

Reporter = Callable[[str, str], object]


def _claim(order: List[int], rects: Sequence[Optional[Rectangle]], context: Rectangle) -> int:
    """
    Take the first unclaimed rectangle (in `order`) that lies inside `context`.
    Claimed slots are set to -1. Returns the record index or -1.
    """
    for i, idx in enumerate(order):
        if idx >= 0 and context.contains(rects[idx]):
            order[i] = -1
            return idx
    return -1


def place_sub_assets(
    records: Sequence[MetadataRecord],
    parent: AssetNode,
    head: bytes,
    tail: bytes,
    *,
    label: str,
    report: Reporter,
) -> List[Tuple[str, ...]]:
    """
    Register one sub-asset per metadata rect below `parent`.

    Rectangles are nested by containment: larger rectangles are considered
    first, and each one becomes a child of the innermost already-placed
    rectangle that contains it. Children of the document itself get absolute
    viewBoxes; deeper ones are relative to their parent's origin.

    `report(source, cause)` receives one call per rejected record. Returns the
    relative paths of the nodes that received an asset, in placement order.
    """
    rects: List[Optional[Rectangle]] = []
    order: List[int] = []
    for i, rec in enumerate(records):
        try:
            rects.append(rect_from_record(rec))
            order.append(i)
        except CoordinateError:
            rects.append(None)
            report(f"{label}/{rec.get('id', '')}", f'Cannot parse coordinates "{record_box(rec)}"')

    # Largest first; sorted() is stable so equal areas keep document order.
    order.sort(key=lambda i: -rects[i].area)  # type: ignore[union-attr]

    context = ROOT_RECT
    node = parent
    path: Tuple[str, ...] = ()
    stack: List[Tuple[Rectangle, AssetNode, Tuple[str, ...]]] = []
    placed: List[Tuple[str, ...]] = []

    while True:
        found = _claim(order, rects, context)
        if found < 0:
            if not stack:
                break
            context, node, path = stack.pop()
            continue

        rec = records[found]
        ident = rec.get("id", "")
        source = f"{label} => rect {ident}"
        segment = strip_digits(ident).lower()
        if not segment:
            report(source, "All path components must contain at least 1 non-digit character")
            continue

        stack.append((context, node, path))
        context = rects[found]  # type: ignore[assignment]
        node = node.child(segment)
        path = path + (segment,)

        outer = stack[-1][0]
        box = context if len(stack) == 1 else local_rect(context, outer)
        try:
            asset = new_image_asset(box, head, tail, rec)
        except MetadataDecodeError as e:
            report(source, str(e))
            continue
        node.set_asset(asset)
        placed.append(path)

    for idx in order:
        if idx >= 0:
            report(f"{label} => rect {records[idx].get('id', '')}",
                   "Rectangle lies outside the document coordinate range")

    log.debug("Placed sub-assets", extra={"extra": {"source": label, "records": len(records), "placed": len(placed)}})
    return placed
