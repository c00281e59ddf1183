from __future__ import annotations

import json
import math
from typing import Any, Dict, Mapping, Optional

import yaml

from common.errors import MetadataDecodeError
from common.geometry import center_of, parse_float
from common.types import ImageAsset, Rectangle


GEOMETRY_KEYS = ("x", "y", "width", "height", "centerx", "centery")


def _description_fields(desc: str) -> Dict[str, Any]:
    """
    Descriptions may carry "key: value" lines. Those become extra metadata
    fields, with every value kept as text. Free text, or anything else that is
    not a mapping, yields nothing beyond the raw description.
    """
    try:
        parsed = yaml.load(desc, Loader=yaml.BaseLoader)
    except yaml.YAMLError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _offset(record: Mapping[str, str], key: str) -> float:
    v = parse_float(record.get(key))
    return 0.0 if math.isnan(v) else v


def encode_meta(box: Rectangle, record: Optional[Mapping[str, str]] = None) -> bytes:
    """
    Build the JSON metadata blob for an asset covering `box`.

    Always contains x, y, width, height, centerx, centery (integers). Original
    rect attributes and description fields are carried along as-is.
    """
    record = record or {}
    meta: Dict[str, Any] = {k: v for k, v in record.items() if k}
    desc = record.get("description")
    if desc:
        meta.update(_description_fields(desc))
        meta["description"] = desc

    cx, cy = center_of(
        box,
        _offset(record, "transform-center-x"),
        _offset(record, "transform-center-y"),
    )
    meta.update(x=box.x, y=box.y, width=box.width, height=box.height, centerx=cx, centery=cy)

    try:
        blob = json.dumps(meta, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise MetadataDecodeError(f"JSON conversion error: {e}") from None
    decode_meta(blob)
    return blob


def decode_meta(blob: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(blob)
    except ValueError as e:
        raise MetadataDecodeError(f"JSON conversion error: {e}") from None
    if not isinstance(data, dict):
        raise MetadataDecodeError("Metadata is not a JSON object")
    return data


def new_image_asset(
    box: Rectangle,
    head: bytes,
    tail: bytes,
    record: Optional[Mapping[str, str]] = None,
) -> ImageAsset:
    """
    Create the asset for the part of the document inside `box`.

    Raises MetadataDecodeError if the metadata blob cannot be built.
    """
    return ImageAsset(
        head=head,
        viewport=f'viewBox="{box.to_viewbox()}"'.encode("ascii"),
        tail=tail,
        meta_json=encode_meta(box, record),
    )
