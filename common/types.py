from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple, Union


MetadataRecord = Dict[str, str]


class AssetKind(Enum):
    """Kinds of assets the catalog can hold."""

    IMAGE = "image"
    SOUND = "sound"


@dataclass(frozen=True, slots=True)
class Rectangle:
    """
    Integer rectangle in document coordinates.

    Attributes:
        x, y: top-left corner.
        width, height: extent, never negative.
    """
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("width/height must be >= 0")

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def union(self, other: "Rectangle") -> "Rectangle":
        """Smallest rectangle covering both; an empty rectangle contributes nothing."""
        if self.empty:
            return other
        if other.empty:
            return self
        x1 = min(self.x, other.x)
        y1 = min(self.y, other.y)
        x2 = max(self.x + self.width, other.x + other.width)
        y2 = max(self.y + self.height, other.y + other.height)
        return Rectangle(x1, y1, x2 - x1, y2 - y1)

    def contains(self, other: "Rectangle") -> bool:
        return other.union(self) == self

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

    def to_viewbox(self) -> str:
        return f"{self.x} {self.y} {self.width} {self.height}"


@dataclass(slots=True)
class CanonicalDocument:
    """
    Result of one scanner pass over a document.

    Attributes:
        head: markup up to the viewport insertion point; always ends in whitespace.
        tail: markup following the insertion point.
        viewbox: top-level viewBox text, or "0 0 width height" when the
            declared one is absent or degenerate.
        metadata: attributes of every rect harvested from the metadata group.
        toplevel: raw viewBox/width/height values removed from the root element.
    """
    head: bytes
    tail: bytes
    viewbox: str
    metadata: List[MetadataRecord]
    toplevel: Dict[str, str]


@dataclass(frozen=True, slots=True)
class ImageAsset:
    """
    A rectangular part of an SVG document.

    Inserting `viewport` between `head` and `tail` yields a complete document
    that renders exactly the rectangle described by `meta_json`.
    """
    head: bytes
    viewport: bytes
    tail: bytes
    meta_json: bytes
    kind: AssetKind = AssetKind.IMAGE

    @property
    def document(self) -> bytes:
        return self.head + self.viewport + self.tail

    @property
    def viewbox(self) -> str:
        # viewBox="x y w h"
        return self.viewport.decode("ascii").split('"')[1]


@dataclass(frozen=True, slots=True)
class SoundAsset:
    """Placeholder kind: sounds carry samples, never a viewport."""
    samples: bytes
    meta_json: bytes
    kind: AssetKind = AssetKind.SOUND


Asset = Union[ImageAsset, SoundAsset]

