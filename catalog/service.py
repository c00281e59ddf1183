from __future__ import annotations

import dataclasses
import os
import stat
import threading
from collections.abc import MutableMapping
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np

from common.config import CatalogConfig
from common.errors import (
    CoordinateError,
    IllegalDimensionsError,
    MetadataDecodeError,
    NamingError,
    ParseError,
    RasterizerError,
    TraversalError,
    WrongAssetKindError,
)
from common.geometry import parse_box
from common.logging_setup import get_logger, setup_logging
from common.types import AssetKind
from common.utils import split_path, strip_digits, timer_ms
from scanner import scan_document

from .diagnostics import Diagnostics
from .hierarchy import place_sub_assets
from .metadata import decode_meta, new_image_asset
from .raster import CairoRasterizer, Rasterizer
from .store import AssetStore


log = get_logger("catalog")

_timed_scan = timer_ms(scan_document)


def document_segments(path: str) -> List[str]:
    """
    Catalog path for a document: case-folded, normalized, extension removed,
    trailing digits stripped from every segment.
    """
    stem, _ = os.path.splitext(path)
    segments = []
    for seg in split_path(stem):
        s = strip_digits(seg)
        if not s:
            raise NamingError("All path components must contain at least 1 non-digit character")
        segments.append(s)
    if not segments:
        raise NamingError("Document path has no usable components")
    return segments


class AssetCatalog:
    """
    The catalog of graphics assets and the only way to query it.

        catalog = AssetCatalog()
        catalog.add("assets")                 # directories are scanned recursively
        for path in catalog.list("/"):
            meta = catalog.meta(path)
            pixels = catalog.image(path, meta["width"], meta["height"])

    Per-document problems never abort add(); they end up in `diagnostics`.
    All store access goes through one re-entrant lock: queries from other
    threads wait until an in-flight add() has finished.
    """

    def __init__(
        self,
        config: Optional[CatalogConfig] = None,
        *,
        rasterizer: Optional[Rasterizer] = None,
        store: Optional[AssetStore] = None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.config = config or CatalogConfig()
        self.store = store or AssetStore()
        self.diagnostics = diagnostics or Diagnostics()
        self.rasterizer = rasterizer or CairoRasterizer()
        self._lock = threading.RLock()
        self._handlers: Dict[str, Callable[[str, bytes], None]] = {
            ext: self._add_svg for ext in self.config.svg_extensions
        }

    @classmethod
    def from_config_file(cls, path: Optional[str] = None, **kwargs: Any) -> "AssetCatalog":
        """Build a catalog from a params.yaml file and apply its logging settings."""
        config = CatalogConfig.load(path)
        setup_logging(config.log_level, config.log_format)
        return cls(config, **kwargs)

    # -------- public API --------

    def add(self, path: Union[str, "os.PathLike[str]"]) -> None:
        """
        Register the document at `path`, or every document below it if it is
        a directory. Directory entries are visited depth-first in name order,
        so among numbered variants of one path the last name processed wins.

        Raises TraversalError if the filesystem cannot be read.
        """
        pth = os.fspath(path)
        with self._lock:
            self._add(pth)
            log.info("Catalog updated", extra={"extra": {"path": pth, **self.store.stats(),
                                                         "diagnostics": len(self.diagnostics)}})

    def list(self, prefix: str = "") -> List[str]:
        """Unsorted full paths of all assets at or below `prefix`."""
        with self._lock:
            return self.store.list_prefix(prefix)

    def meta(self, path: str, target: Any = None) -> Any:
        """
        Decode the metadata of the asset at `path`.

        `target` selects the result: None -> dict; a mutable mapping -> updated
        in place and returned; a dataclass type -> instance built from the
        fields it declares; any other callable -> called with the dict.
        """
        with self._lock:
            blob = self.store.lookup(path).asset.meta_json  # type: ignore[union-attr]
        data = decode_meta(blob)
        if target is None:
            return data
        if isinstance(target, MutableMapping):
            target.update(data)
            return target
        if isinstance(target, type) and dataclasses.is_dataclass(target):
            names = {f.name for f in dataclasses.fields(target)}
            return target(**{k: v for k, v in data.items() if k in names})
        if callable(target):
            return target(data)
        raise TypeError(f"Unsupported metadata target {type(target).__name__}")

    def image(self, path: str, width: int, height: int) -> np.ndarray:
        """
        Render the image asset at `path` into width*height packed ARGB32 pixels.

        Raises AssetNotFoundError, WrongAssetKindError, IllegalDimensionsError
        (before any rendering happens) or RasterizerError.
        """
        with self._lock:
            asset = self.store.lookup(path).asset
        if asset.kind is not AssetKind.IMAGE:  # type: ignore[union-attr]
            raise WrongAssetKindError(f"{path}: asset kind {asset.kind.value} cannot be rendered")  # type: ignore[union-attr]
        if width <= 0 or height <= 0:
            raise IllegalDimensionsError(f"Illegal image dimensions {width}x{height}")
        try:
            return self.rasterizer.render(asset.head, asset.viewport, asset.tail, int(width), int(height))  # type: ignore[union-attr]
        except RasterizerError:
            raise
        except Exception as e:
            raise RasterizerError(f"{path}: {e}") from e

    # -------- internals --------

    def _add(self, pth: str) -> None:
        try:
            st = os.stat(pth)
        except OSError as e:
            raise TraversalError(pth, e) from e

        if stat.S_ISDIR(st.st_mode):
            try:
                names = sorted(os.listdir(pth))
            except OSError as e:
                raise TraversalError(pth, e) from e
            for name in names:
                self._add(os.path.join(pth, name))
            return

        handler = self._handlers.get(os.path.splitext(pth)[1].lower())
        if handler is None:
            return
        try:
            with open(pth, "rb") as f:
                data = f.read()
        except OSError as e:
            raise TraversalError(pth, e) from e

        try:
            handler(pth, data)
        except (ParseError, NamingError) as e:
            self.diagnostics.append(pth, str(e))

    def _add_svg(self, pth: str, data: bytes) -> None:
        segments = document_segments(pth)
        doc, dt_ms = _timed_scan(data, metadata_label=self.config.metadata_label)

        node = self.store.node(segments)
        try:
            asset = new_image_asset(parse_box(doc.viewbox), doc.head, doc.tail)
        except (CoordinateError, MetadataDecodeError) as e:
            self.diagnostics.append(pth, str(e))
        else:
            node.set_asset(asset)

        placed = place_sub_assets(
            doc.metadata,
            node,
            doc.head,
            doc.tail,
            label=pth,
            report=self.diagnostics.append,
        )
        log.debug(
            "Added SVG document",
            extra={"extra": {"path": pth, "asset": "/".join(segments), "sub_assets": len(placed),
                             "scan_ms": round(dt_ms, 3)}},
        )


__all__ = ["AssetCatalog", "document_segments"]
