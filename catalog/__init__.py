"""
Catalog — hierarchical store of graphics assets

- service: AssetCatalog, the add/list/meta/image façade
- hierarchy: nests the rectangles of a document's metadata group by
  containment and registers one sub-asset per rectangle
- store: path trie keyed by case-folded, digit-stripped segments
- metadata: JSON metadata blob attached to every asset
- raster: cairosvg-backed rasterizer producing packed ARGB32 pixels
- diagnostics: append-only log of documents/records that were skipped

Usage:
    from catalog import AssetCatalog
    cat = AssetCatalog()
    cat.add("assets")
    print(sorted(cat.list("/")), cat.diagnostics.lines())
"""
from .diagnostics import Diagnostics
from .raster import CairoRasterizer, Rasterizer
from .service import AssetCatalog
from .store import AssetNode, AssetStore

__all__ = ["AssetCatalog", "AssetNode", "AssetStore", "CairoRasterizer", "Diagnostics", "Rasterizer"]
