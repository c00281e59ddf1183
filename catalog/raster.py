"""
Rasterizer adapter: SVG markup -> packed pixel buffer.

Pixels come back as a flat numpy uint32 array of width*height values,
row-major, each one premultiplied ARGB32 (alpha in the top 8 bits, then red,
green, blue), in native byte order. 50% transparent red is 0x80800000.
"""
from __future__ import annotations

import io
from typing import Optional, Protocol

import numpy as np
from PIL import Image

from common.errors import RasterizerError
from common.logging_setup import get_logger

# Optional native backend (needs the cairo shared library)
_CAIROSVG_AVAILABLE = False
_CAIROSVG_INIT_ERR: Optional[str] = None
try:
    import cairosvg
    _CAIROSVG_AVAILABLE = True
except Exception as e:  # pragma: no cover
    cairosvg = None
    _CAIROSVG_INIT_ERR = str(e)


log = get_logger("catalog.raster")


class Rasterizer(Protocol):
    def render(self, head: bytes, viewport: bytes, tail: bytes, width: int, height: int) -> np.ndarray:
        ...


def pack_argb32(rgba: np.ndarray) -> np.ndarray:
    """(H,W,4) straight-alpha RGBA uint8 -> flat premultiplied ARGB32 uint32."""
    px = np.asarray(rgba, dtype=np.uint32)
    a = px[..., 3]
    r = (px[..., 0] * a + 127) // 255
    g = (px[..., 1] * a + 127) // 255
    b = (px[..., 2] * a + 127) // 255
    packed = (a << 24) | (r << 16) | (g << 8) | b
    return packed.reshape(-1).astype(np.uint32, copy=False)


class CairoRasterizer:
    """Renders through cairosvg; Pillow decodes, numpy packs."""

    def render(self, head: bytes, viewport: bytes, tail: bytes, width: int, height: int) -> np.ndarray:
        if not _CAIROSVG_AVAILABLE:
            raise RasterizerError(f"cairosvg unavailable: {_CAIROSVG_INIT_ERR}")
        document = head + viewport + tail
        try:
            png = cairosvg.svg2png(bytestring=document, output_width=width, output_height=height)
            img = Image.open(io.BytesIO(png)).convert("RGBA")
        except Exception as e:
            raise RasterizerError(f"Rendering failed: {e}") from e

        if img.size != (width, height):
            log.debug("Rasterizer size mismatch", extra={"extra": {"got": img.size, "want": (width, height)}})
            canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
            canvas.paste(img.crop((0, 0, min(width, img.width), min(height, img.height))), (0, 0))
            img = canvas
        return pack_argb32(np.asarray(img, dtype=np.uint8))
