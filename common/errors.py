from __future__ import annotations


class CatalogError(Exception):
    """Base class for everything the asset catalog raises."""


class TraversalError(CatalogError):
    """Filesystem open/stat/read failure. Aborts the whole add() call."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"{path}: {cause}")
        self.path = path
        self.cause = cause


class ParseError(CatalogError):
    """Markup does not have the structure the scanner expects."""


class NamingError(CatalogError):
    """A path segment is left without any non-digit character."""


class CoordinateError(CatalogError):
    """Rectangle fields cannot be parsed or describe a negative size."""


class MetadataDecodeError(CatalogError):
    """The synthesized metadata blob does not decode to a mapping."""


class AssetNotFoundError(CatalogError, LookupError):
    """No asset is registered under the requested path."""


class WrongAssetKindError(CatalogError):
    """The asset exists but does not support the requested operation."""


class IllegalDimensionsError(CatalogError, ValueError):
    """Requested pixel dimensions are not positive."""


class RasterizerError(CatalogError):
    """The rasterizer failed to produce a pixel buffer."""
