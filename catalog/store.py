from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from common.errors import AssetNotFoundError
from common.types import Asset
from common.utils import join_path, split_path


PathLike = Union[str, Sequence[str]]


def _segments(path: PathLike) -> List[str]:
    if isinstance(path, str):
        return split_path(path)
    return list(path)


class AssetNode:
    """One path segment of the catalog. May hold an asset and children at once."""

    __slots__ = ("asset", "children")

    def __init__(self) -> None:
        self.asset: Optional[Asset] = None
        self.children: Dict[str, AssetNode] = {}

    def child(self, segment: str) -> "AssetNode":
        """Find or create the child for `segment`."""
        node = self.children.get(segment)
        if node is None:
            node = AssetNode()
            self.children[segment] = node
        return node

    def set_asset(self, asset: Optional[Asset]) -> None:
        # Replacing is wholesale; None never clears a stored asset.
        if asset is not None:
            self.asset = asset

    @property
    def has_asset(self) -> bool:
        return self.asset is not None


class AssetStore:
    """
    Path trie holding every registered asset.

    Paths are slash-separated and case-folded; "", "/" and "." name the root.
    Not safe for concurrent writers; AssetCatalog serializes access.
    """

    def __init__(self) -> None:
        self.root = AssetNode()

    # -------- public API --------

    def node(self, path: PathLike) -> AssetNode:
        """Return the node for `path`, creating intermediate nodes as needed."""
        n = self.root
        for seg in _segments(path):
            n = n.child(seg)
        return n

    def insert(self, path: PathLike, asset: Optional[Asset]) -> AssetNode:
        n = self.node(path)
        n.set_asset(asset)
        return n

    def find(self, path: PathLike) -> Optional[AssetNode]:
        """Return the node for `path` if it exists (with or without an asset)."""
        n = self.root
        for seg in _segments(path):
            n = n.children.get(seg)
            if n is None:
                return None
        return n

    def lookup(self, path: PathLike) -> AssetNode:
        """Return the node for `path` if it carries an asset."""
        n = self.find(path)
        if n is None or not n.has_asset:
            shown = path if isinstance(path, str) else join_path(list(path))
            raise AssetNotFoundError(f"No asset registered at {shown!r}")
        return n

    def list_prefix(self, prefix: PathLike = "") -> List[str]:
        """
        Full paths (no leading "/") of all assets at or below `prefix`, in no
        particular order. A prefix is always a whole path, never a partial name.
        """
        segs = _segments(prefix)
        n = self.find(segs)
        if n is None:
            return []
        return [join_path(list(p)) for p, node in self._walk(n, tuple(segs)) if node.has_asset]

    def stats(self) -> Dict[str, int]:
        nodes = assets = 0
        for _, node in self._walk(self.root, ()):
            nodes += 1
            assets += node.has_asset
        return {"nodes": nodes, "assets": assets}

    # -------- internals --------

    @staticmethod
    def _walk(start: AssetNode, prefix: Tuple[str, ...]) -> Iterator[Tuple[Tuple[str, ...], AssetNode]]:
        stack = [(prefix, start)]
        while stack:
            path, node = stack.pop()
            yield path, node
            for seg, sub in node.children.items():
                stack.append((path + (seg,), sub))
