"""
Unit tests for containment clustering of metadata rectangles
"""

import pytest
import json
import os
import sys
from unittest.mock import patch

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from catalog.hierarchy import place_sub_assets
from catalog.store import AssetNode
from common.errors import MetadataDecodeError

HEAD = b'<svg xmlns="http://www.w3.org/2000/svg" \n'
TAIL = b"></svg>"


def rec(ident, x, y, w, h, **extra):
    r = {"id": ident, "x": str(x), "y": str(y), "width": str(w), "height": str(h)}
    r.update(extra)
    return r


def viewbox(node):
    return node.asset.viewbox


def meta(node):
    return json.loads(node.asset.meta_json)


class Recorder:
    """Collects (source, cause) diagnostics"""

    def __init__(self):
        self.calls = []

    def __call__(self, source, cause):
        self.calls.append((source, cause))


@pytest.fixture
def report():
    return Recorder()


class TestContainment:
    """Nesting by rectangle containment"""

    def test_children_nest_in_container(self, report):
        """B and C lie inside A and are siblings, not nested in each other"""
        records = [rec("b", 10, 10, 20, 20), rec("c", 50, 50, 10, 10), rec("a", 0, 0, 100, 100)]
        root = AssetNode()
        placed = place_sub_assets(records, root, HEAD, TAIL, label="doc", report=report)

        assert set(root.children) == {"a"}
        a = root.children["a"]
        assert set(a.children) == {"b", "c"}
        assert a.children["b"].children == {}
        assert a.children["c"].children == {}
        assert placed == [("a",), ("a", "b"), ("a", "c")]
        assert report.calls == []

    def test_viewports_relative_to_parent(self, report):
        """Children of the document are absolute, deeper ones parent-relative"""
        records = [rec("outer", 100, 100, 100, 100), rec("inner", 110, 120, 20, 20), rec("dot", 115, 125, 4, 4)]
        root = AssetNode()
        place_sub_assets(records, root, HEAD, TAIL, label="doc", report=report)

        outer = root.children["outer"]
        inner = outer.children["inner"]
        dot = inner.children["dot"]
        assert viewbox(outer) == "100 100 100 100"
        assert viewbox(inner) == "10 20 20 20"
        assert viewbox(dot) == "5 5 4 4"
        assert meta(inner)["x"] == 10 and meta(inner)["y"] == 20

    def test_partial_overlap_gives_siblings(self, report):
        """Overlapping but non-containing rectangles stay at one level"""
        records = [rec("d", 0, 0, 10, 10), rec("e", 5, 5, 10, 10)]
        root = AssetNode()
        place_sub_assets(records, root, HEAD, TAIL, label="doc", report=report)
        assert set(root.children) == {"d", "e"}

    def test_equal_area_keeps_document_order(self, report):
        """Equal areas are visited in record order"""
        records = [rec("first", 0, 0, 10, 10), rec("second", 0, 0, 10, 10)]
        root = AssetNode()
        placed = place_sub_assets(records, root, HEAD, TAIL, label="doc", report=report)
        # identical rectangles: the second one nests inside the first
        assert placed == [("first",), ("first", "second")]

    def test_empty_rectangle_goes_deepest(self, report):
        """A zero-sized rectangle is claimed by the innermost context reached"""
        records = [rec("box", 0, 0, 50, 50), rec("pin", 500, 500, 0, 0)]
        root = AssetNode()
        placed = place_sub_assets(records, root, HEAD, TAIL, label="doc", report=report)
        assert placed == [("box",), ("box", "pin")]


class TestNaming:
    """Path segments derived from rect ids"""

    def test_numbered_ids_collapse_last_wins(self, report):
        """icon1 and icon2 share the segment 'icon'; the later one is stored"""
        records = [rec("icon1", 0, 0, 32, 32), rec("icon2", 32, 0, 32, 32)]
        root = AssetNode()
        placed = place_sub_assets(records, root, HEAD, TAIL, label="doc", report=report)

        assert set(root.children) == {"icon"}
        assert placed == [("icon",), ("icon",)]
        assert meta(root.children["icon"])["id"] == "icon2"
        assert viewbox(root.children["icon"]) == "32 0 32 32"

    def test_ids_are_case_folded(self, report):
        """Segments are lower-case"""
        root = AssetNode()
        place_sub_assets([rec("PlayButton", 0, 0, 4, 4)], root, HEAD, TAIL, label="doc", report=report)
        assert set(root.children) == {"playbutton"}

    def test_digit_only_id_skipped(self, report):
        """A digit-only id is reported; its rectangle is consumed without descent"""
        records = [rec("123", 0, 0, 100, 100), rec("b", 10, 10, 10, 10)]
        root = AssetNode()
        placed = place_sub_assets(records, root, HEAD, TAIL, label="doc", report=report)

        assert placed == [("b",)]
        assert viewbox(root.children["b"]) == "10 10 10 10"
        assert report.calls == [
            ("doc => rect 123", "All path components must contain at least 1 non-digit character")
        ]

    def test_missing_id_skipped(self, report):
        """A rect without id cannot be named"""
        root = AssetNode()
        r = rec("x", 0, 0, 1, 1)
        del r["id"]
        assert place_sub_assets([r], root, HEAD, TAIL, label="doc", report=report) == []
        assert len(report.calls) == 1


class TestRejectedRecords:
    """Records dropped before clustering"""

    def test_bad_coordinates_dropped(self, report):
        """Unparseable or negative rectangles are reported; siblings survive"""
        records = [
            rec("bad", "x", 0, 10, 10),
            rec("neg", 0, 0, -5, 10),
            rec("good", 0, 0, 10, 10),
        ]
        root = AssetNode()
        placed = place_sub_assets(records, root, HEAD, TAIL, label="sheet", report=report)

        assert placed == [("good",)]
        assert [src for src, _ in report.calls] == ["sheet/bad", "sheet/neg"]
        assert report.calls[0][1] == 'Cannot parse coordinates "x 0 10 10"'

    def test_free_text_description_registers(self, report):
        """Descriptions that are not key/value text still yield an asset"""
        root = AssetNode()
        r = rec("icon", 0, 0, 8, 8, description="Usage: click: opens the menu")
        placed = place_sub_assets([r], root, HEAD, TAIL, label="doc", report=report)

        assert placed == [("icon",)]
        assert meta(root.children["icon"])["description"] == "Usage: click: opens the menu"
        assert report.calls == []

    def test_metadata_failure_keeps_existing_asset(self, report):
        """A metadata failure never clears a stored asset"""
        root = AssetNode()
        place_sub_assets([rec("tile", 0, 0, 8, 8)], root, HEAD, TAIL, label="doc", report=report)
        before = root.children["tile"].asset

        with patch("catalog.hierarchy.new_image_asset", side_effect=MetadataDecodeError("JSON conversion error")):
            placed = place_sub_assets([rec("tile", 0, 0, 16, 16)], root, HEAD, TAIL, label="doc", report=report)

        assert placed == []
        assert root.children["tile"].asset is before
        assert report.calls == [("doc => rect tile", "JSON conversion error")]

    def test_outside_coordinate_range_reported(self, report):
        """Rectangles beyond the placeable range are reported, not dropped silently"""
        records = [rec("far", 1200000000, 0, 10, 10), rec("near", 0, 0, 10, 10)]
        root = AssetNode()
        placed = place_sub_assets(records, root, HEAD, TAIL, label="doc", report=report)

        assert placed == [("near",)]
        assert report.calls == [("doc => rect far", "Rectangle lies outside the document coordinate range")]

    def test_metadata_carries_record_fields(self, report):
        """The stored blob holds the rect attributes and geometry"""
        root = AssetNode()
        r = rec("ship", 0, 0, 40, 20, description="speed: 3", **{"transform-center-y": "4"})
        place_sub_assets([r], root, HEAD, TAIL, label="doc", report=report)
        m = meta(root.children["ship"])
        assert m["speed"] == "3"
        assert m["description"] == "speed: 3"
        assert (m["centerx"], m["centery"]) == (20, 6)
        assert root.children["ship"].asset.head is HEAD
