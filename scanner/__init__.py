"""
Scanner — single-pass SVG canonicalizer

Rewrites an SVG document in place and, in the same pass, harvests:
- the root element's viewBox/width/height (removed from the output)
- the attributes of every <rect> inside the hidden metadata group
  (plus the text of a <desc> child as "description")
- the position where a new viewBox attribute must be inserted

Groups whose id or label is entirely upper-case are authoring-only layers and
are cut out of the output.

Usage:
    from scanner import scan_document
    doc = scan_document(Path("icons.svg").read_bytes())
    svg = doc.head + b'viewBox="' + doc.viewbox.encode() + b'"' + doc.tail
"""
from .rewriter import Rewriter, scan_document

__all__ = ["Rewriter", "scan_document"]
