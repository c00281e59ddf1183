from __future__ import annotations

import html
from typing import Dict, List

from common.errors import ParseError
from common.logging_setup import get_logger
from common.types import CanonicalDocument, MetadataRecord


log = get_logger("scanner")

LT, GT = ord("<"), ord(">")
SLASH, BANG, QMARK = ord("/"), ord("!"), ord("?")
EQ, COLON, SPACE = ord("="), ord(":"), ord(" ")

_WS = frozenset(b" \t\r\n")
_QUOTES = frozenset(b"\"'")
_NAME_CHARS = frozenset(
    b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_."
)
_TOPLEVEL_ATTRS = ("viewBox", "width", "height")

# A viewBox shorter than this cannot hold four numbers and is ignored.
MIN_VIEWBOX_LEN = 7

# Outcomes of an end tag / self-close.
_KEEP, _SKIP, _DONE = 0, 1, 2


class Rewriter:
    """
    In-place rewriter over one owned buffer.

    Bytes are copied from buf[pos] to buf[out]. Every transformation either
    copies or drops bytes, so out <= pos holds throughout and the output
    overwrites input that has already been consumed.

    Nesting `level` is incremented on every start tag and decremented on every
    end tag or self-close. A pending kill region is described by `kill_level`
    (the level that ends it, -1 if none) and `kill_out` (the output position of
    the "<" that opened it); when the level drops back to `kill_level` the
    output is truncated to `kill_out`.
    """

    def __init__(self, data: bytes, *, metadata_label: str = "METADATA"):
        self.buf = bytearray(data)
        self.metadata_label = metadata_label

        self.pos = 0
        self.out = 0
        self.level = 0

        self.kill_level = -1
        self.kill_out = 0
        self.in_metadata = False

        # Most recent start tag: local name and output position of its "<".
        self.tagname = ""
        self.start = 0
        self.in_tag = False
        self.attrname = ""

        self.attributes: MetadataRecord = {}
        self.metadata: List[MetadataRecord] = []
        self.toplevel: Dict[str, str] = {}

        # Output position of the ">" closing the root start tag.
        self.insert_at = 0

    # -------- public API --------

    def run(self) -> CanonicalDocument:
        while True:
            c = self._next()
            if c == LT:
                d = self._peek()
                if d == QMARK:
                    c = self._processing_instruction(c)
                elif d == BANG:
                    self._skip_declaration(c)
                    continue
                elif d == SLASH:
                    action = self._end_tag(c)
                    if action == _DONE:
                        break
                    if action == _SKIP:
                        continue
                    c = GT
                else:
                    c = self._start_tag(c)
                    if c == GT or c == SLASH:
                        # <foo> or <foo/: the character after the name is
                        # handled by the in-tag branch on the next iteration.
                        self.pos -= 1
                        continue
            elif not self.in_metadata and c in _WS:
                self._skip_ws()
                c = SPACE
            elif self.in_tag and c in _QUOTES:
                if self._quoted(c):
                    continue
            elif self.in_tag:
                if c == SLASH:
                    action = self._self_close(c)
                    if action == _DONE:
                        break
                    if action == _SKIP:
                        continue
                    c = GT
                if c == GT:
                    self.in_tag = False
                    if self.level == 1 and self.insert_at == 0:
                        self.insert_at = self.out
                elif c == EQ:
                    self.attrname = self._attr_name()
            self._put(c)

        if self.insert_at == 0:
            raise ParseError("Root element has no start tag")
        return self._result()

    # -------- markup constructs --------

    def _processing_instruction(self, c: int) -> int:
        while c != GT:
            self._put(c)
            c = self._next()
        return c

    def _skip_declaration(self, c: int) -> None:
        # NOTE: stops at the first ">", so a comment containing ">" is cut short.
        while c != GT:
            c = self._next()

    def _start_tag(self, c: int) -> int:
        self.in_tag = True
        self.start = self.out
        name_start = self.out + 1
        while c > SPACE and c != SLASH and c != GT:
            self._put(c)
            c = self._next()
            if c == COLON:
                name_start = self.out + 1
        self.tagname = self._text(name_start, self.out)
        if self.tagname == "rect":
            self.attributes = {}
        self.level += 1
        return c

    def _end_tag(self, c: int) -> int:
        tag_out = self.out
        name_start = self.out + 2
        while c != GT:
            self._put(c)
            c = self._next()
            if c == COLON:
                name_start = self.out + 1
        name = self._text(name_start, self.out).strip()
        if name == "desc":
            d = tag_out
            while self._at(d - 1) != GT:
                d -= 1
            self.attributes["description"] = html.unescape(self._text(d, tag_out))
        elif self.in_metadata and name == "rect":
            self.metadata.append(dict(self.attributes))
        return self._close_element()

    def _self_close(self, c: int) -> int:
        if self.in_metadata and self.tagname == "rect":
            self.metadata.append(dict(self.attributes))
        self._put(c)
        if self._next() != GT:
            raise ParseError(f"Expected '>' after '/' at offset {self.pos - 1}")
        return self._close_element()

    def _close_element(self) -> int:
        self.level -= 1
        if self.level < 0:
            raise ParseError(f"Unbalanced end tag at offset {self.pos}")
        if self.level == 0:
            self._put(GT)
            return _DONE
        if self.level == self.kill_level:
            self.out = self.kill_out
            self.kill_level = -1
            self.in_metadata = False
            self.in_tag = False
            return _SKIP
        return _KEEP

    def _quoted(self, q: int) -> bool:
        """Copy a quoted attribute value. Returns True if it was excised."""
        self._put(q)
        val_start = self.out
        d = self._next()
        while d != q:
            self._put(d)
            d = self._next()
        val = self._text(val_start, self.out)

        if self.level == 1 and self.attrname in _TOPLEVEL_ATTRS:
            self.toplevel[self.attrname] = val
            self.out = val_start - 1
            while self._at(self.out - 1) > SPACE:
                self.out -= 1
            self._skip_ws()
            return True

        if self.tagname == "rect":
            self.attributes[self.attrname] = val
        if (
            self.tagname == "g"
            and self.attrname in ("id", "label")
            and self.kill_level < 0
            and val == val.upper()
        ):
            self.kill_level = self.level - 1
            self.kill_out = self.start
            self.in_metadata = val == self.metadata_label
        return False

    def _attr_name(self) -> str:
        a = self.out
        while self._at(a - 1) in _NAME_CHARS:
            a -= 1
        return self._text(a, self.out)

    # -------- internals --------

    def _result(self) -> CanonicalDocument:
        data = bytes(self.buf[: self.out])
        head = data[: self.insert_at] + b"\n"
        tail = data[self.insert_at :]
        viewbox = self.toplevel.get("viewBox", "")
        if len(viewbox) < MIN_VIEWBOX_LEN:
            viewbox = f"0 0 {self.toplevel.get('width', '')} {self.toplevel.get('height', '')}"
        return CanonicalDocument(
            head=head,
            tail=tail,
            viewbox=viewbox,
            metadata=self.metadata,
            toplevel=dict(self.toplevel),
        )

    def _next(self) -> int:
        if self.pos >= len(self.buf):
            raise ParseError("Unexpected end of document")
        c = self.buf[self.pos]
        self.pos += 1
        return c

    def _peek(self) -> int:
        if self.pos >= len(self.buf):
            raise ParseError("Unexpected end of document")
        return self.buf[self.pos]

    def _at(self, i: int) -> int:
        if i < 0:
            raise ParseError("Markup starts in the middle of a construct")
        return self.buf[i]

    def _put(self, c: int) -> None:
        self.buf[self.out] = c
        self.out += 1

    def _skip_ws(self) -> None:
        n = len(self.buf)
        while self.pos < n and self.buf[self.pos] in _WS:
            self.pos += 1

    def _text(self, a: int, b: int) -> str:
        # Output keeps the raw bytes; harvested text gets U+FFFD for non-UTF-8.
        return self.buf[a:b].decode("utf-8", errors="replace")


def scan_document(data: bytes, *, metadata_label: str = "METADATA") -> CanonicalDocument:
    """
    Canonicalize `data` and harvest its metadata in one pass.

    Raises ParseError if the markup does not have the expected structure.
    """
    doc = Rewriter(data, metadata_label=metadata_label).run()
    log.debug(
        "Scanned document",
        extra={"extra": {"in_bytes": len(data), "out_bytes": len(doc.head) + len(doc.tail),
                         "rects": len(doc.metadata)}},
    )
    return doc
