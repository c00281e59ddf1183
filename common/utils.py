from __future__ import annotations

import posixpath
import time
from typing import List


DIGITS = "0123456789"


def split_path(path: str) -> List[str]:
    """
    Case-fold and normalize a slash-separated asset path into segments.
    "", "/" and "." all denote the root (no segments). A leading "/" is optional.
    """
    pth = posixpath.normpath(path.replace("\\", "/").lower()) if path else ""
    if pth in ("/", "//", "."):
        return []
    return [p for p in pth.split("/") if p]


def join_path(segments: List[str]) -> str:
    return "/".join(segments)


def strip_digits(segment: str) -> str:
    """Remove trailing ASCII digits so numbered variants share one path."""
    return segment.rstrip(DIGITS)


def timer_ms(func):
    """
    Decorator that returns (result, elapsed_ms) for benchmarking small functions.
    """
    def wrapper(*args, **kwargs):
        t0 = time.perf_counter()
        out = func(*args, **kwargs)
        dt_ms = (time.perf_counter() - t0) * 1e3
        return out, dt_ms
    return wrapper
