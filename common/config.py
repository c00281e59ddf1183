from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml


DEFAULT_CONFIG_PATH = "config/params.yaml"

DEFAULTS: Dict = {
    "catalog": {
        "svg_extensions": [".svg"],
        "metadata_label": "METADATA",
    },
    "logging": {"level": "INFO", "format": "json"},
}


def _merge(base: Dict, override: Dict) -> Dict:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_params(path: Optional[str] = None) -> Dict:
    """
    Read the YAML params file; missing files and missing keys fall back to DEFAULTS.
    """
    p = Path(path or DEFAULT_CONFIG_PATH)
    if not p.exists():
        return copy.deepcopy(DEFAULTS)
    with p.open("r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{p}: expected a mapping at top level")
    return _merge(DEFAULTS, data)


@dataclass
class CatalogConfig:
    """Settings that control how documents are turned into assets."""

    svg_extensions: Tuple[str, ...] = (".svg",)
    metadata_label: str = "METADATA"
    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_params(cls, params: Dict) -> "CatalogConfig":
        cat = params.get("catalog", {})
        lg = params.get("logging", {})
        exts = tuple(
            e.lower() if e.startswith(".") else "." + e.lower()
            for e in cat.get("svg_extensions", [".svg"])
        )
        return cls(
            svg_extensions=exts,
            metadata_label=str(cat.get("metadata_label", "METADATA")),
            log_level=str(lg.get("level", "INFO")),
            log_format=str(lg.get("format", "json")),
        )

    @classmethod
    def load(cls, path: Optional[str] = None) -> "CatalogConfig":
        return cls.from_params(load_params(path))
