from __future__ import annotations

from pathlib import Path
from typing import Dict

import yaml

from ..config import settings

_UQC_CACHE: Dict[str, Dict] = {}


def load_uqc_map(path: str | Path | None = None) -> Dict:
    """
    Load and cache the unit -> UQC mapping.
    """
    target = Path(path) if path else settings.uqc_map_path
    cache_key = str(target)
    if cache_key in _UQC_CACHE:
        return _UQC_CACHE[cache_key]

    if not target.exists():
        _UQC_CACHE[cache_key] = {}
        return {}

    with target.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    _UQC_CACHE[cache_key] = data
    return data


def uqc_for_unit(unit: str | None, uqc_map: Dict | None = None) -> str:
    mapping = uqc_map if uqc_map is not None else load_uqc_map()
    default = mapping.get("default") or "OTH-OTHERS"
    if not unit:
        return default
    units = {str(k).upper(): v for k, v in (mapping.get("units") or {}).items()}
    return units.get(str(unit).strip().upper().replace(" ", ""), default)
