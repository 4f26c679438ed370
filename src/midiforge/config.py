# src/midiforge/config.py
from __future__ import annotations
import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional
import yaml

from .timeline import DEFAULT_BPM, DEFAULT_TPB

log = logging.getLogger(__name__)

PKG_ROOT = Path(__file__).resolve().parent
DEFAULT_CFG_PATH = PKG_ROOT / "config.default.yaml"
USER_CFG_PATH = Path.home() / ".config" / "midiforge" / "config.yaml"


def _safe_load(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        log.warning("ignoring unreadable config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        log.warning("ignoring config %s: top level is not a mapping", path)
        return {}
    return data


def _merge_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Nested mappings merge key by key; any other override value replaces the base value."""
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        current = merged.get(key)
        merged[key] = (_merge_overrides(current, value)
                       if isinstance(value, dict) and isinstance(current, dict)
                       else copy.deepcopy(value))
    return merged


def load_config(
    user_path: Optional[Path] = None,
    default_path: Optional[Path] = None,
) -> Dict[str, Any]:
    """
    Loads package defaults merged with user overrides.
    Always contains 'ticks_per_beat' and 'bpm'.
    """
    dpath = Path(default_path) if default_path else DEFAULT_CFG_PATH
    upath = Path(user_path) if user_path else USER_CFG_PATH

    cfg = _merge_overrides(_safe_load(dpath), _safe_load(upath))
    cfg.setdefault("ticks_per_beat", DEFAULT_TPB)
    cfg.setdefault("bpm", DEFAULT_BPM)
    return cfg


def get_ticks_per_beat(cfg: Dict[str, Any]) -> int:
    try:
        return int(cfg.get("ticks_per_beat", DEFAULT_TPB))
    except (TypeError, ValueError):
        return DEFAULT_TPB


def get_bpm(cfg: Dict[str, Any]) -> float:
    try:
        return float(cfg.get("bpm", DEFAULT_BPM))
    except (TypeError, ValueError):
        return DEFAULT_BPM
