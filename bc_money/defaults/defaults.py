"""Loader for the JSON defaults shipped with the package."""

from __future__ import annotations

import copy
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

DEFAULTS_DIR = Path(__file__).parent


@lru_cache(maxsize=None)
def _read(name: str) -> Dict[str, Any]:
    path = DEFAULTS_DIR / f"{name}.json"
    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_config(config_name: str) -> Dict[str, Any]:
    """Return a copy of ``<config_name>.json`` from this directory.

    Raises:
        FileNotFoundError: If there is no such file
        json.JSONDecodeError: If the file is not valid JSON

    Example:
        >>> load_config('engine')['breakdown']['fallback_label']
        'Otros'
    """
    return copy.deepcopy(_read(config_name))


def get_config_value(config_name: str, *keys: str, default: Any = None) -> Any:
    """Walk ``keys`` into a defaults file, returning ``default`` on any miss.

    Example:
        >>> get_config_value('engine', 'breakdown', 'dashboard_top_n')
        6
    """
    try:
        value: Any = _read(config_name)
        for key in keys:
            value = value[key]
    except (KeyError, TypeError, FileNotFoundError):
        return default
    return copy.deepcopy(value)
