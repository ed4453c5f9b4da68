"""
Engine configuration loading.

Sources, lowest precedence first:
- ``EngineParams`` defaults
- a YAML mapping (``load_params``), keys are ``EngineParams`` field names
- ``ROUNDLBP_<FIELD>`` environment variables (``params_from_env``)

Validation lives in ``EngineParams.__post_init__``; this module only parses.
"""

from __future__ import annotations

import os
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from ..core.params import EngineParams

ENV_PREFIX = "ROUNDLBP_"

_FIELD_NAMES = tuple(f.name for f in fields(EngineParams))


def _env_int(environ: Mapping[str, str], name: str) -> Optional[int]:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip().replace("_", ""))
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def params_from_mapping(obj: Mapping[str, Any], *, base: EngineParams = EngineParams()) -> EngineParams:
    if not isinstance(obj, Mapping):
        raise TypeError("engine config must be a mapping")
    unknown = sorted(set(obj) - set(_FIELD_NAMES))
    if unknown:
        raise ValueError(f"unknown engine config keys: {', '.join(unknown)}")
    updates: Dict[str, int] = {}
    for key, value in obj.items():
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"{key} must be an int, got {type(value).__name__}")
        updates[key] = value
    return replace(base, **updates)


def load_params(path: str | Path, *, base: EngineParams = EngineParams()) -> EngineParams:
    """Load ``EngineParams`` from a YAML file. A top-level ``engine:`` section is accepted."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return base
    if not isinstance(obj, Mapping):
        raise TypeError("engine config YAML must be a mapping")
    if "engine" in obj and isinstance(obj["engine"], Mapping):
        obj = obj["engine"]
    return params_from_mapping(obj, base=base)


def params_from_env(
    environ: Optional[Mapping[str, str]] = None,
    *,
    base: EngineParams = EngineParams(),
) -> EngineParams:
    env = os.environ if environ is None else environ
    updates: Dict[str, int] = {}
    for name in _FIELD_NAMES:
        value = _env_int(env, ENV_PREFIX + name.upper())
        if value is not None:
            updates[name] = value
    return replace(base, **updates) if updates else base


def load_engine_params(path: Optional[str | Path] = None, environ: Optional[Mapping[str, str]] = None) -> EngineParams:
    """Defaults, then the YAML file (if given), then environment overrides."""
    params = EngineParams()
    if path is not None:
        params = load_params(path, base=params)
    return params_from_env(environ, base=params)
