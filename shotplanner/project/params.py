import copy
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from shotplanner.project.models import Project, Shot

DEFAULTS_PATH = Path(__file__).with_name("ltx_defaults.yaml")


@lru_cache(maxsize=1)
def _load_defaults() -> Dict[str, Any]:
    with open(DEFAULTS_PATH, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{DEFAULTS_PATH} must contain a mapping")
    return data


def load_default_params() -> Dict[str, Any]:
    """A fresh copy of the packaged LTX defaults (safe to mutate)."""
    return copy.deepcopy(_load_defaults())


def resolve_params(project: Optional[Project] = None, shot: Optional[Shot] = None) -> Dict[str, Any]:
    """Defaults, then project defaults, then shot overrides; later layers win key by key."""
    params = load_default_params()
    if project is not None:
        params.update(project.default_params or {})
    if shot is not None and shot.params:
        params.update(shot.params)
    return params
