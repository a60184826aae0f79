"""
Load-time migration of saved project documents.

Documents written before ``schemaVersion`` existed used ``cuts`` instead of
``takes``, the shot types ``held`` / ``visual_only`` / ``rapid_cut`` and take
labels like ``Cut 3``. ``migrate_project_dict`` rewrites them into the current
shape. It works on plain JSON dicts (before ``Project.from_dict``) and never
mutates its argument.
"""

import copy
import logging
import re
from typing import Any, Dict

from shotplanner.project.models import SCHEMA_VERSION

logger = logging.getLogger(__name__)

LEGACY_TYPE_MAP = {
    "held": "solo",
    "visual_only": "solo",
    "rapid_cut": "multi",
}

_CUT_LABEL_RE = re.compile(r"^Cut(\s+\d+)$", re.IGNORECASE)


def _iter_shots(data: Dict[str, Any]):
    for section in data.get("sections") or []:
        for shot in section.get("shots") or []:
            yield shot


def needs_migration(data: Dict[str, Any]) -> bool:
    version = data.get("schemaVersion")
    if not isinstance(version, int) or version < SCHEMA_VERSION:
        return True
    for shot in _iter_shots(data):
        if "cuts" in shot or shot.get("type") in LEGACY_TYPE_MAP:
            return True
        for take in shot.get("takes") or []:
            if _CUT_LABEL_RE.match(str(take.get("label") or "")):
                return True
    return False


def migrate_project_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a migrated deep copy of ``data`` with ``schemaVersion`` set to the current version."""
    migrated = copy.deepcopy(data)
    if not needs_migration(migrated):
        return migrated

    renamed = retyped = relabeled = 0
    for shot in _iter_shots(migrated):
        if "cuts" in shot:
            cuts = shot.pop("cuts")
            if not shot.get("takes"):
                shot["takes"] = cuts
                renamed += 1

        legacy_type = shot.get("type")
        if legacy_type in LEGACY_TYPE_MAP:
            shot["type"] = LEGACY_TYPE_MAP[legacy_type]
            retyped += 1

        for take in shot.get("takes") or []:
            m = _CUT_LABEL_RE.match(str(take.get("label") or ""))
            if m:
                take["label"] = f"Take{m.group(1)}"
                relabeled += 1

    previous = migrated.get("schemaVersion")
    migrated["schemaVersion"] = SCHEMA_VERSION
    logger.info(
        "Migrated project %s from schema %s: %d cuts->takes, %d shot types, %d take labels",
        migrated.get("id"),
        previous if previous is not None else "legacy",
        renamed,
        retyped,
        relabeled,
    )
    return migrated
