import re
from typing import Optional

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def sanitize_filename(name: str) -> str:
    """Lowercase, collapse anything outside ``[a-z0-9]`` to ``_``, trim underscores."""
    return _NON_ALNUM_RE.sub("_", (name or "").lower()).strip("_")


def build_shot_stem(
    section_name: str,
    shot_index: int,
    shot_name: str,
    take_label: Optional[str] = None,
) -> str:
    """
    Output filename stem for a shot or take.

    The 1-based, zero-padded shot index keeps stems unique when two shots in a
    section share a name:

        solo: ``section_01_shot``
        take: ``section_01_shot_take_2``
    """
    base = f"{sanitize_filename(section_name)}_{shot_index + 1:02d}_{sanitize_filename(shot_name)}"
    if take_label:
        return f"{base}_{sanitize_filename(take_label)}"
    return base
