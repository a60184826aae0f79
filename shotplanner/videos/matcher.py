"""
Reconcile generated video files on disk with the stems a project expects.

Three passes, each over whatever the previous one left unmatched:

1. exact (case-insensitive) stem equality;
2. dedup grouping: ``name (2)`` / ``name_(2)`` files are paired, in ordinal
   order, with ``name_1`` / ``name_2`` expected stems sharing the same base;
3. prefix match for tools that truncate long filenames, only when the shorter
   stem is at least ``PREFIX_MIN_LENGTH`` characters.

Nothing here raises: a stem with no partner is simply reported unmatched.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

PREFIX_MIN_LENGTH = 20

_VIDEO_DEDUP_RE = re.compile(r"^(.+?)[_ ]?\((\d+)\)$")
_EXPECTED_SUFFIX_RE = re.compile(r"^(.+?)_(\d+)$")
_TRAILING_UNDERSCORE_RE = re.compile(r"_$")


@dataclass
class VideoMatchResult:
    # lowercased expected stem -> matched paths (a single path today)
    matches: Dict[str, List[str]] = field(default_factory=dict)
    # lowercased file stems nobody claimed
    unmatched: List[str] = field(default_factory=list)
    unmatched_expected: List[str] = field(default_factory=list)

    def path_for(self, expected_stem: str) -> Optional[str]:
        paths = self.matches.get(expected_stem.lower())
        return paths[0] if paths else None


def parse_video_stem(stem: str) -> Tuple[str, int]:
    """``"name (3)"`` -> ``("name", 3)``; ``"name_2"`` is not a dedup marker -> ``("name_2", 1)``."""
    m = _VIDEO_DEDUP_RE.match(stem)
    if m:
        return _TRAILING_UNDERSCORE_RE.sub("", m.group(1)), int(m.group(2))
    return stem, 1


def parse_expected_stem(stem: str) -> Tuple[str, Optional[int]]:
    """``"intro_01_shot_take_1"`` -> ``("intro_01_shot_take", 1)``; no trailing digits -> suffix ``None``."""
    m = _EXPECTED_SUFFIX_RE.match(stem)
    if m:
        return m.group(1), int(m.group(2))
    return stem, None


def _file_fields(entry: Any) -> Tuple[str, str]:
    if isinstance(entry, dict):
        return str(entry.get("stem") or ""), str(entry.get("path") or "")
    return str(getattr(entry, "stem", "") or ""), str(getattr(entry, "path", "") or "")


def match_video_files(expected_stems: Iterable[str], files: Iterable[Any]) -> VideoMatchResult:
    """
    Match expected stems against scanned files.

    ``files`` holds ``{"stem", "path"}`` mappings or objects with ``stem`` and
    ``path`` attributes (e.g. :class:`shotplanner.videos.scan.VideoFileEntry`).
    """
    result = VideoMatchResult()

    expected_keys: List[str] = []
    for stem in expected_stems:
        key = (stem or "").lower()
        if key not in expected_keys:
            expected_keys.append(key)
    remaining_expected: Dict[str, None] = dict.fromkeys(expected_keys)

    # lowercased stem -> path; a later duplicate stem replaces an earlier one
    remaining_files: Dict[str, str] = {}
    for entry in files:
        stem, path = _file_fields(entry)
        remaining_files[stem.lower()] = path

    # exact
    for key in expected_keys:
        if key in remaining_files:
            result.matches[key] = [remaining_files.pop(key)]
            del remaining_expected[key]

    # dedup grouping
    if remaining_expected and remaining_files:
        file_groups: Dict[str, List[Tuple[int, str]]] = {}
        for stem in remaining_files:
            base, ordinal = parse_video_stem(stem)
            file_groups.setdefault(_TRAILING_UNDERSCORE_RE.sub("", base), []).append((ordinal, stem))

        expected_groups: Dict[str, List[Tuple[int, str]]] = {}
        for key in remaining_expected:
            base, suffix = parse_expected_stem(key)
            expected_groups.setdefault(base, []).append((suffix if suffix is not None else 1, key))

        for base, expected_group in expected_groups.items():
            file_group = file_groups.get(base)
            if not file_group:
                continue
            expected_group.sort(key=lambda item: item[0])
            file_group.sort(key=lambda item: item[0])
            for (_, key), (_, file_stem) in zip(expected_group, file_group):
                result.matches[key] = [remaining_files.pop(file_stem)]
                del remaining_expected[key]

    # prefix / truncation, greedy in expected order
    if remaining_expected and remaining_files:
        for key in list(remaining_expected):
            best_stem = None
            best_overlap = 0
            for file_stem in remaining_files:
                shorter = min(len(key), len(file_stem))
                if shorter < PREFIX_MIN_LENGTH:
                    continue
                if key.startswith(file_stem) or file_stem.startswith(key):
                    if best_stem is None or shorter > best_overlap:
                        best_stem, best_overlap = file_stem, shorter
            if best_stem is not None:
                result.matches[key] = [remaining_files.pop(best_stem)]
                del remaining_expected[key]

    result.unmatched = list(remaining_files)
    result.unmatched_expected = list(remaining_expected)
    return result
