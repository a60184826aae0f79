"""Expected-stem collection, dry-run preview and assignment planning for video imports."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

from shotplanner.project.models import Project
from shotplanner.utils.filename import build_shot_stem
from shotplanner.videos.matcher import VideoMatchResult, match_video_files


class ExpectedItem(NamedTuple):
    stem: str
    label: str
    section_id: str
    shot_id: str
    take_id: Optional[str] = None


@dataclass
class PreviewEntry:
    stem: str
    label: str
    file: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"stem": self.stem, "label": self.label, "file": self.file}


@dataclass
class ImportPreview:
    entries: List[PreviewEntry] = field(default_factory=list)
    unmatched_files: List[Dict[str, str]] = field(default_factory=list)

    @property
    def matched_count(self) -> int:
        return sum(1 for e in self.entries if e.file)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matches": [e.to_dict() for e in self.entries],
            "unmatchedFiles": self.unmatched_files,
            "matchedCount": self.matched_count,
            "expectedCount": len(self.entries),
        }


@dataclass
class ImportSummary:
    matched: int = 0
    unmatched: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"matched": self.matched, "unmatched": self.unmatched}


def collect_expected_items(project: Project) -> List[ExpectedItem]:
    """One item per take of a multi shot with takes, otherwise one per shot."""
    items: List[ExpectedItem] = []
    for section in project.sections:
        for index, shot in enumerate(section.shots):
            if shot.has_takes:
                for take in shot.takes:
                    items.append(
                        ExpectedItem(
                            stem=build_shot_stem(section.name, index, shot.name, take.label),
                            label=f"{section.name} > {shot.name} > {take.label}",
                            section_id=section.id,
                            shot_id=shot.id,
                            take_id=take.id,
                        )
                    )
            else:
                items.append(
                    ExpectedItem(
                        stem=build_shot_stem(section.name, index, shot.name),
                        label=f"{section.name} > {shot.name}",
                        section_id=section.id,
                        shot_id=shot.id,
                    )
                )
    return items


def _as_file_dict(entry: Any) -> Dict[str, str]:
    if isinstance(entry, dict):
        path = str(entry.get("path") or "")
        stem = entry.get("stem")
        filename = entry.get("filename")
    else:
        path = str(getattr(entry, "path", "") or "")
        stem = getattr(entry, "stem", None)
        filename = getattr(entry, "filename", None)
    if not filename:
        filename = os.path.basename(path)
    if stem is None:
        stem = os.path.splitext(filename)[0]
    return {"filename": str(filename), "path": path, "stem": str(stem)}


def preview_video_import(project: Project, files: Sequence[Any]) -> ImportPreview:
    """Match without touching the project, for showing the user what an import would do."""
    file_dicts = [_as_file_dict(f) for f in files]
    items = collect_expected_items(project)
    result = match_video_files([i.stem for i in items], file_dicts)

    by_path = {f["path"]: f for f in file_dicts}
    preview = ImportPreview()
    for item in items:
        path = result.path_for(item.stem)
        preview.entries.append(PreviewEntry(stem=item.stem, label=item.label, file=by_path.get(path) if path else None))
    unmatched = set(result.unmatched)
    preview.unmatched_files = [f for f in file_dicts if f["stem"].lower() in unmatched]
    return preview


def plan_video_assignments(
    project: Project, files: Sequence[Any]
) -> Tuple[Dict[Tuple[str, str, Optional[str]], str], VideoMatchResult, List[str]]:
    """
    Compute ``(section_id, shot_id, take_id) -> video path`` for every matched item.

    Also returns the raw match result and the filenames of unmatched files.
    """
    file_dicts = [_as_file_dict(f) for f in files]
    items = collect_expected_items(project)
    result = match_video_files([i.stem for i in items], file_dicts)

    assignments: Dict[Tuple[str, str, Optional[str]], str] = {}
    for item in items:
        path = result.path_for(item.stem)
        if path:
            assignments[(item.section_id, item.shot_id, item.take_id)] = path

    unmatched = set(result.unmatched)
    unmatched_filenames = [f["filename"] for f in file_dicts if f["stem"].lower() in unmatched]
    return assignments, result, unmatched_filenames
