"""
In-memory project state with copy-on-write mutations.

Every mutation builds a new ``Project``: the touched node is replaced by an
updated copy and each ancestor on the path to the root is rebuilt, while all
other sections, shots and takes are reused as-is (``old is new`` holds for
them). Operations addressing an unknown id, or called with no open project,
return the current project unchanged.
"""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar
from uuid import uuid4

from shotplanner.project.models import Project, RefImage, Section, Shot, Take, VideoFile
from shotplanner.videos.importer import ImportSummary, plan_video_assignments

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[Project]], None]
Node = TypeVar("Node", Shot, Take)

IMAGE_SLOTS = {
    "start": ("ref_images", "selected_ref_image_id"),
    "end": ("end_ref_images", "selected_end_ref_image_id"),
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def _replace_by_id(items: List[Any], item_id: str, fn: Callable[[Any], Any]) -> Optional[List[Any]]:
    """New list with the item ``item_id`` replaced by ``fn(item)``; ``None`` if nothing changed."""
    for i, item in enumerate(items):
        if item.id == item_id:
            updated = fn(item)
            if updated is item:
                return None
            new_items = list(items)
            new_items[i] = updated
            return new_items
    return None


def update_section_in(project: Project, section_id: str, fn: Callable[[Section], Section]) -> Project:
    sections = _replace_by_id(project.sections, section_id, fn)
    return project if sections is None else replace(project, sections=sections)


def update_shot_in(project: Project, section_id: str, shot_id: str, fn: Callable[[Shot], Shot]) -> Project:
    def on_section(section: Section) -> Section:
        shots = _replace_by_id(section.shots, shot_id, fn)
        return section if shots is None else replace(section, shots=shots)

    return update_section_in(project, section_id, on_section)


def update_take_in(
    project: Project, section_id: str, shot_id: str, take_id: str, fn: Callable[[Take], Take]
) -> Project:
    def on_shot(shot: Shot) -> Shot:
        takes = _replace_by_id(shot.takes or [], take_id, fn)
        return shot if takes is None else replace(shot, takes=takes)

    return update_shot_in(project, section_id, shot_id, on_shot)


def update_node_in(
    project: Project, section_id: str, shot_id: str, take_id: Optional[str], fn: Callable[[Any], Any]
) -> Project:
    """Apply ``fn`` to the shot, or to one of its takes when ``take_id`` is given."""
    if take_id is None:
        return update_shot_in(project, section_id, shot_id, fn)
    return update_take_in(project, section_id, shot_id, take_id, fn)


def _with_image_added(node: Node, image: RefImage, slot: str) -> Node:
    images_attr, selected_attr = IMAGE_SLOTS[slot]
    images = list(getattr(node, images_attr)) + [image]
    selected = getattr(node, selected_attr) or image.id
    return replace(node, **{images_attr: images, selected_attr: selected})


def _with_image_removed(node: Node, image_id: str, slot: str) -> Node:
    images_attr, selected_attr = IMAGE_SLOTS[slot]
    current = getattr(node, images_attr)
    remaining = [i for i in current if i.id != image_id]
    if len(remaining) == len(current):
        return node
    selected = getattr(node, selected_attr)
    if selected == image_id:
        selected = remaining[0].id if remaining else None
    return replace(node, **{images_attr: remaining, selected_attr: selected})


def _with_image_selected(node: Node, image_id: str, slot: str) -> Node:
    images_attr, selected_attr = IMAGE_SLOTS[slot]
    if not any(i.id == image_id for i in getattr(node, images_attr)):
        return node
    if getattr(node, selected_attr) == image_id:
        return node
    return replace(node, **{selected_attr: image_id})


def _with_video_added(node: Node, path: str, imported_at: int) -> Node:
    videos = list(node.video_files or []) + [VideoFile(path=path, imported_at=imported_at)]
    return replace(node, video_files=videos, selected_video_idx=len(videos) - 1)


def _with_video_removed(node: Node, index: int) -> Node:
    videos = list(node.video_files or [])
    if not 0 <= index < len(videos):
        return node
    del videos[index]
    if not videos:
        selected = None
    else:
        selected = min(node.selected_video_idx or 0, len(videos) - 1)
    return replace(node, video_files=videos, selected_video_idx=selected)


def _with_video_index(node: Node, index: int) -> Node:
    if not 0 <= index < len(node.video_files or []) or node.selected_video_idx == index:
        return node
    return replace(node, selected_video_idx=index)


def _check_slot(slot: str) -> None:
    if slot not in IMAGE_SLOTS:
        raise ValueError(f"Unknown image slot '{slot}', expected one of {sorted(IMAGE_SLOTS)}")


@dataclass
class ProjectStore:
    """
    Holds the open project and applies copy-on-write operations to it.

    One store is owned per session (a CLI command or an HTTP request); there is
    no process-wide instance. Listeners registered with :meth:`subscribe` are
    called with the new project after every change.
    """

    project: Optional[Project] = None
    _listeners: List[Listener] = field(default_factory=list, repr=False)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, project: Optional[Project]) -> Optional[Project]:
        if project is self.project:
            return project
        self.project = project
        for listener in list(self._listeners):
            listener(project)
        return project

    def _apply(self, fn: Callable[[Project], Project]) -> Optional[Project]:
        if self.project is None:
            return None
        return self._commit(fn(self.project))

    # project

    def set_project(self, project: Optional[Project]) -> Optional[Project]:
        return self._commit(project)

    def create_project(self, name: str) -> Project:
        project = Project(id=str(uuid4()), name=name, bpm=120, sections=[], default_params={})
        self._commit(project)
        return project

    def close_project(self) -> None:
        self._commit(None)

    def update_project_name(self, name: str) -> Optional[Project]:
        return self._apply(lambda p: replace(p, name=name))

    def update_default_params(self, params: Dict[str, Any]) -> Optional[Project]:
        return self._apply(lambda p: replace(p, default_params={**p.default_params, **params}))

    def set_master_audio(self, filename: Optional[str]) -> Optional[Project]:
        return self._apply(lambda p: replace(p, master_audio=filename))

    # sections

    def add_section(self, after_section_id: Optional[str] = None) -> Optional[Project]:
        def add(p: Project) -> Project:
            section = Section(id=str(uuid4()), name="New Section")
            sections = list(p.sections)
            idx = next((i for i, s in enumerate(sections) if s.id == after_section_id), None)
            if idx is None:
                sections.append(section)
            else:
                sections.insert(idx + 1, section)
            return replace(p, sections=sections)

        return self._apply(add)

    def remove_section(self, section_id: str) -> Optional[Project]:
        def remove(p: Project) -> Project:
            sections = [s for s in p.sections if s.id != section_id]
            return p if len(sections) == len(p.sections) else replace(p, sections=sections)

        return self._apply(remove)

    def reorder_sections(self, section_ids: Sequence[str]) -> Optional[Project]:
        """Sections in the given order; ids not in the project are skipped and unlisted sections dropped."""

        def reorder(p: Project) -> Project:
            by_id = {s.id: s for s in p.sections}
            sections = [by_id[i] for i in section_ids if i in by_id]
            if len(sections) == len(p.sections) and all(a is b for a, b in zip(sections, p.sections)):
                return p
            return replace(p, sections=sections)

        return self._apply(reorder)

    def update_section(self, section_id: str, **changes: Any) -> Optional[Project]:
        return self._apply(lambda p: update_section_in(p, section_id, lambda s: replace(s, **changes)))

    # shots

    def add_shot(self, section_id: str, after_shot_id: Optional[str] = None) -> Optional[Project]:
        def add(section: Section) -> Section:
            shot = Shot(id=str(uuid4()), name="New Shot")
            shots = list(section.shots)
            idx = next((i for i, s in enumerate(shots) if s.id == after_shot_id), None)
            if idx is None:
                shots.append(shot)
            else:
                prev = shots[idx]
                shot.start_time = prev.end_time
                shot.end_time = prev.end_time + 2
                shots.insert(idx + 1, shot)
            return replace(section, shots=shots)

        return self._apply(lambda p: update_section_in(p, section_id, add))

    def remove_shot(self, section_id: str, shot_id: str) -> Optional[Project]:
        def remove(section: Section) -> Section:
            shots = [s for s in section.shots if s.id != shot_id]
            return section if len(shots) == len(section.shots) else replace(section, shots=shots)

        return self._apply(lambda p: update_section_in(p, section_id, remove))

    def duplicate_shot(self, section_id: str, shot_id: str) -> Optional[Project]:
        """Insert a deep copy right after the original, without its reference images."""

        def duplicate(section: Section) -> Section:
            idx = next((i for i, s in enumerate(section.shots) if s.id == shot_id), None)
            if idx is None:
                return section
            original = section.shots[idx]
            clone = replace(
                copy.deepcopy(original),
                id=str(uuid4()),
                name=f"{original.name} (copy)",
                ref_images=[],
                selected_ref_image_id=None,
                end_ref_images=[],
                selected_end_ref_image_id=None,
            )
            shots = list(section.shots)
            shots.insert(idx + 1, clone)
            return replace(section, shots=shots)

        return self._apply(lambda p: update_section_in(p, section_id, duplicate))

    def update_shot(self, section_id: str, shot_id: str, **changes: Any) -> Optional[Project]:
        return self._apply(lambda p: update_shot_in(p, section_id, shot_id, lambda s: replace(s, **changes)))

    def update_shot_params(self, section_id: str, shot_id: str, params: Dict[str, Any]) -> Optional[Project]:
        return self._apply(
            lambda p: update_shot_in(p, section_id, shot_id, lambda s: replace(s, params={**(s.params or {}), **params}))
        )

    def set_shot_audio(self, section_id: str, shot_id: str, audio_file: Optional[str]) -> Optional[Project]:
        return self.update_shot(section_id, shot_id, audio_file=audio_file)

    # takes

    def add_take(self, section_id: str, shot_id: str) -> Optional[Project]:
        """Append ``Take <n+1>``, one second long, after the last take (or at the shot start)."""

        def add(shot: Shot) -> Shot:
            if shot.type != "multi":
                return shot
            takes = list(shot.takes or [])
            start = takes[-1].end_time if takes else shot.start_time
            takes.append(
                Take(
                    id=str(uuid4()),
                    label=f"Take {len(takes) + 1}",
                    start_time=start,
                    end_time=start + 1,
                )
            )
            return replace(shot, takes=takes)

        return self._apply(lambda p: update_shot_in(p, section_id, shot_id, add))

    def remove_take(self, section_id: str, shot_id: str, take_id: str) -> Optional[Project]:
        def remove(shot: Shot) -> Shot:
            takes = [t for t in shot.takes or [] if t.id != take_id]
            return shot if len(takes) == len(shot.takes or []) else replace(shot, takes=takes)

        return self._apply(lambda p: update_shot_in(p, section_id, shot_id, remove))

    def update_take(self, section_id: str, shot_id: str, take_id: str, **changes: Any) -> Optional[Project]:
        return self._apply(lambda p: update_take_in(p, section_id, shot_id, take_id, lambda t: replace(t, **changes)))

    # reference images (shot or take, start or end slot)

    def add_ref_image(
        self, section_id: str, shot_id: str, image: RefImage, take_id: Optional[str] = None, slot: str = "start"
    ) -> Optional[Project]:
        _check_slot(slot)
        return self._apply(
            lambda p: update_node_in(p, section_id, shot_id, take_id, lambda n: _with_image_added(n, image, slot))
        )

    def remove_ref_image(
        self, section_id: str, shot_id: str, image_id: str, take_id: Optional[str] = None, slot: str = "start"
    ) -> Optional[Project]:
        _check_slot(slot)
        return self._apply(
            lambda p: update_node_in(p, section_id, shot_id, take_id, lambda n: _with_image_removed(n, image_id, slot))
        )

    def set_selected_ref_image(
        self, section_id: str, shot_id: str, image_id: str, take_id: Optional[str] = None, slot: str = "start"
    ) -> Optional[Project]:
        _check_slot(slot)
        return self._apply(
            lambda p: update_node_in(p, section_id, shot_id, take_id, lambda n: _with_image_selected(n, image_id, slot))
        )

    # videos

    def add_video(
        self,
        section_id: str,
        shot_id: str,
        path: str,
        take_id: Optional[str] = None,
        imported_at: Optional[int] = None,
    ) -> Optional[Project]:
        stamp = imported_at if imported_at is not None else _now_ms()
        return self._apply(
            lambda p: update_node_in(p, section_id, shot_id, take_id, lambda n: _with_video_added(n, path, stamp))
        )

    def remove_video(self, section_id: str, shot_id: str, index: int, take_id: Optional[str] = None) -> Optional[Project]:
        return self._apply(
            lambda p: update_node_in(p, section_id, shot_id, take_id, lambda n: _with_video_removed(n, index))
        )

    def set_video_index(
        self, section_id: str, shot_id: str, index: int, take_id: Optional[str] = None
    ) -> Optional[Project]:
        return self._apply(
            lambda p: update_node_in(p, section_id, shot_id, take_id, lambda n: _with_video_index(n, index))
        )

    def clear_all_videos(self) -> Optional[Project]:
        def clear(p: Project) -> Project:
            sections = []
            for section in p.sections:
                shots = []
                for shot in section.shots:
                    takes = None
                    if shot.takes is not None:
                        takes = [replace(t, video_files=None, selected_video_idx=None) for t in shot.takes]
                    shots.append(replace(shot, video_files=None, selected_video_idx=None, takes=takes))
                sections.append(replace(section, shots=shots))
            return replace(p, sections=sections)

        return self._apply(clear)

    def import_videos(self, files: Sequence[Any], imported_at: Optional[int] = None) -> ImportSummary:
        """
        Match ``files`` against the open project and assign every hit in one commit.

        Each matched shot or take gets the file appended to its videos and
        selected. Listeners observe a single change, never a half-applied import.
        """
        if self.project is None:
            return ImportSummary()
        project = self.project
        assignments, _, unmatched = plan_video_assignments(project, files)
        summary = ImportSummary(matched=len(assignments), unmatched=unmatched)
        if not assignments:
            logger.info("Video import matched nothing (%d unmatched files)", len(unmatched))
            return summary

        stamp = imported_at if imported_at is not None else _now_ms()
        for (section_id, shot_id, take_id), path in assignments.items():
            project = update_node_in(
                project, section_id, shot_id, take_id, lambda n, path=path: _with_video_added(n, path, stamp)
            )
        self._commit(project)
        logger.info("Imported %d videos (%d unmatched files)", summary.matched, len(unmatched))
        return summary

    # lookups

    def find_section(self, section_id: str) -> Optional[Section]:
        if self.project is None:
            return None
        return next((s for s in self.project.sections if s.id == section_id), None)

    def find_shot(self, section_id: str, shot_id: str) -> Optional[Shot]:
        section = self.find_section(section_id)
        if section is None:
            return None
        return next((s for s in section.shots if s.id == shot_id), None)
