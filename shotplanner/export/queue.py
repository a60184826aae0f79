"""
Batch-generation export.

A queue ZIP holds ``queue.json`` (a list of ``{"id", "params"}`` tasks) next to
the media each task references, renamed to ``task<id>_image_start_0<ext>``,
``task<id>_image_end_0<ext>`` and ``task<id>_audio_guide_0<ext>``.
"""

import json
import logging
import os
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Dict, Iterable, List, Optional, Union

from shotplanner.project.models import Project, RefImage, Shot, Take
from shotplanner.project.params import resolve_params
from shotplanner.utils.filename import build_shot_stem

logger = logging.getLogger(__name__)

CONTENT_FILTERS = ("all", "with_images", "ready")
APPROVAL_FILTERS = ("any", "approved", "not_approved")
QUEUE_MANIFEST_NAME = "queue.json"
DEFAULT_COMPRESSION_LEVEL = 5


@dataclass
class ExportItem:
    id: str
    label: str
    section_name: str
    shot_index: int
    shot: Shot
    take: Optional[Take] = None
    has_image: bool = False
    has_end_image: bool = False
    has_audio: bool = False
    has_prompt: bool = False
    is_approved: bool = False

    @property
    def stem(self) -> str:
        return build_shot_stem(self.section_name, self.shot_index, self.shot.name, self.take.label if self.take else None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "sectionName": self.section_name,
            "stem": self.stem,
            "hasImage": self.has_image,
            "hasEndImage": self.has_end_image,
            "hasAudio": self.has_audio,
            "hasPrompt": self.has_prompt,
            "isApproved": self.is_approved,
        }


@dataclass
class ExportTask:
    task_id: int
    prompt: str
    ref_image_path: Optional[str] = None
    end_ref_image_path: Optional[str] = None
    audio_path: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)


def collect_export_items(project: Project) -> List[ExportItem]:
    items: List[ExportItem] = []
    for section in project.sections:
        for index, shot in enumerate(section.shots):
            common = dict(
                section_name=section.name,
                shot_index=index,
                shot=shot,
                has_audio=bool(shot.audio_file),
                has_prompt=bool(shot.prompt),
            )
            if shot.has_takes:
                for take in shot.takes:
                    items.append(
                        ExportItem(
                            id=f"{shot.id}_{take.id}",
                            label=f"{shot.name} > {take.label}",
                            take=take,
                            has_image=bool(take.ref_images),
                            has_end_image=bool(take.end_ref_images),
                            is_approved=bool(take.approved),
                            **common,
                        )
                    )
            else:
                items.append(
                    ExportItem(
                        id=shot.id,
                        label=shot.name,
                        has_image=bool(shot.ref_images),
                        has_end_image=bool(shot.end_ref_images),
                        is_approved=bool(shot.approved),
                        **common,
                    )
                )
    return items


def filter_export_items(items: Iterable[ExportItem], content: str = "all", approval: str = "any") -> List[ExportItem]:
    if content not in CONTENT_FILTERS:
        raise ValueError(f"Unknown content filter '{content}', expected one of {CONTENT_FILTERS}")
    if approval not in APPROVAL_FILTERS:
        raise ValueError(f"Unknown approval filter '{approval}', expected one of {APPROVAL_FILTERS}")

    result = list(items)
    if content == "with_images":
        result = [i for i in result if i.has_image]
    elif content == "ready":
        result = [i for i in result if i.has_image and i.has_prompt]
    if approval == "approved":
        result = [i for i in result if i.is_approved]
    elif approval == "not_approved":
        result = [i for i in result if not i.is_approved]
    return result


def _selected(images: List[RefImage], selected_id: Optional[str]) -> Optional[RefImage]:
    return next((i for i in images if i.id == selected_id), None)


def build_export_tasks(project: Project, item_ids: Optional[Iterable[str]] = None) -> List[ExportTask]:
    """
    Tasks for the chosen items (all items when ``item_ids`` is None), in project order.

    Task ids run 1..n. Params are defaults < project < shot, plus the item's
    stem as ``output_filename`` and the shot prompt.
    """
    items = collect_export_items(project)
    if item_ids is not None:
        wanted = set(item_ids)
        items = [i for i in items if i.id in wanted]

    tasks: List[ExportTask] = []
    for n, item in enumerate(items, start=1):
        node = item.take or item.shot
        start = _selected(node.ref_images, node.selected_ref_image_id)
        end = _selected(node.end_ref_images, node.selected_end_ref_image_id)
        params = resolve_params(project, item.shot)
        params["output_filename"] = item.stem
        params["prompt"] = item.shot.prompt
        tasks.append(
            ExportTask(
                task_id=n,
                prompt=item.shot.prompt,
                ref_image_path=start.filename if start else None,
                end_ref_image_path=end.filename if end else None,
                audio_path=item.shot.audio_file or None,
                params=params,
            )
        )
    return tasks


def _media_name(task_id: int, role: str, source: Optional[str]) -> Optional[str]:
    if not source:
        return None
    return f"task{task_id}_{role}_0{os.path.splitext(source)[1]}"


def task_params(task: ExportTask) -> Dict[str, Any]:
    """Task params with media names and ``image_prompt_type`` filled in."""
    has_start = bool(task.ref_image_path)
    has_end = bool(task.end_ref_image_path)
    if has_start and has_end:
        prompt_type = "SE"
    elif has_start:
        prompt_type = "S"
    else:
        prompt_type = task.params.get("image_prompt_type")
    return {
        **task.params,
        "prompt": task.prompt,
        "image_start": _media_name(task.task_id, "image_start", task.ref_image_path),
        "image_end": _media_name(task.task_id, "image_end", task.end_ref_image_path),
        "image_prompt_type": prompt_type,
        "audio_guide": _media_name(task.task_id, "audio_guide", task.audio_path),
    }


def build_queue_manifest(tasks: Iterable[ExportTask]) -> List[Dict[str, Any]]:
    return [{"id": t.task_id, "params": task_params(t)} for t in tasks]


def _resolve_media(path: str, media_dir: Path) -> Path:
    p = Path(path)
    return p if p.is_absolute() else media_dir / path


def write_queue_zip(
    tasks: List[ExportTask],
    out: Union[str, Path, IO[bytes]],
    images_dir: Union[str, Path],
    audio_dir: Union[str, Path],
    compresslevel: int = DEFAULT_COMPRESSION_LEVEL,
) -> List[Dict[str, Any]]:
    """
    Write the queue ZIP to ``out`` (path or binary file object) and return the manifest.

    Relative image filenames resolve under ``images_dir`` and audio filenames
    under ``audio_dir``, the directories the media stores write to.
    """
    images_dir = Path(images_dir)
    audio_dir = Path(audio_dir)
    manifest = build_queue_manifest(tasks)
    with zipfile.ZipFile(out, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=compresslevel) as zf:
        for task, entry in zip(tasks, manifest):
            params = entry["params"]
            media = (
                (task.ref_image_path, params["image_start"], images_dir),
                (task.end_ref_image_path, params["image_end"], images_dir),
                (task.audio_path, params["audio_guide"], audio_dir),
            )
            for source, arcname, media_dir in media:
                if not source:
                    continue
                full = _resolve_media(source, media_dir)
                if full.is_file():
                    zf.write(full, arcname=arcname)
                else:
                    logger.warning("Task %d: media file missing, skipped: %s", task.task_id, full)
        zf.writestr(QUEUE_MANIFEST_NAME, json.dumps(manifest, indent=4))
    logger.info("Wrote export queue with %d tasks", len(tasks))
    return manifest
