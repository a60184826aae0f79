from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SHOT_TYPES = ("solo", "multi")
SCHEMA_VERSION = 2


def _opt(d: Dict[str, Any], key: str, value: Any) -> None:
    # Optional attributes are left out of the JSON document when unset.
    if value is not None:
        d[key] = value


@dataclass
class RefImage:
    id: str
    filename: str
    path: str = ""
    thumbnail_path: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "path": self.path,
            "thumbnailPath": self.thumbnail_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RefImage":
        return cls(
            id=data["id"],
            filename=data.get("filename", ""),
            path=data.get("path", ""),
            thumbnail_path=data.get("thumbnailPath", ""),
        )


@dataclass
class VideoFile:
    path: str
    imported_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "importedAt": self.imported_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoFile":
        return cls(path=data["path"], imported_at=int(data.get("importedAt") or 0))


def _images(items: Optional[List[Dict[str, Any]]]) -> List[RefImage]:
    return [RefImage.from_dict(i) for i in items or []]


def _videos(items: Optional[List[Dict[str, Any]]]) -> Optional[List[VideoFile]]:
    if items is None:
        return None
    return [VideoFile.from_dict(v) for v in items]


@dataclass
class Take:
    id: str
    label: str
    start_time: float = 0.0
    end_time: float = 0.0
    concept: str = ""
    ref_image_prompt: str = ""
    ref_images: List[RefImage] = field(default_factory=list)
    selected_ref_image_id: Optional[str] = None
    end_ref_images: List[RefImage] = field(default_factory=list)
    selected_end_ref_image_id: Optional[str] = None
    video_files: Optional[List[VideoFile]] = None
    selected_video_idx: Optional[int] = None
    approved: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "concept": self.concept,
            "refImagePrompt": self.ref_image_prompt,
            "refImages": [i.to_dict() for i in self.ref_images],
            "endRefImages": [i.to_dict() for i in self.end_ref_images],
        }
        _opt(d, "selectedRefImageId", self.selected_ref_image_id)
        _opt(d, "selectedEndRefImageId", self.selected_end_ref_image_id)
        if self.video_files is not None:
            d["videoFiles"] = [v.to_dict() for v in self.video_files]
        _opt(d, "selectedVideoIdx", self.selected_video_idx)
        _opt(d, "approved", self.approved)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Take":
        return cls(
            id=data["id"],
            label=data.get("label", ""),
            start_time=float(data.get("startTime") or 0.0),
            end_time=float(data.get("endTime") or 0.0),
            concept=data.get("concept", ""),
            ref_image_prompt=data.get("refImagePrompt", ""),
            ref_images=_images(data.get("refImages")),
            selected_ref_image_id=data.get("selectedRefImageId"),
            end_ref_images=_images(data.get("endRefImages")),
            selected_end_ref_image_id=data.get("selectedEndRefImageId"),
            video_files=_videos(data.get("videoFiles")),
            selected_video_idx=data.get("selectedVideoIdx"),
            approved=data.get("approved"),
        )


@dataclass
class Shot:
    id: str
    name: str
    type: str = "solo"
    start_time: float = 0.0
    end_time: float = 0.0
    lyric: str = ""
    concept: str = ""
    prompt: str = ""
    ref_image_prompt: str = ""
    ref_images: List[RefImage] = field(default_factory=list)
    selected_ref_image_id: Optional[str] = None
    end_ref_images: List[RefImage] = field(default_factory=list)
    selected_end_ref_image_id: Optional[str] = None
    audio_file: Optional[str] = None
    video_files: Optional[List[VideoFile]] = None
    selected_video_idx: Optional[int] = None
    takes: Optional[List[Take]] = None
    params: Optional[Dict[str, Any]] = None
    approved: Optional[bool] = None

    @property
    def has_takes(self) -> bool:
        return self.type == "multi" and bool(self.takes)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "lyric": self.lyric,
            "concept": self.concept,
            "prompt": self.prompt,
            "refImagePrompt": self.ref_image_prompt,
            "refImages": [i.to_dict() for i in self.ref_images],
            "endRefImages": [i.to_dict() for i in self.end_ref_images],
        }
        _opt(d, "selectedRefImageId", self.selected_ref_image_id)
        _opt(d, "selectedEndRefImageId", self.selected_end_ref_image_id)
        _opt(d, "audioFile", self.audio_file)
        if self.video_files is not None:
            d["videoFiles"] = [v.to_dict() for v in self.video_files]
        _opt(d, "selectedVideoIdx", self.selected_video_idx)
        if self.takes is not None:
            d["takes"] = [t.to_dict() for t in self.takes]
        if self.params is not None:
            d["params"] = dict(self.params)
        _opt(d, "approved", self.approved)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Shot":
        takes = data.get("takes")
        params = data.get("params")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            type=data.get("type", "solo") if data.get("type") in SHOT_TYPES else "solo",
            start_time=float(data.get("startTime") or 0.0),
            end_time=float(data.get("endTime") or 0.0),
            lyric=data.get("lyric", ""),
            concept=data.get("concept", ""),
            prompt=data.get("prompt", ""),
            ref_image_prompt=data.get("refImagePrompt", ""),
            ref_images=_images(data.get("refImages")),
            selected_ref_image_id=data.get("selectedRefImageId"),
            end_ref_images=_images(data.get("endRefImages")),
            selected_end_ref_image_id=data.get("selectedEndRefImageId"),
            audio_file=data.get("audioFile"),
            video_files=_videos(data.get("videoFiles")),
            selected_video_idx=data.get("selectedVideoIdx"),
            takes=[Take.from_dict(t) for t in takes] if takes is not None else None,
            params=dict(params) if params is not None else None,
            approved=data.get("approved"),
        )


@dataclass
class Section:
    id: str
    name: str
    start_time: float = 0.0
    end_time: float = 0.0
    description: str = ""
    shots: List[Shot] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "description": self.description,
            "shots": [s.to_dict() for s in self.shots],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Section":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            start_time=float(data.get("startTime") or 0.0),
            end_time=float(data.get("endTime") or 0.0),
            description=data.get("description", ""),
            shots=[Shot.from_dict(s) for s in data.get("shots") or []],
        )


@dataclass
class Project:
    id: str
    name: str
    bpm: int = 120
    sections: List[Section] = field(default_factory=list)
    default_params: Dict[str, Any] = field(default_factory=dict)
    master_audio: Optional[str] = None
    schema_version: int = SCHEMA_VERSION

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "bpm": self.bpm,
            "sections": [s.to_dict() for s in self.sections],
            "defaultParams": dict(self.default_params),
        }
        _opt(d, "masterAudio", self.master_audio)
        d["schemaVersion"] = self.schema_version
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            bpm=int(data.get("bpm") or 120),
            sections=[Section.from_dict(s) for s in data.get("sections") or []],
            default_params=dict(data.get("defaultParams") or {}),
            master_audio=data.get("masterAudio"),
            schema_version=int(data.get("schemaVersion") or SCHEMA_VERSION),
        )
