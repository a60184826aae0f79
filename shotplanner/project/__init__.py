from .models import SCHEMA_VERSION, SHOT_TYPES, Project, RefImage, Section, Shot, Take, VideoFile

__all__ = [
    "SCHEMA_VERSION",
    "SHOT_TYPES",
    "Project",
    "RefImage",
    "Section",
    "Shot",
    "Take",
    "VideoFile",
]
