import logging
import os
import string
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = (".mp4", ".webm")


@dataclass
class VideoFileEntry:
    filename: str
    path: str
    stem: str


@dataclass
class DirEntry:
    name: str
    path: str


@dataclass
class VideoDirListing:
    current_dir: str
    parent_dir: Optional[str] = None
    files: List[VideoFileEntry] = field(default_factory=list)
    dirs: List[DirEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [asdict(f) for f in self.files],
            "dirs": [asdict(d) for d in self.dirs],
            "currentDir": self.current_dir,
            "parentDir": self.parent_dir,
        }


def scan_video_dir(directory: str) -> VideoDirListing:
    """List ``.mp4``/``.webm`` files and subdirectories of ``directory`` (non-recursive)."""
    resolved = Path(directory).expanduser().resolve()
    if not resolved.is_dir():
        raise NotADirectoryError(f"Directory not found: {directory}")

    parent = resolved.parent
    listing = VideoDirListing(
        current_dir=str(resolved),
        parent_dir=str(parent) if parent != resolved else None,
    )
    try:
        entries = sorted(os.listdir(resolved))
    except OSError as e:
        logger.warning("Cannot list %s: %s", resolved, e)
        return listing

    for name in entries:
        full = resolved / name
        if full.suffix.lower() in VIDEO_EXTENSIONS:
            listing.files.append(VideoFileEntry(filename=name, path=str(full), stem=full.stem))
        try:
            if full.is_dir():
                listing.dirs.append(DirEntry(name=name, path=str(full)))
        except OSError:
            continue
    return listing


def list_roots() -> Dict[str, Any]:
    """Filesystem roots to start browsing from: drive letters on Windows, ``/`` elsewhere."""
    if sys.platform == "win32":
        roots = [f"{letter}:\\" for letter in string.ascii_uppercase if os.path.exists(f"{letter}:\\")]
    else:
        roots = ["/"]
    return {"roots": roots, "home": str(Path.home())}
