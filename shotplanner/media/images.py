"""
Reference-image storage.

Uploaded and imported images are normalised to 3-channel PNGs under a fresh
``<uuid>.png`` name (the generation backend rejects alpha channels) and get a
JPEG thumbnail in ``thumbs/`` with the same stem.
"""

import io
import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

UPLOAD_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".bmp")
THUMBNAIL_SOURCE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp")
THUMBS_DIRNAME = "thumbs"
# Height bound passed to Image.thumbnail; only the width is meant to constrain.
_UNBOUNDED = 1_000_000


def thumb_filename(filename: str) -> str:
    return filename[:-4] + ".jpg" if filename.endswith(".png") else filename


def _safe_name(filename: str) -> Optional[str]:
    name = os.path.basename(filename or "")
    if not name or name != filename or name in (".", ".."):
        return None
    return name


def _to_rgb(img: Image.Image) -> Image.Image:
    if img.mode == "RGB":
        return img
    if img.mode in ("RGBA", "LA", "P"):
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (0, 0, 0))
        background.paste(img, mask=img.split()[-1])
        return background
    return img.convert("RGB")


@dataclass
class ImageStorage:
    images_dir: Path
    thumbs_dir: Path
    thumbnail_width: int = 384
    thumbnail_quality: int = 80

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ImageStorage":
        storage = cls(
            images_dir=Path(config["images_dir"]),
            thumbs_dir=Path(config["thumbs_dir"]),
            thumbnail_width=int(config.get("thumbnail_width", 384)),
            thumbnail_quality=int(config.get("thumbnail_quality", 80)),
        )
        storage.images_dir.mkdir(parents=True, exist_ok=True)
        storage.thumbs_dir.mkdir(parents=True, exist_ok=True)
        return storage

    def _write_png(self, img: Image.Image) -> str:
        filename = f"{uuid.uuid4()}.png"
        self.images_dir.mkdir(parents=True, exist_ok=True)
        _to_rgb(img).save(self.images_dir / filename, format="PNG")
        self.generate_thumbnail(filename)
        return filename

    def save_upload(self, data: bytes, original_name: str) -> Optional[Dict[str, str]]:
        """Store uploaded bytes; returns ``None`` for unsupported extensions."""
        if Path(original_name or "").suffix.lower() not in UPLOAD_EXTENSIONS:
            logger.info("Skipping upload with unsupported extension: %s", original_name)
            return None
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            filename = self._write_png(img)
        logger.info("Stored image %s (from %s)", filename, original_name)
        return {"filename": filename, "originalName": original_name, "path": f"/api/images/{filename}"}

    def import_external(self, source_path: Union[str, Path]) -> Dict[str, str]:
        source = Path(source_path).expanduser()
        if not source.is_file():
            raise FileNotFoundError(f"Source file not found: {source_path}")
        with Image.open(source) as img:
            img.load()
            filename = self._write_png(img)
        logger.info("Imported external image %s as %s", source, filename)
        return {"filename": filename, "path": f"/api/images/{filename}"}

    def generate_thumbnail(self, filename: str) -> bool:
        src = self.images_dir / filename
        dst = self.thumbs_dir / thumb_filename(filename)
        if not src.exists():
            return False
        if dst.exists():
            return True
        try:
            self.thumbs_dir.mkdir(parents=True, exist_ok=True)
            with Image.open(src) as img:
                thumb = _to_rgb(img)
                thumb.thumbnail((self.thumbnail_width, _UNBOUNDED))
                thumb.save(dst, format="JPEG", quality=self.thumbnail_quality)
            return True
        except (OSError, UnidentifiedImageError) as e:
            logger.warning("Thumbnail generation failed for %s: %s", filename, e)
            return False

    def generate_missing_thumbnails(self) -> Dict[str, int]:
        """Backfill thumbnails for images stored before thumbnails existed."""
        images = [
            p.name
            for p in sorted(self.images_dir.iterdir())
            if p.is_file() and p.suffix.lower() in THUMBNAIL_SOURCE_EXTENSIONS
        ] if self.images_dir.exists() else []

        generated = skipped = failed = 0
        for filename in images:
            if (self.thumbs_dir / thumb_filename(filename)).exists():
                skipped += 1
            elif self.generate_thumbnail(filename):
                generated += 1
            else:
                failed += 1
        logger.info("Thumbnails: %d generated, %d skipped, %d failed", generated, skipped, failed)
        return {"total": len(images), "generated": generated, "skipped": skipped, "failed": failed}

    def browse(self, directory: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """Image files (oldest first) and subdirectories of ``directory``, default the image store."""
        target = Path(directory).expanduser().resolve() if directory else self.images_dir.resolve()
        if not target.is_dir():
            raise NotADirectoryError(f"Directory not found: {directory}")
        is_store = target == self.images_dir.resolve()

        files: List[Dict[str, Any]] = []
        dirs: List[Dict[str, str]] = []
        for entry in target.iterdir():
            if entry.is_dir():
                if entry.name != THUMBS_DIRNAME:
                    dirs.append({"name": entry.name, "path": str(entry)})
            elif entry.suffix.lower() in UPLOAD_EXTENSIONS:
                files.append(
                    {
                        "filename": entry.name,
                        "path": str(entry),
                        "url": "" if is_store else f"/api/images/external?path={quote(str(entry), safe='')}",
                        "mtime": entry.stat().st_mtime * 1000,
                    }
                )
        files.sort(key=lambda f: f["mtime"])
        dirs.sort(key=lambda d: d["name"])
        return {"files": files, "dirs": dirs, "currentDir": str(target)}

    def resolve(self, filename: str) -> Optional[Path]:
        name = _safe_name(filename)
        if name is None:
            return None
        path = self.images_dir / name
        return path if path.is_file() else None

    def resolve_thumbnail(self, filename: str) -> Optional[Path]:
        """Thumbnail path, falling back to the full image when no thumbnail exists."""
        name = _safe_name(filename)
        if name is None:
            return None
        thumb = self.thumbs_dir / thumb_filename(name)
        if thumb.is_file():
            return thumb
        return self.resolve(name)
