import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".wav", ".mp3", ".ogg", ".flac")


@dataclass
class AudioStorage:
    audio_dir: Path

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "AudioStorage":
        storage = cls(audio_dir=Path(config["audio_dir"]))
        storage.audio_dir.mkdir(parents=True, exist_ok=True)
        return storage

    def save_upload(self, data: bytes, original_name: str) -> Optional[Dict[str, str]]:
        ext = Path(original_name or "").suffix
        if ext.lower() not in AUDIO_EXTENSIONS:
            logger.info("Skipping upload with unsupported extension: %s", original_name)
            return None
        filename = f"{uuid.uuid4()}{ext}"
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        (self.audio_dir / filename).write_bytes(data)
        logger.info("Stored audio %s (from %s)", filename, original_name)
        return {"filename": filename, "originalName": original_name, "path": f"/api/audio/{filename}"}

    def browse(self) -> List[Dict[str, str]]:
        if not self.audio_dir.is_dir():
            return []
        return [
            {"filename": p.name, "path": f"/api/audio/{p.name}"}
            for p in sorted(self.audio_dir.iterdir())
            if p.is_file() and p.suffix.lower() in AUDIO_EXTENSIONS
        ]

    def resolve(self, filename: str) -> Optional[Path]:
        name = os.path.basename(filename or "")
        if not name or name != filename:
            return None
        path = self.audio_dir / name
        return path if path.is_file() else None
