import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from shotplanner.project.migrate import migrate_project_dict
from shotplanner.project.models import Project

logger = logging.getLogger(__name__)


class ProjectNotFoundError(FileNotFoundError):
    pass


def _safe_project_id(project_id: str) -> str:
    project_id = (project_id or "").strip()
    if not project_id:
        raise ValueError("project_id must be non-empty")
    # Keep it filename-safe.
    return re.sub(r"[^a-zA-Z0-9._-]+", "_", project_id)


@dataclass
class ProjectRepository:
    """
    Whole-document JSON storage, one ``<id>.json`` per project.

    ``load`` runs the legacy migration, so callers always get the current shape.
    """

    projects_dir: Path

    @classmethod
    def open(cls, projects_dir: Union[str, Path]) -> "ProjectRepository":
        path = Path(projects_dir).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return cls(projects_dir=path)

    def path_for(self, project_id: str) -> Path:
        return self.projects_dir / f"{_safe_project_id(project_id)}.json"

    def exists(self, project_id: str) -> bool:
        return self.path_for(project_id).exists()

    def list_projects(self) -> List[Dict[str, str]]:
        """``[{"id", "name"}]`` for every readable project file; unreadable files are skipped."""
        if not self.projects_dir.exists():
            return []
        projects = []
        for path in sorted(self.projects_dir.glob("*.json")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("Skipping unreadable project file %s: %s", path.name, e)
                continue
            projects.append({"id": str(data.get("id") or path.stem), "name": str(data.get("name") or "")})
        return projects

    def load_dict(self, project_id: str) -> Dict[str, Any]:
        path = self.path_for(project_id)
        if not path.exists():
            raise ProjectNotFoundError(f"Project not found: {project_id}")
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return migrate_project_dict(data)

    def load(self, project_id: str) -> Project:
        return Project.from_dict(self.load_dict(project_id))

    def save(self, project: Union[Project, Dict[str, Any]]) -> Path:
        data = project.to_dict() if isinstance(project, Project) else project
        path = self.path_for(str(data.get("id") or ""))
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
        logger.info("Saved project %s to %s", data.get("id"), path)
        return path

    def delete(self, project_id: str) -> bool:
        path = self.path_for(project_id)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Deleted project %s", project_id)
        return True

    def find(self, project_id: str) -> Optional[Project]:
        try:
            return self.load(project_id)
        except ProjectNotFoundError:
            return None
