import json
import zipfile

import pytest

from shotplanner import cli
from shotplanner.project.persistence import ProjectRepository

SHOTLIST = '''# Night Drive

### === INTRO (0:00.00 – 0:04.00) ===
**Shot A1 — Headlights**
**LTX-2 Prompt**
```
headlights on a wet road
```
'''


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)
    monkeypatch.setenv("SHOTPLANNER_CONFIG", str(tmp_path / "missing.toml"))
    return tmp_path / "data"


def _parse_and_save(tmp_path, data_dir):
    md = tmp_path / "shotlist.md"
    md.write_text(SHOTLIST, encoding="utf-8")
    out = tmp_path / "project.json"
    assert cli.main(["--data-dir", str(data_dir), "parse", str(md), "--output", str(out), "--save"]) == 0
    return json.loads(out.read_text(encoding="utf-8"))


def test_parse_writes_and_saves(tmp_path, data_dir):
    project = _parse_and_save(tmp_path, data_dir)
    assert project["name"] == "Night Drive"
    assert ProjectRepository.open(data_dir / "projects").exists(project["id"])


def test_import_and_export(tmp_path, data_dir):
    project = _parse_and_save(tmp_path, data_dir)
    renders = tmp_path / "renders"
    renders.mkdir()
    (renders / "intro_01_a1_headlights.mp4").write_bytes(b"")

    assert cli.main(["--data-dir", str(data_dir), "preview-videos", project["id"], str(renders)]) == 0
    assert cli.main(["--data-dir", str(data_dir), "import-videos", project["id"], str(renders)]) == 0
    saved = ProjectRepository.open(data_dir / "projects").load(project["id"])
    assert saved.sections[0].shots[0].selected_video_idx == 0

    out = tmp_path / "queue.zip"
    assert cli.main(["--data-dir", str(data_dir), "export", project["id"], "--out", str(out)]) == 0
    with zipfile.ZipFile(out) as zf:
        manifest = json.loads(zf.read("queue.json"))
    assert manifest[0]["params"]["output_filename"] == "intro_01_a1_headlights"
    assert manifest[0]["params"]["prompt"] == "headlights on a wet road"


def test_errors_return_nonzero(tmp_path, data_dir):
    assert cli.main(["--data-dir", str(data_dir), "export", "ghost"]) == 1
    assert cli.main(["--data-dir", str(data_dir), "parse", str(tmp_path / "missing.md")]) == 1
    assert cli.main([]) == 1
