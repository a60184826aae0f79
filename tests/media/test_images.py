import io

import pytest
from PIL import Image

from shotplanner.media.audio import AudioStorage
from shotplanner.media.images import ImageStorage, thumb_filename


@pytest.fixture
def storage(tmp_path):
    return ImageStorage.from_config({"images_dir": tmp_path / "images", "thumbs_dir": tmp_path / "images" / "thumbs"})


def _png_bytes(size=(800, 400), mode="RGBA"):
    buf = io.BytesIO()
    Image.new(mode, size, (10, 20, 30, 128) if mode == "RGBA" else (10, 20, 30)).save(buf, format="PNG")
    return buf.getvalue()


def test_thumb_filename():
    assert thumb_filename("abc.png") == "abc.jpg"
    assert thumb_filename("abc.jpg") == "abc.jpg"


def test_upload_is_stored_as_rgb_png_with_thumbnail(storage):
    stored = storage.save_upload(_png_bytes(), "frame.png")
    assert stored["originalName"] == "frame.png"
    assert stored["filename"].endswith(".png")
    assert stored["path"] == f"/api/images/{stored['filename']}"

    with Image.open(storage.images_dir / stored["filename"]) as img:
        assert img.mode == "RGB"
        assert img.size == (800, 400)
    with Image.open(storage.thumbs_dir / thumb_filename(stored["filename"])) as thumb:
        assert thumb.format == "JPEG"
        assert thumb.size == (384, 192)


def test_small_images_are_not_enlarged(storage):
    stored = storage.save_upload(_png_bytes(size=(100, 50), mode="RGB"), "small.png")
    with Image.open(storage.thumbs_dir / thumb_filename(stored["filename"])) as thumb:
        assert thumb.size == (100, 50)


def test_unsupported_upload_is_skipped(storage):
    assert storage.save_upload(b"hello", "notes.txt") is None
    assert list(storage.images_dir.glob("*.png")) == []


def test_import_external(storage, tmp_path):
    source = tmp_path / "outside.png"
    source.write_bytes(_png_bytes())
    stored = storage.import_external(str(source))
    assert (storage.images_dir / stored["filename"]).is_file()
    with pytest.raises(FileNotFoundError):
        storage.import_external(str(tmp_path / "missing.png"))


def test_generate_missing_thumbnails(storage):
    Image.new("RGB", (500, 500)).save(storage.images_dir / "old.png")
    (storage.images_dir / "broken.png").write_bytes(b"not an image")
    stored = storage.save_upload(_png_bytes(), "new.png")

    counts = storage.generate_missing_thumbnails()

    assert counts == {"total": 3, "generated": 1, "skipped": 1, "failed": 1}
    assert (storage.thumbs_dir / "old.jpg").is_file()
    assert (storage.thumbs_dir / thumb_filename(stored["filename"])).is_file()


def test_browse_store_and_external(storage, tmp_path):
    storage.save_upload(_png_bytes(), "a.png")
    listing = storage.browse()
    assert len(listing["files"]) == 1
    assert listing["files"][0]["url"] == ""
    assert listing["dirs"] == []

    outside = tmp_path / "shots"
    (outside / "nested").mkdir(parents=True)
    (outside / "x.jpg").write_bytes(b"")
    listing = storage.browse(str(outside))
    assert [f["filename"] for f in listing["files"]] == ["x.jpg"]
    assert listing["files"][0]["url"].startswith("/api/images/external?path=")
    assert [d["name"] for d in listing["dirs"]] == ["nested"]

    with pytest.raises(NotADirectoryError):
        storage.browse(str(tmp_path / "nope"))


def test_resolve_rejects_traversal(storage):
    stored = storage.save_upload(_png_bytes(), "a.png")
    assert storage.resolve(stored["filename"]) is not None
    assert storage.resolve("../a.png") is None
    assert storage.resolve("missing.png") is None
    assert storage.resolve_thumbnail(stored["filename"]).suffix == ".jpg"


def test_audio_storage(tmp_path):
    audio = AudioStorage.from_config({"audio_dir": tmp_path / "audio"})
    stored = audio.save_upload(b"RIFF", "Guide.WAV")
    assert stored["filename"].endswith(".WAV")
    assert audio.save_upload(b"x", "guide.txt") is None
    assert [f["filename"] for f in audio.browse()] == [stored["filename"]]
    assert audio.resolve(stored["filename"]).read_bytes() == b"RIFF"
    assert audio.resolve("../etc/passwd") is None
