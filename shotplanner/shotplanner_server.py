import io
import logging
import traceback
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, Response
from pydantic import BaseModel, Field

from shotplanner.config.config import ensure_data_dirs, load_config
from shotplanner.export.queue import build_export_tasks, collect_export_items, filter_export_items, write_queue_zip
from shotplanner.media.audio import AudioStorage
from shotplanner.media.images import ImageStorage
from shotplanner.parsing import classify_markdown_documents, parse_all_markdown
from shotplanner.project.migrate import migrate_project_dict
from shotplanner.project.models import Project
from shotplanner.project.persistence import ProjectNotFoundError, ProjectRepository
from shotplanner.project.store import ProjectStore
from shotplanner.utils.logging_setup import configure_logging, log_context
from shotplanner.videos.importer import preview_video_import
from shotplanner.videos.scan import list_roots, scan_video_dir

logger = logging.getLogger(__name__)

VIDEO_MEDIA_TYPES = {".mp4": "video/mp4", ".webm": "video/webm"}


class ApiResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    content: Optional[Any] = None

    class Config:
        extra = "allow"


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class ImportExternalImageRequest(BaseModel):
    source_path: str = Field(..., alias="sourcePath")


class VideoImportRequest(BaseModel):
    project_id: str
    dir: str


class ExportQueueRequest(BaseModel):
    project_id: str
    item_ids: Optional[List[str]] = None
    content: str = "all"
    approval: str = "any"


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Error {action}: {e}")
    logger.error(traceback.format_exc())
    return HTTPException(status_code=500, detail=str(e))


def create_app(config: Optional[Dict[str, Any]] = None) -> FastAPI:
    if config is None:
        _, config = load_config()
    ensure_data_dirs(config)

    repo = ProjectRepository.open(config["projects_dir"])
    image_store = ImageStorage.from_config(config)
    audio_store = AudioStorage.from_config(config)

    app = FastAPI(title="Shotplanner API", version="0.1.0")
    app.state.config = config
    app.state.repo = repo

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.get("cors_origins") or ["*"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        with log_context(request_id=request_id, operation=f"{request.method} {request.url.path}"):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    def _load(project_id: str) -> Project:
        try:
            return repo.load(project_id)
        except ProjectNotFoundError:
            raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    # projects

    @app.get("/api/project")
    def list_projects():
        return repo.list_projects()

    @app.get("/api/project/{project_id}")
    def get_project(project_id: str):
        with log_context(project_id=project_id):
            try:
                return repo.load_dict(project_id)
            except ProjectNotFoundError:
                raise HTTPException(status_code=404, detail="Project not found")
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

    @app.post("/api/project")
    def save_project(data: Dict[str, Any] = Body(...)):
        if not data.get("id"):
            raise HTTPException(status_code=400, detail="Project id is required")
        with log_context(project_id=str(data["id"])):
            try:
                project = Project.from_dict(migrate_project_dict(data))
                repo.save(project)
                return ApiResponse(success=True, id=project.id)
            except HTTPException:
                raise
            except (KeyError, TypeError, ValueError) as e:
                raise HTTPException(status_code=400, detail=f"Invalid project document: {e}")
            except Exception as e:
                raise _internal_error("saving project", e)

    @app.delete("/api/project/{project_id}")
    def delete_project(project_id: str):
        with log_context(project_id=project_id):
            try:
                if not repo.delete(project_id):
                    raise HTTPException(status_code=404, detail="Project not found")
                return ApiResponse(success=True)
            except HTTPException:
                raise
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

    @app.post("/api/import/markdown")
    async def import_markdown(files: List[UploadFile] = File(...)):
        try:
            documents = []
            for f in files:
                raw = await f.read()
                documents.append((f.filename or "", raw.decode("utf-8", errors="replace")))
            if not documents:
                raise HTTPException(status_code=400, detail="No files uploaded")

            docs = classify_markdown_documents(documents)
            project = parse_all_markdown(docs.shotlist, docs.characters)
            repo.save(project)
            logger.info(f"Imported markdown as project {project.id} ({len(project.sections)} sections)")
            return project.to_dict()
        except HTTPException:
            raise
        except Exception as e:
            raise _internal_error("importing markdown", e)

    # images

    @app.post("/api/images/upload")
    async def upload_images(images: List[UploadFile] = File(...)):
        try:
            results = []
            for f in images:
                stored = image_store.save_upload(await f.read(), f.filename or "")
                if stored:
                    results.append(stored)
            return {"files": results}
        except Exception as e:
            raise _internal_error("uploading images", e)

    @app.post("/api/images/generate-thumbnails")
    def generate_thumbnails():
        try:
            return image_store.generate_missing_thumbnails()
        except Exception as e:
            raise _internal_error("generating thumbnails", e)

    @app.get("/api/images/browse")
    def browse_images(dir: Optional[str] = None):
        try:
            return image_store.browse(dir)
        except NotADirectoryError:
            raise HTTPException(status_code=404, detail="Directory not found")

    @app.get("/api/images/external")
    def external_image(path: str):
        target = Path(path).expanduser()
        if not target.is_file():
            raise HTTPException(status_code=404, detail="Not found")
        return FileResponse(str(target.resolve()))

    @app.post("/api/images/import-external")
    def import_external_image(request: ImportExternalImageRequest):
        try:
            return image_store.import_external(request.source_path)
        except FileNotFoundError:
            raise HTTPException(status_code=404, detail="Source file not found")
        except Exception as e:
            raise _internal_error("importing external image", e)

    @app.get("/api/images/thumb/{filename}")
    def image_thumbnail(filename: str):
        path = image_store.resolve_thumbnail(filename)
        if path is None:
            raise HTTPException(status_code=404, detail="Not found")
        return FileResponse(str(path))

    @app.get("/api/images/{filename}")
    def image_file(filename: str):
        path = image_store.resolve(filename)
        if path is None:
            raise HTTPException(status_code=404, detail="Not found")
        return FileResponse(str(path))

    # audio

    @app.post("/api/audio/upload")
    async def upload_audio(audio: List[UploadFile] = File(...)):
        try:
            results = []
            for f in audio:
                stored = audio_store.save_upload(await f.read(), f.filename or "")
                if stored:
                    results.append(stored)
            return {"files": results}
        except Exception as e:
            raise _internal_error("uploading audio", e)

    @app.get("/api/audio/browse")
    def browse_audio():
        return {"files": audio_store.browse()}

    @app.get("/api/audio/{filename}")
    def audio_file(filename: str):
        path = audio_store.resolve(filename)
        if path is None:
            raise HTTPException(status_code=404, detail="Not found")
        return FileResponse(str(path))

    # videos

    @app.get("/api/videos/browse")
    def browse_videos(dir: str = ""):
        if not dir:
            raise HTTPException(status_code=400, detail="dir query parameter required")
        try:
            return scan_video_dir(dir).to_dict()
        except NotADirectoryError:
            raise HTTPException(status_code=404, detail="Directory not found")

    @app.get("/api/videos/roots")
    def video_roots():
        return list_roots()

    @app.get("/api/videos/external")
    def external_video(path: str):
        target = Path(path).expanduser()
        if not target.is_file():
            raise HTTPException(status_code=404, detail="Not found")
        media_type = VIDEO_MEDIA_TYPES.get(target.suffix.lower(), "video/mp4")
        return FileResponse(str(target.resolve()), media_type=media_type)

    @app.post("/api/videos/preview")
    def preview_videos(request: VideoImportRequest):
        with log_context(project_id=request.project_id):
            project = _load(request.project_id)
            try:
                listing = scan_video_dir(request.dir)
            except NotADirectoryError:
                raise HTTPException(status_code=404, detail="Directory not found")
            return preview_video_import(project, listing.files).to_dict()

    @app.post("/api/videos/import")
    def import_videos(request: VideoImportRequest):
        with log_context(project_id=request.project_id):
            store = ProjectStore(project=_load(request.project_id))
            try:
                listing = scan_video_dir(request.dir)
            except NotADirectoryError:
                raise HTTPException(status_code=404, detail="Directory not found")
            try:
                summary = store.import_videos(listing.files)
                if summary.matched:
                    repo.save(store.project)
                return {**summary.to_dict(), "project": store.project.to_dict()}
            except Exception as e:
                raise _internal_error("importing videos", e)

    # export

    @app.get("/api/export/items")
    def export_items(project_id: str, content: str = "all", approval: str = "any"):
        with log_context(project_id=project_id):
            project = _load(project_id)
            try:
                items = filter_export_items(collect_export_items(project), content=content, approval=approval)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return [i.to_dict() for i in items]

    @app.post("/api/export/queue")
    def export_queue(request: ExportQueueRequest):
        with log_context(project_id=request.project_id, operation="export"):
            project = _load(request.project_id)
            try:
                item_ids = request.item_ids
                if item_ids is None:
                    items = filter_export_items(
                        collect_export_items(project), content=request.content, approval=request.approval
                    )
                    item_ids = [i.id for i in items]
                tasks = build_export_tasks(project, item_ids)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            if not tasks:
                raise HTTPException(status_code=400, detail="No shots provided")
            try:
                buffer = io.BytesIO()
                write_queue_zip(
                    tasks,
                    buffer,
                    images_dir=config["images_dir"],
                    audio_dir=config["audio_dir"],
                    compresslevel=int(config.get("zip_compression_level", 5)),
                )
                return Response(
                    content=buffer.getvalue(),
                    media_type="application/zip",
                    headers={"Content-Disposition": "attachment; filename=queue.zip"},
                )
            except Exception as e:
                raise _internal_error("exporting queue", e)

    @app.get("/health")
    def health():
        return HealthResponse(status="healthy", timestamp=datetime.now().isoformat())

    return app


def run_server(config: Optional[Dict[str, Any]] = None, host: Optional[str] = None, port: Optional[int] = None) -> None:
    import uvicorn

    if config is None:
        _, config = load_config()
    configure_logging(
        log_file=config["log_file"],
        level=config.get("log_level", "INFO"),
        enable_console=bool(config.get("log_console", True)),
    )
    app = create_app(config)
    uvicorn.run(app, host=host or config["host"], port=int(port or config["port"]))


if __name__ == "__main__":
    run_server()
