# backend/file_processor/main.py
import importlib.util
import logging
import uvicorn
from pathlib import Path
from fastapi import FastAPI, UploadFile, File, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import FileResponse, JSONResponse
from starlette.middleware.cors import CORSMiddleware
from .config import MULTIPART_OVERHEAD, Settings, UPLOAD_FIELD
from .errors import FileProcessorError
from .pipeline import UploadPipeline
from .schemas import HealthStatus
from .storage import TempStorage
from .summary import utc_timestamp
from .validation import too_large_message

logger = logging.getLogger("file_processor")

STATIC_DIR = Path(__file__).resolve().parent / "static"
WORKBOOK_ENGINES = ("openpyxl", "xlrd")


def xlsx_available() -> bool:
    return all(importlib.util.find_spec(name) is not None for name in WORKBOOK_ENGINES)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    storage = TempStorage(settings.upload_dir, field_name=UPLOAD_FIELD)
    pipeline = UploadPipeline(storage, settings.max_upload_bytes, settings.processing_timeout)

    app = FastAPI(title="File Processor API")
    app.state.settings = settings
    app.state.storage = storage
    app.state.pipeline = pipeline
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def reject_oversized_uploads(request: Request, call_next):
        # refuse before the multipart body is spooled to disk
        if request.method == "POST" and request.url.path == "/api/upload":
            length = request.headers.get("content-length", "")
            if length.isdigit() and int(length) > settings.max_upload_bytes + MULTIPART_OVERHEAD:
                logger.warning("Upload rejected on Content-Length: %s bytes", length)
                return JSONResponse(
                    status_code=400,
                    content={"success": False, "message": too_large_message(settings.max_upload_bytes)},
                )
        return await call_next(request)

    @app.exception_handler(FileProcessorError)
    async def file_processor_error_handler(request: Request, exc: FileProcessorError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.public_message},
        )

    @app.exception_handler(Exception)
    async def all_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})

    @app.post("/api/upload")
    async def upload(file: UploadFile | None = File(None)):
        result = await pipeline.run(file)
        return JSONResponse(content=jsonable_encoder(result.to_payload()))

    @app.get("/api/health", response_model=HealthStatus, response_model_by_alias=True)
    def health():
        logger.info("Health check requested")
        return HealthStatus(
            success=True,
            message="Server is running",
            timestamp=utc_timestamp(),
            xlsx_available=xlsx_available(),
        )

    @app.get("/", include_in_schema=False)
    def index():
        return FileResponse(STATIC_DIR / "index.html")

    logger.info("File uploads directory: %s", storage.upload_dir)
    logger.info("Workbook engines available: %s", xlsx_available())
    return app


def run():
    settings = Settings.from_env()
    uvicorn.run(
        "file_processor.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
