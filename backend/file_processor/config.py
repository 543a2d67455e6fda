# backend/file_processor/config.py
import os
from pathlib import Path
from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).resolve().parents[1]

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB
# multipart boundaries and part headers on top of the file bytes
MULTIPART_OVERHEAD = 64 * 1024
UPLOAD_FIELD = "file"


def _optional_float(raw: str | None) -> float | None:
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


class Settings:
    def __init__(
        self,
        upload_dir: str | Path | None = None,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
        processing_timeout: float | None = None,
        cors_origins: list[str] | None = None,
        log_level: str = "INFO",
        host: str = "0.0.0.0",
        port: int = 5000,
    ):
        self.upload_dir = Path(upload_dir) if upload_dir else BACKEND_DIR / "uploads"
        self.max_upload_bytes = max_upload_bytes
        self.processing_timeout = processing_timeout
        self.cors_origins = cors_origins or ["*"]
        self.log_level = log_level
        self.host = host
        self.port = port

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            upload_dir=os.getenv("UPLOAD_DIR") or None,
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", MAX_UPLOAD_BYTES)),
            processing_timeout=_optional_float(os.getenv("PROCESSING_TIMEOUT")),
            cors_origins=os.getenv("CORS_ALLOWED_ORIGINS", "*").split(","),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
        )
