# backend/file_processor/validation.py
import io
import os
from fastapi import UploadFile
from .errors import ValidationError

ALLOWED_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
ALLOWED_EXTENSIONS = {".csv", ".xls", ".xlsx"}

INVALID_TYPE_MESSAGE = "Invalid file type. Only CSV and Excel files are allowed."


def too_large_message(max_bytes: int) -> str:
    return f"File too large. Maximum size allowed is {max_bytes // (1024 * 1024)}MB."


def extension_of(filename: str | None) -> str:
    return os.path.splitext(filename or "")[1].lower()


def measure_upload(upload: UploadFile) -> int:
    upload.file.seek(0, io.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def validate_upload(filename: str | None, content_type: str | None, size: int, max_bytes: int) -> None:
    """
    Decide whether an upload may be processed. Raises ValidationError on rejection.

    Size is checked first so an oversize file always gets the size message.
    Extension and MIME type are each sufficient on their own, because browsers
    report MIME types for spreadsheets inconsistently.
    """
    if size > max_bytes:
        raise ValidationError(too_large_message(max_bytes))
    if extension_of(filename) in ALLOWED_EXTENSIONS:
        return
    if content_type in ALLOWED_CONTENT_TYPES:
        return
    raise ValidationError(INVALID_TYPE_MESSAGE)
