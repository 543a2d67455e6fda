# backend/file_processor/pipeline.py
import asyncio
import logging
from enum import Enum
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool
from .errors import FileProcessorError, ProcessingError, ProcessingTimeoutError, StorageError, ValidationError
from .ingest import ParsedTable, SourceFormat, detect_format, parse_file
from .schemas import UploadResult
from .storage import StoredFile, TempStorage
from .summary import build_summary, format_size
from .validation import extension_of, measure_upload, validate_upload

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "File processed successfully"


class Stage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    STORED = "stored"
    PARSED = "parsed"
    SUMMARIZED = "summarized"
    CLEANED = "cleaned"
    RESPONDED = "responded"
    ERRORED = "errored"


class UploadPipeline:
    """
    Runs one upload through validate -> store -> parse -> summarize -> cleanup.

    Every failure surfaces as a FileProcessorError. Once the upload has been
    written to disk the temp file is released exactly once, whatever happens
    afterwards; a failed release is logged and never replaces the original error.
    """

    def __init__(self, storage: TempStorage, max_upload_bytes: int, processing_timeout: float | None = None):
        self.storage = storage
        self.max_upload_bytes = max_upload_bytes
        self.processing_timeout = processing_timeout

    async def run(self, upload: UploadFile | None) -> UploadResult:
        logger.info("=== New Upload Request ===")
        stage = Stage.RECEIVED
        if upload is None or not upload.filename:
            logger.warning("No file in request")
            raise ValidationError("No file uploaded")

        size = measure_upload(upload)
        try:
            validate_upload(upload.filename, upload.content_type, size, self.max_upload_bytes)
        except ValidationError as e:
            self._log_failure(stage, e)
            raise
        stage = self._advance(Stage.VALIDATED)
        logger.info(
            "Original name: %s | size: %s | MIME type: %s | extension: %s",
            upload.filename, format_size(size), upload.content_type, extension_of(upload.filename),
        )

        stored: StoredFile | None = None
        try:
            stored = await run_in_threadpool(self.storage.store, upload.file, upload.filename)
            stage = self._advance(Stage.STORED)
            logger.info("Stored as: %s", stored.path)

            source_format = detect_format(upload.filename)
            table = await self._parse(stored, source_format)
            stage = self._advance(Stage.PARSED)

            summary = build_summary(upload.filename, size, source_format, table)
            stage = self._advance(Stage.SUMMARIZED)
        except FileProcessorError as e:
            self._log_failure(stage, e)
            raise
        except Exception as e:
            logger.exception("Unexpected error while processing %s", upload.filename)
            raise ProcessingError(str(e) or "Internal server error") from e
        finally:
            if stored is not None:
                self._release(stored)

        self._advance(Stage.CLEANED)
        self._advance(Stage.RESPONDED)
        return UploadResult(success=True, message=SUCCESS_MESSAGE, data=table, processing_info=summary)

    async def _parse(self, stored: StoredFile, source_format: SourceFormat) -> ParsedTable:
        logger.info("Processing as %s file", source_format.value)
        if self.processing_timeout is None:
            return await run_in_threadpool(parse_file, stored.path, source_format)
        # threadpool work shields itself from cancellation; an executor future can be abandoned
        loop = asyncio.get_running_loop()
        work = loop.run_in_executor(None, parse_file, stored.path, source_format)
        try:
            return await asyncio.wait_for(work, timeout=self.processing_timeout)
        except asyncio.TimeoutError:
            raise ProcessingTimeoutError(
                f"Processing exceeded {self.processing_timeout:g} seconds"
            ) from None

    def _release(self, stored: StoredFile) -> None:
        try:
            removed = self.storage.release(stored)
        except StorageError:
            logger.exception("Temp file cleanup failed for %s", stored.path)
            return
        if removed:
            logger.info("Temporary file cleaned up: %s", stored.path.name)

    @staticmethod
    def _advance(stage: Stage) -> Stage:
        logger.info("Upload stage -> %s", stage.value)
        return stage

    @staticmethod
    def _log_failure(stage: Stage, error: FileProcessorError) -> None:
        logger.warning(
            "Upload stage -> %s (from %s): %s", Stage.ERRORED.value, stage.value, error.public_message
        )
