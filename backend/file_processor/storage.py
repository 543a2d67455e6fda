# backend/file_processor/storage.py
import logging
import os
import random
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO
from .config import UPLOAD_FIELD
from .errors import StorageError

logger = logging.getLogger(__name__)

MAX_NAME_ATTEMPTS = 5


@dataclass(frozen=True)
class StoredFile:
    path: Path
    original_name: str


class TempStorage:
    """
    Holds each upload on disk for the lifetime of a single request.

    Names are `<field>-<epoch ms>-<random int>` plus the original extension;
    files are opened in exclusive-create mode so a clash can never overwrite
    another request's upload.
    """

    def __init__(self, upload_dir: str | Path, field_name: str = UPLOAD_FIELD):
        self.upload_dir = Path(upload_dir).resolve()
        self.field_name = field_name
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def unique_name(self, original_name: str) -> str:
        suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"{self.field_name}-{suffix}{os.path.splitext(original_name)[1]}"

    def store(self, stream: BinaryIO, original_name: str) -> StoredFile:
        for _ in range(MAX_NAME_ATTEMPTS):
            path = self.upload_dir / self.unique_name(original_name)
            try:
                with open(path, "xb") as out:
                    shutil.copyfileobj(stream, out)
            except FileExistsError:
                logger.warning("Temp name clash on %s, retrying", path.name)
                continue
            except OSError as e:
                path.unlink(missing_ok=True)
                raise StorageError(f"Could not store upload: {e}") from e
            return StoredFile(path=path, original_name=original_name)
        raise StorageError("Could not allocate a unique temp file name")

    def release(self, stored: StoredFile) -> bool:
        if not stored.path.exists():
            return False
        try:
            stored.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Could not remove temp file {stored.path.name}: {e}") from e
        return True
