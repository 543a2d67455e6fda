import io
import pandas as pd
import pytest
from fastapi.testclient import TestClient

from file_processor.config import Settings
from file_processor.main import create_app


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir):
    return Settings(upload_dir=upload_dir)


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


def leftover_files(directory):
    return sorted(p.name for p in directory.iterdir())


def make_workbook(sheets: dict) -> bytes:
    """Build an .xlsx in memory from {sheet_name: list of row dicts}."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, index=False)
    return buf.getvalue()
