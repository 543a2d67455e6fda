# backend/file_processor/ingest.py
import csv
import io
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Union
import chardet
import pandas as pd
from .errors import ParseError, UnsupportedFormatError
from .validation import extension_of

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
ParsedTable = Union[List[Row], Dict[str, List[Row]]]


class SourceFormat(str, Enum):
    CSV = "csv"
    WORKBOOK = "workbook"


FORMAT_BY_EXTENSION = {
    ".csv": SourceFormat.CSV,
    ".xls": SourceFormat.WORKBOOK,
    ".xlsx": SourceFormat.WORKBOOK,
}


def detect_format(filename: str) -> SourceFormat:
    ext = extension_of(filename)
    try:
        return FORMAT_BY_EXTENSION[ext]
    except KeyError:
        raise UnsupportedFormatError(f"Unsupported file type: {ext}") from None


def detect_encoding(b: bytes) -> str:
    res = chardet.detect(b)
    enc = res.get('encoding') or 'utf-8'
    # utf-8-sig strips a leading BOM that would otherwise leak into the first header
    if enc.lower() in ('utf-8', 'ascii'):
        return 'utf-8-sig'
    return enc


def _records(df: pd.DataFrame) -> List[Row]:
    df = df.astype(object).where(pd.notna(df), None)
    df.columns = [str(c) for c in df.columns]
    return df.to_dict(orient="records")


def _row_mapping(header: List[str], cells: List[str]) -> Row:
    # cells past the header keep their position as "_<index>"; short rows just stop early
    return {
        header[i] if i < len(header) else f"_{i}": cell
        for i, cell in enumerate(cells)
    }


def read_delimited(path: Union[str, Path]) -> List[Row]:
    """
    Parse a comma-delimited file into row dicts keyed by the header row.

    Cells are kept as strings; empty cells stay "". Rows longer than the header
    keep their extra cells, rows shorter than it only carry the cells they have.
    Raises ParseError on any read, decode or parser failure, never returning a
    partial table.
    """
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        raise ParseError(f"Could not read CSV file: {e}") from e
    if not raw.strip():
        return []
    enc = detect_encoding(raw)
    try:
        text = raw.decode(enc)
    except (UnicodeDecodeError, LookupError) as e:
        raise ParseError(f"Could not decode CSV file as {enc}: {e}") from e
    try:
        lines = [cells for cells in csv.reader(io.StringIO(text, newline="")) if cells]
    except csv.Error as e:
        raise ParseError(f"Failed to parse CSV: {e}") from e
    if not lines:
        return []
    header, body = lines[0], lines[1:]
    return [_row_mapping(header, cells) for cells in body]


def read_workbook(path: Union[str, Path]) -> Dict[str, List[Row]]:
    """
    Parse every sheet of an .xls/.xlsx workbook, keeping the declared sheet order.
    Each sheet's first row names its columns; fully blank rows are skipped.
    """
    try:
        sheets = pd.read_excel(path, sheet_name=None, dtype=object)
    except Exception as e:
        logger.exception("Excel processing error")
        raise ParseError(f"Error processing Excel file: {e}") from e
    result: Dict[str, List[Row]] = {}
    for sheet_name, df in sheets.items():
        rows = _records(df.dropna(how="all"))
        result[str(sheet_name)] = rows
        logger.info('Sheet "%s": %d rows', sheet_name, len(rows))
    return result


def parse_file(path: Union[str, Path], source_format: SourceFormat) -> ParsedTable:
    if source_format is SourceFormat.CSV:
        return read_delimited(path)
    if source_format is SourceFormat.WORKBOOK:
        return read_workbook(path)
    raise UnsupportedFormatError(f"Unsupported file format: {source_format}")
