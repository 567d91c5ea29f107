"""
Reading feedback files into text rows
"""

import json
import logging
from pathlib import Path
import zipfile

import pandas as pd

from ..constants import DEFAULT_JSON_ROW_LIMIT, MIN_FILE_ROWS
from ..exceptions import FileError

log = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS = frozenset({".xlsx", ".xls"})
JSON_EXTENSIONS = frozenset({".json"})


def _validate_path(file_path: str | Path) -> Path:
    path = Path(file_path)
    if not path.exists():
        raise FileError(f"Path not found: {path}")
    if not path.is_file():
        raise FileError(f"Path is not a file: {path}")
    return path


def spreadsheet_to_csv(path: Path) -> str:
    """First sheet of a workbook as CSV text"""
    try:
        frame = pd.read_excel(path, sheet_name=0, dtype=str)
    except (ValueError, OSError, ImportError, zipfile.BadZipFile) as e:
        raise FileError(f"Could not read spreadsheet {path.name}: {e}") from e
    return frame.fillna("").to_csv(index=False)


def json_to_csv(path: Path, row_limit: int = DEFAULT_JSON_ROW_LIMIT) -> str:
    """The first `row_limit` objects of a JSON array as CSV text

    A single top-level object is treated as a one-row table.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FileError(f"Invalid JSON in {path.name}: {e}") from e

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise FileError(f"Expected a JSON array of objects in {path.name}")

    items = data[:row_limit]
    if items and not all(isinstance(item, dict) for item in items):
        # Scalars become a one-column table
        items = [{"text": item} for item in items]
    if not items:
        return ""
    return pd.DataFrame(items).fillna("").to_csv(index=False)


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise FileError(f"{path.name} is not UTF-8 text: {e}") from e


def read_rows(
    file_path: str | Path, json_row_limit: int = DEFAULT_JSON_ROW_LIMIT
) -> list[str]:
    """Read a feedback file into text rows: the header, then one row per record.

    Spreadsheets contribute their first sheet; JSON files their first
    `json_row_limit` objects; anything else is read as UTF-8 text. Blank
    lines are dropped.

    Raises:
        FileError: The file is missing, unreadable, or holds fewer than a
            header and one data row.
    """
    path = _validate_path(file_path)
    suffix = path.suffix.lower()

    if suffix in SPREADSHEET_EXTENSIONS:
        text = spreadsheet_to_csv(path)
    elif suffix in JSON_EXTENSIONS:
        text = json_to_csv(path, json_row_limit)
    else:
        text = read_text(path)

    rows = [row.rstrip("\r") for row in text.split("\n")]
    rows = [row for row in rows if row.strip()]
    log.debug("Read %d non-blank rows from %s", len(rows), path.name)

    if len(rows) < MIN_FILE_ROWS:
        raise FileError("Insufficient data in file.")
    return rows
