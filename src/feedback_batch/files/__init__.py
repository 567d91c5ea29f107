"""
File reading for the feedback batch framework
"""  # noqa: D200, D212, D415

from .readers import (
    JSON_EXTENSIONS,
    SPREADSHEET_EXTENSIONS,
    json_to_csv,
    read_rows,
    read_text,
    spreadsheet_to_csv,
)

__all__ = [  # noqa: RUF022
    "read_rows",
    "read_text",
    "json_to_csv",
    "spreadsheet_to_csv",
    "JSON_EXTENSIONS",
    "SPREADSHEET_EXTENSIONS",
]
