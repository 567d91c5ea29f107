"""
Table and report rendering over normalized records
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

from .constants import REPORT_RULE_WIDTH, REPORT_SUBTITLE, REPORT_TITLE

log = logging.getLogger(__name__)

# Columns whose values get a sentiment CSS class
SENTIMENT_COLUMNS = frozenset({"sentiment", "label"})

# Short labels used in the plain-text report
REPORT_LABELS = {"clothing_id": "ID", "key_issues": "Issues"}


@dataclass(frozen=True)
class Cell:
    text: str
    css_class: str | None = None


def column_title(name: str) -> str:
    return name.replace("_", " ").title()


_env = Environment(
    loader=PackageLoader("feedback_batch", "templates"),
    autoescape=select_autoescape(["html", "j2"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["column_title"] = column_title


def cell_text(value: Any) -> str:
    """Render a record value; lists are joined with ", "."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v is not None)
    return str(value)


def sentiment_class(value: str) -> str:
    lowered = value.lower()
    for polarity in ("positive", "negative", "mixed"):
        if polarity in lowered:
            return f"sentiment-{polarity}"
    return "sentiment-neutral"


def collect_columns(records: Iterable[Mapping[str, Any]]) -> list[str]:
    """Every key of every record, in order of first appearance."""
    columns: dict[str, None] = {}
    for record in records:
        columns.update(dict.fromkeys(record))
    return list(columns)


def render_table_html(
    records: Sequence[Mapping[str, Any]],
    columns: Sequence[str] | None = None,
    *,
    document: bool = False,
    title: str = REPORT_TITLE,
) -> str:
    """Render records as an HTML table.

    Args:
        records: Normalized records (or any string-keyed mappings).
        columns: Columns to show, in order; defaults to every key seen.
        document: Wrap the table in a minimal standalone HTML page.
        title: Page title when `document` is set.
    """
    shown = list(columns) if columns is not None else collect_columns(records)
    rows = []
    for record in records:
        row = []
        for column in shown:
            text = cell_text(record.get(column))
            css = sentiment_class(text) if column in SENTIMENT_COLUMNS else None
            row.append(Cell(text, css))
        rows.append(row)

    template = _env.get_template("table.html.j2")
    return template.render(columns=shown, rows=rows, document=document, title=title)


def generate_report(
    records: Sequence[Mapping[str, Any]],
    *,
    title: str = REPORT_TITLE,
    subtitle: str = REPORT_SUBTITLE,
    item_label: str = "PRODUCT",
) -> str:
    """Numbered plain-text report, one block per record"""
    labels = {
        key: REPORT_LABELS.get(key, column_title(key))
        for key in collect_columns(records)
    }
    width = max((len(label) + 2 for label in labels.values()), default=0)

    lines = [title, subtitle, "=" * REPORT_RULE_WIDTH, ""]
    for number, record in enumerate(records, start=1):
        lines.append(f"{item_label} #{number}")
        for key, value in record.items():
            lines.append(f"{labels[key] + ':':<{width}}{cell_text(value)}".rstrip())
        lines.append("-" * REPORT_RULE_WIDTH)
    return "\n".join(lines) + "\n"


def write_report(
    records: Sequence[Mapping[str, Any]], path: str | Path, **options: Any
) -> Path:
    """Write `generate_report` output to `path` and return it."""
    target = Path(path)
    target.write_text(generate_report(records, **options), encoding="utf-8")
    log.info("Wrote report for %d record(s) to %s", len(records), target)
    return target


def write_table_html(
    records: Sequence[Mapping[str, Any]], path: str | Path, **options: Any
) -> Path:
    target = Path(path)
    target.write_text(
        render_table_html(records, document=True, **options), encoding="utf-8"
    )
    log.info("Wrote HTML table for %d record(s) to %s", len(records), target)
    return target
