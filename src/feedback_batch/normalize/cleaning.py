"""Text cleanup applied to model output before parsing"""

import json
import re
from typing import Any

from feedback_batch.constants import KNOWN_PREFIXES

# A fence whose language tag ends the line, e.g. "```json\n"
_TAGGED_FENCE = re.compile(r"```[ \t]*[A-Za-z][\w+.-]*[ \t]*(?=\r?\n|$)", re.MULTILINE)
# Any remaining fence, with an inline json tag if present
_BARE_FENCE = re.compile(r"```(?:json\b)?", re.IGNORECASE)

_PREFIX = re.compile(
    r"^\s*(?:" + "|".join(re.escape(p) for p in KNOWN_PREFIXES) + r")\s*:\s*",
    re.IGNORECASE,
)


def strip_fences(text: str) -> str:
    """Remove every triple-backtick fence marker and trim the result."""
    without_tagged = _TAGGED_FENCE.sub("", text)
    return _BARE_FENCE.sub("", without_tagged).strip()


def strip_prefix(text: str) -> str:
    """Remove a single leading label such as "Result:" or "Analysis:"."""
    return _PREFIX.sub("", text, count=1).strip()


def has_prefix(text: str) -> bool:
    return _PREFIX.match(text) is not None


def try_json(text: str) -> tuple[bool, Any]:
    """Parse JSON, reporting success instead of raising."""
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError):
        return False, None


def clean_value(value: Any) -> str | None:
    """Render a parsed value as a trimmed string; None when absent.

    Lists are joined with ", " and nested objects are re-serialized as JSON.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        parts = [clean_value(v) for v in value]
        return ", ".join(p for p in parts if p)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value).strip()


def clean_key(key: Any) -> str:
    return str(key).strip().lower()
