"""Parsing strategies tried against an unwrapped payload.

Each `ParseStrategy` pairs a cheap `matcher` (does this payload have my shape?)
with an `extractor` that turns it into working records. The normalizer tries
them in priority order; an extractor that raises or yields nothing hands the
payload to the next strategy.
"""

from collections.abc import Callable
from dataclasses import dataclass
import math
import re
from typing import Any

from .cleaning import clean_key, clean_value, strip_fences, strip_prefix
from .profiles import SENTIMENT, FieldProfile
from .types import StrategyOutcome

Matcher = Callable[[Any], bool]
Extractor = Callable[[Any, FieldProfile], StrategyOutcome]

_SEGMENT_SPLIT = re.compile(r"\||\r?\n")
_KEY_MARKUP = " \t-*#`•>{\"'"
# "**Type:** A" and "__Type:__ A" wrap the key and its colon in one bold pair
_BOLD_KEY = re.compile(r"(\*\*|__)([^:|\n]+?):\1")
_BOLD_VALUE = re.compile(r"(\*\*|__)((?:(?!\1).)+)\1", re.DOTALL)

_SENTIMENT_KEYS = frozenset({"label", "score"})
_ERROR_ENVELOPE_KEYS = frozenset(
    {"error", "message", "details", "code", "status", "estimated_time", "warnings"}
)
_LABEL_MAP = {
    "LABEL_1": "POSITIVE",
    "POSITIVE": "POSITIVE",
    "LABEL_0": "NEGATIVE",
    "NEGATIVE": "NEGATIVE",
}


@dataclass(frozen=True)
class ParseStrategy:
    """A named matcher/extractor pair; higher priority runs first."""

    name: str
    matcher: Matcher
    extractor: Extractor
    priority: int = 0


# --- Shared helpers ---


def parse_pipe_text(text: str) -> dict[str, str]:
    """Split `key: value | key: value` text into a working record.

    Segments are separated by pipes or newlines and split on their first colon.
    Markdown bold around a key or a whole value is dropped. Segments without
    both a key and a value are skipped; a repeated key keeps its last value.
    """
    working: dict[str, str] = {}
    for segment in _SEGMENT_SPLIT.split(_BOLD_KEY.sub(r"\2:", text)):
        if ":" not in segment:
            continue
        key, value = segment.split(":", 1)
        key = clean_key(_unbold(key.strip(_KEY_MARKUP)))
        value = _unbold(value.strip())
        if not key or not value:
            continue
        working[key] = value
    return working


def _unbold(text: str) -> str:
    match = _BOLD_VALUE.fullmatch(text)
    return match.group(2).strip() if match else text


def working_record(item: dict[str, Any]) -> dict[str, str]:
    """Lower-case keys and stringify values, dropping empty ones."""
    working: dict[str, str] = {}
    for key, value in item.items():
        name = clean_key(key)
        text = clean_value(value)
        if not name or not text:
            continue
        working[name] = text
    return working


def _is_sentiment_item(item: Any) -> bool:
    if not isinstance(item, dict) or not item:
        return False
    keys = {clean_key(k) for k in item}
    return "label" in keys and keys <= _SENTIMENT_KEYS


def canonical_label(label: Any) -> str:
    text = clean_value(label)
    if not text:
        return SENTIMENT.fields["label"]
    upper = text.upper()
    return _LABEL_MAP.get(upper, upper)


def format_score(score: Any) -> str:
    """0.873 -> "87.3%"; unusable scores fall back to the profile default."""
    try:
        number = float(score)
    except (TypeError, ValueError):
        return SENTIMENT.fields["score"]
    if math.isnan(number) or math.isinf(number):
        return SENTIMENT.fields["score"]
    return f"{number * 100:.1f}%"


def _score_value(item: dict[str, Any]) -> float:
    try:
        number = float(_lookup(item, "score"))
    except (TypeError, ValueError):
        return float("-inf")
    return number if not math.isnan(number) else float("-inf")


def _lookup(item: dict[str, Any], name: str) -> Any:
    for key, value in item.items():
        if clean_key(key) == name:
            return value
    return None


# --- Strategies ---


def match_sentiment(payload: Any) -> bool:
    if isinstance(payload, dict):
        return _is_sentiment_item(payload)
    if isinstance(payload, list) and payload:
        return all(_is_sentiment_item(item) for item in payload)
    return False


def extract_sentiment(payload: Any, profile: FieldProfile) -> StrategyOutcome:  # noqa: ARG001
    candidates = payload if isinstance(payload, list) else [payload]
    # max() keeps the first of equally scored candidates
    best = max(candidates, key=_score_value)
    record = {
        "label": canonical_label(_lookup(best, "label")),
        "score": format_score(_lookup(best, "score")),
    }
    return StrategyOutcome(records=[record], mapped=True)


def match_error_envelope(payload: Any) -> bool:
    if not isinstance(payload, dict) or not payload:
        return False
    keys = {clean_key(k) for k in payload}
    return "error" in keys and keys <= _ERROR_ENVELOPE_KEYS


def extract_error_envelope(payload: Any, profile: FieldProfile) -> StrategyOutcome:  # noqa: ARG001
    """Never yields records: the normalizer turns this into a diagnostic record."""
    message = clean_value(_lookup(payload, "error")) or "unspecified error"
    raise EndpointReportedError(f"Endpoint reported an error: {message}")


def match_collection(payload: Any) -> bool:
    return isinstance(payload, list)


def extract_collection(payload: Any, profile: FieldProfile) -> StrategyOutcome:  # noqa: ARG001
    records = []
    for item in payload:
        if isinstance(item, dict):
            working = working_record(item)
        elif isinstance(item, str):
            working = parse_pipe_text(strip_prefix(strip_fences(item)))
        else:
            continue
        if working:
            records.append(working)
    return StrategyOutcome(records=records, is_collection=True)


def match_object(payload: Any) -> bool:
    return isinstance(payload, dict)


def extract_object(payload: Any, profile: FieldProfile) -> StrategyOutcome:  # noqa: ARG001
    working = working_record(payload)
    return StrategyOutcome(records=[working] if working else [])


def _line_records(text: str) -> list[dict[str, str]]:
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2 or not all("|" in line and ":" in line for line in lines):
        return []
    records = [parse_pipe_text(strip_prefix(line)) for line in lines]
    if not all(records):
        return []
    # Lines are separate records only when they repeat a leading key or a key set
    leading = {next(iter(r)) for r in records}
    layouts = {frozenset(r) for r in records}
    return records if len(leading) == 1 or len(layouts) == 1 else []


def match_line_records(payload: Any) -> bool:
    return isinstance(payload, str) and bool(_line_records(payload))


def extract_line_records(payload: Any, profile: FieldProfile) -> StrategyOutcome:  # noqa: ARG001
    return StrategyOutcome(records=_line_records(payload), is_collection=True)


def match_text(payload: Any) -> bool:
    return isinstance(payload, str)


def extract_text(payload: Any, profile: FieldProfile) -> StrategyOutcome:  # noqa: ARG001
    working = parse_pipe_text(payload)
    return StrategyOutcome(records=[working] if working else [])


class EndpointReportedError(Exception):
    """The endpoint answered with an error envelope instead of model output."""


def default_strategies() -> list[ParseStrategy]:
    """Built-in strategies, highest priority first."""
    return [
        ParseStrategy("sentiment_classifier", match_sentiment, extract_sentiment, 50),
        ParseStrategy("error_envelope", match_error_envelope, extract_error_envelope, 45),
        ParseStrategy("record_collection", match_collection, extract_collection, 40),
        ParseStrategy("json_object", match_object, extract_object, 30),
        ParseStrategy("line_records", match_line_records, extract_line_records, 20),
        ParseStrategy("pipe_text", match_text, extract_text, 10),
    ]
