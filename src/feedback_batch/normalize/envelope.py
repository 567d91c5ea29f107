"""Envelope unwrapping for endpoint responses.

The endpoint wraps the model's real output in one of several JSON shapes
depending on the deployment. `unwrap_envelope` walks those wrappers, decoding
JSON strings found along the way, and returns the innermost payload: a text
string, a list, or a plain object.
"""

from collections.abc import Callable
import logging
from typing import Any

from feedback_batch.constants import MAX_UNWRAP_DEPTH, RECORD_ARRAY_KEYS

from .cleaning import try_json

log = logging.getLogger(__name__)

_MISSING = object()


def _from_output(value: dict[str, Any]) -> Any:
    return value.get("output", _MISSING)


def _from_response(value: dict[str, Any]) -> Any:
    return value.get("response", _MISSING)


def _from_choices(value: dict[str, Any]) -> Any:
    choices = value.get("choices")
    if not isinstance(choices, list) or not choices:
        return _MISSING
    first = choices[0]
    if not isinstance(first, dict):
        return _MISSING
    message = first.get("message")
    if isinstance(message, dict) and "content" in message:
        return message["content"]
    # Completion-style choices carry the text directly
    if "text" in first:
        return first["text"]
    return _MISSING


def _from_record_array(value: dict[str, Any]) -> Any:
    for key in RECORD_ARRAY_KEYS:
        candidate = value.get(key)
        if not isinstance(candidate, list) or not candidate:
            continue
        # `analysis` may also hold one pipe-text line per record
        allowed = (dict, str) if key == "analysis" else dict
        if all(isinstance(item, allowed) for item in candidate):
            return candidate
    return _MISSING


# Checked in order; the first key that is present wins
_OBJECT_UNWRAPPERS: tuple[tuple[str, Callable[[dict[str, Any]], Any]], ...] = (
    ("output", _from_output),
    ("response", _from_response),
    ("choices", _from_choices),
    ("record_array", _from_record_array),
)


def unwrap_envelope(
    raw: Any, path: list[str] | None = None, depth: int = 0
) -> Any:
    """Return the innermost payload of an endpoint response.

    Args:
        raw: Decoded JSON value, JSON text, or plain model text.
        path: Optional list that receives the names of unwrapped layers.
        depth: Current recursion depth (bounded by MAX_UNWRAP_DEPTH).
    """
    trail = path if path is not None else []
    if depth >= MAX_UNWRAP_DEPTH:
        log.debug("Envelope unwrapping stopped at depth %d", depth)
        return raw

    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        ok, decoded = try_json(raw.strip())
        if ok and isinstance(decoded, (dict, list)):
            trail.append("json")
            return unwrap_envelope(decoded, trail, depth + 1)
        if ok and isinstance(decoded, str):
            trail.append("json_string")
            return unwrap_envelope(decoded, trail, depth + 1)
        return raw

    if isinstance(raw, dict):
        for name, unwrapper in _OBJECT_UNWRAPPERS:
            inner = unwrapper(raw)
            if inner is _MISSING or inner is None:
                continue
            trail.append(name)
            return unwrap_envelope(inner, trail, depth + 1)
        return raw

    if isinstance(raw, list):
        # HuggingFace pipelines answer [[{label, score}, ...]]
        if raw and isinstance(raw[0], list):
            trail.append("nested_array")
            inner = raw[0][0] if raw[0] else []
            return unwrap_envelope(inner, trail, depth + 1)
        return raw

    return raw
