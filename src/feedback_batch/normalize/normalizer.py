"""Tolerant normalization of analysis endpoint responses.

The endpoint forwards text to a language model, so its answer can arrive as a
JSON envelope, fenced JSON, a labelled `key: value | key: value` line, a
HuggingFace classifier list, or plain garbage. `ResponseNormalizer` turns all
of these into total records over a fixed canonical field set:

1. unwrap envelopes (`output`, `response`, `choices[0].message.content`,
   arrays, `analysis` arrays, nested arrays)
2. strip markdown fences
3. strip one leading label such as "Result:"
4. retry JSON on the cleaned text and unwrap again
5. dispatch to the first matching `ParseStrategy`
6. fill every canonical field missing from the working record with its default

Nothing in here raises to the caller: any failure ends in a default-filled
record whose `status` is "Error".
"""

from collections.abc import Iterable
import logging
from typing import Any

from feedback_batch.constants import ERROR_STATUS, MAX_UNWRAP_DEPTH

from .cleaning import has_prefix, strip_fences, strip_prefix, try_json
from .envelope import unwrap_envelope
from .profiles import FieldProfile, get_profile
from .strategies import EndpointReportedError, ParseStrategy, default_strategies
from .types import NormalizationDiagnostics, NormalizationResult, NormalizedRecord

log = logging.getLogger(__name__)


def apply_profile(working: dict[str, str], profile: FieldProfile) -> NormalizedRecord:
    """Canonical fields first (parsed or default), then extra keys in source order."""
    record: NormalizedRecord = {}
    for name, default in profile.fields.items():
        value = working.get(name)
        record[name] = value if value else default
    for key, value in working.items():
        if key not in record:
            record[key] = value
    return record


def to_pipe_text(record: NormalizedRecord) -> str:
    """Serialize a record back to the `key: value | key: value` form."""
    return " | ".join(f"{key}: {value}" for key, value in record.items())


class ResponseNormalizer:
    """Turns raw endpoint output into normalized records"""

    def __init__(
        self,
        profile: str | FieldProfile | None = None,
        strategies: Iterable[ParseStrategy] | None = None,
    ):
        """
        Args:
            profile: Canonical field set, by name or as a FieldProfile.
                Defaults to the "review" profile.
            strategies: Parsing strategies to use instead of the built-ins.
        """
        self.profile = get_profile(profile)
        chosen = list(strategies) if strategies is not None else default_strategies()
        # Deterministic order: higher priority first, name as tiebreaker
        self.strategies: tuple[ParseStrategy, ...] = tuple(
            sorted(chosen, key=lambda s: (-s.priority, s.name))
        )

    def normalize(self, raw: Any) -> NormalizedRecord | list[NormalizedRecord]:
        """Normalize a raw response into one record or an ordered list of records."""
        return self.normalize_detailed(raw).value

    def normalize_detailed(self, raw: Any) -> NormalizationResult:
        """Normalize and keep diagnostics about how the result was reached."""
        diagnostics = NormalizationDiagnostics()
        try:
            payload = self._prepare(raw, diagnostics)
            return self._dispatch(payload, diagnostics)
        except Exception as e:
            log.exception("Unexpected error while normalizing a response.")
            return self._fallback(diagnostics, f"Unexpected normalization error: {e}")

    def diagnostic_record(self) -> NormalizedRecord:
        """All profile defaults plus the error marker."""
        record = self.profile.defaults()
        record["status"] = ERROR_STATUS
        return record

    def to_pipe_text(self, record: NormalizedRecord) -> str:
        return to_pipe_text(record)

    def _prepare(self, raw: Any, diagnostics: NormalizationDiagnostics) -> Any:
        if raw is None:
            diagnostics.flags.add("empty_input")
            return ""

        payload = unwrap_envelope(raw, diagnostics.envelope_path)
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")
        if isinstance(payload, (dict, list)):
            return payload
        if not isinstance(payload, str):
            payload = str(payload)
        return self._clean_text(payload, diagnostics)

    def _clean_text(
        self, text: str, diagnostics: NormalizationDiagnostics, depth: int = 0
    ) -> Any:
        cleaned = strip_fences(text)
        if cleaned != text.strip():
            diagnostics.flags.add("fences_stripped")

        if has_prefix(cleaned):
            cleaned = strip_prefix(cleaned)
            diagnostics.flags.add("prefix_stripped")

        ok, parsed = try_json(cleaned)
        if not ok or not isinstance(parsed, (dict, list, str)):
            return cleaned

        diagnostics.flags.add("json_payload")
        inner = unwrap_envelope(parsed, diagnostics.envelope_path)
        if isinstance(inner, str):
            if inner == cleaned or depth >= MAX_UNWRAP_DEPTH:
                return inner
            return self._clean_text(inner, diagnostics, depth + 1)
        return inner

    def _dispatch(
        self, payload: Any, diagnostics: NormalizationDiagnostics
    ) -> NormalizationResult:
        for strategy in self.strategies:
            if not strategy.matcher(payload):
                continue
            diagnostics.attempted_strategies.append(strategy.name)

            try:
                outcome = strategy.extractor(payload, self.profile)
            except EndpointReportedError as e:
                return self._fallback(diagnostics, str(e))
            except Exception as e:
                log.debug("Strategy '%s' failed: %s", strategy.name, e)
                diagnostics.strategy_errors[strategy.name] = str(e)
                continue

            if not outcome.records:
                continue

            records = [
                dict(r) if outcome.mapped else apply_profile(r, self.profile)
                for r in outcome.records
            ]
            log.debug(
                "Normalized response with '%s' into %d record(s).",
                strategy.name,
                len(records),
            )
            return NormalizationResult(
                records=records,
                is_collection=outcome.is_collection,
                method=strategy.name,
                diagnostics=diagnostics,
            )

        return self._fallback(diagnostics, "No strategy produced a usable field")

    def _fallback(
        self, diagnostics: NormalizationDiagnostics, reason: str
    ) -> NormalizationResult:
        log.warning("Response normalization fell back to defaults: %s", reason)
        diagnostics.reason = reason
        return NormalizationResult(
            records=[self.diagnostic_record()],
            is_collection=False,
            method="fallback",
            diagnostics=diagnostics,
        )


_default_normalizers: dict[str, ResponseNormalizer] = {}


def normalize(
    raw: Any, profile: str | FieldProfile | None = None
) -> NormalizedRecord | list[NormalizedRecord]:
    """Normalize with a shared normalizer for the given profile."""
    if isinstance(profile, FieldProfile):
        return ResponseNormalizer(profile).normalize(raw)
    registered = get_profile(profile)
    normalizer = _default_normalizers.get(registered.name)
    # A profile re-registered under the same name gets a fresh normalizer
    if normalizer is None or normalizer.profile is not registered:
        normalizer = ResponseNormalizer(registered)
        _default_normalizers[registered.name] = normalizer
    return normalizer.normalize(raw)
