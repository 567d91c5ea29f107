"""Result containers for response normalization"""

from dataclasses import dataclass, field
from typing import Any

NormalizedRecord = dict[str, str]


@dataclass
class NormalizationDiagnostics:
    """What the normalizer tried and what it stripped along the way"""

    attempted_strategies: list[str] = field(default_factory=list)
    strategy_errors: dict[str, str] = field(default_factory=dict)
    envelope_path: list[str] = field(default_factory=list)
    flags: set[str] = field(default_factory=set)
    reason: str | None = None


@dataclass
class NormalizationResult:
    """Outcome of normalizing one raw endpoint response"""

    records: list[NormalizedRecord]
    is_collection: bool
    method: str
    diagnostics: NormalizationDiagnostics = field(
        default_factory=NormalizationDiagnostics
    )

    @property
    def is_fallback(self) -> bool:
        """True when no strategy produced a usable key"""
        return self.method == "fallback"

    @property
    def record(self) -> NormalizedRecord:
        """First record; the only one for non-collection results"""
        return self.records[0]

    @property
    def value(self) -> NormalizedRecord | list[NormalizedRecord]:
        """A single record, or the ordered list for collection payloads"""
        if self.is_collection:
            return self.records
        return self.records[0]


@dataclass(frozen=True)
class StrategyOutcome:
    """What a strategy extractor hands back to the normalizer"""

    records: list[dict[str, Any]]
    is_collection: bool = False
    # Records already carry their final canonical field set
    mapped: bool = False
