"""Settings value objects.

ResolvedConfig carries an origin per field for auditing. FrozenConfig is the
immutable snapshot a BatchProcessor runs with.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, NamedTuple

ConfigOrigin = Literal["programmatic", "env", "file", "default"]
SourceMap = Mapping[str, ConfigOrigin]

_FIELD_ORDER = (
    "endpoint_url",
    "api_key",
    "payload_key",
    "timeout_seconds",
    "mode",
    "batch_size",
    "max_rows",
    "json_row_limit",
    "continue_on_error",
    "field_profile",
)


class ResolvedConfig(NamedTuple):
    """Merged, validated settings plus the source of each value."""

    endpoint_url: str | None
    api_key: str | None
    payload_key: str
    timeout_seconds: float
    mode: str
    batch_size: int
    max_rows: int | None
    json_row_limit: int
    continue_on_error: bool
    field_profile: str

    origin: SourceMap

    def __str__(self) -> str:
        return f"ResolvedConfig({_render_fields(self)}, origin={dict(self.origin)!r})"

    __repr__ = __str__

    def to_frozen(self) -> "FrozenConfig":
        return FrozenConfig(**{name: getattr(self, name) for name in _FIELD_ORDER})

    def with_overrides(self, **overrides: object) -> "ResolvedConfig":
        """Copy with the given fields replaced and marked programmatic.

        Names that are not settings fields are dropped.
        """
        new_values = self._asdict()
        new_origin = dict(self.origin)

        for field, value in overrides.items():
            if field in _FIELD_ORDER:
                new_values[field] = value
                new_origin[field] = "programmatic"

        new_values["origin"] = new_origin
        return ResolvedConfig(**new_values)

    def audit(self) -> str:
        """One ``field: origin:value`` line per field, secrets redacted."""
        lines = []
        for field in _FIELD_ORDER:
            if field not in self.origin:
                continue
            origin = self.origin[field]
            value = getattr(self, field)
            if field == "api_key" and value is not None:
                display = "<redacted>"
            else:
                display = value
            if origin == "env":
                lines.append(f"{field}: env:FEEDBACK_BATCH_{field.upper()}={display}")
            else:
                lines.append(f"{field}: {origin}:{display}")
        return "\n".join(lines)


@dataclass(frozen=True)
class FrozenConfig:
    """Read-only settings snapshot used for a processing run."""

    endpoint_url: str | None
    api_key: str | None
    payload_key: str
    timeout_seconds: float
    mode: str
    batch_size: int
    max_rows: int | None
    json_row_limit: int
    continue_on_error: bool
    field_profile: str

    def __str__(self) -> str:
        return f"FrozenConfig({_render_fields(self)})"

    __repr__ = __str__


def _render_fields(config: ResolvedConfig | FrozenConfig) -> str:
    parts = []
    for name in _FIELD_ORDER:
        value = getattr(config, name)
        if name == "api_key" and value:
            value = "[REDACTED]"
        parts.append(f"{name}={value!r}")
    return ", ".join(parts)
