"""Canonical field sets applied to normalized records.

Every field in a profile is guaranteed to exist in a normalized record. The
defaults differ between deployments; the built-in values below are the
documented ones.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from feedback_batch.constants import DEFAULT_FIELD_PROFILE


@dataclass(frozen=True)
class FieldProfile:
    """Ordered canonical fields with their default values."""

    name: str
    fields: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Profile name must be a non-empty string")
        normalized = {
            str(key).strip().lower(): str(value) for key, value in self.fields.items()
        }
        if "" in normalized:
            raise ValueError(f"Profile '{self.name}' has an empty field name")
        object.__setattr__(self, "fields", MappingProxyType(normalized))

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(self.fields)

    def defaults(self) -> dict[str, str]:
        """A fresh record holding only default values."""
        return dict(self.fields)


REVIEW = FieldProfile(
    "review",
    {
        "type": "General",
        "status": "Review Needed",
        "aspect": "General",
        "action": "none",
    },
)

VISUAL_REVIEW = FieldProfile("visual_review", {**REVIEW.fields, "visual": "none"})

BRAND = FieldProfile(
    "brand",
    {
        "clothing_id": "N/A",
        "sentiment": "Unknown",
        "key_issues": "none",
        "summary": "",
    },
)

SENTIMENT = FieldProfile("sentiment", {"label": "UNKNOWN", "score": "0.0%"})

_REGISTRY: dict[str, FieldProfile] = {
    profile.name: profile for profile in (REVIEW, VISUAL_REVIEW, BRAND, SENTIMENT)
}


def register_profile(profile: FieldProfile, *, replace: bool = False) -> None:
    """Make a custom profile available by name."""
    if profile.name in _REGISTRY and not replace:
        raise ValueError(f"Field profile '{profile.name}' is already registered")
    _REGISTRY[profile.name] = profile


def get_profile(name: str | FieldProfile | None = None) -> FieldProfile:
    """Look up a profile by name; None gives the default profile."""
    if isinstance(name, FieldProfile):
        return name
    key = (name or DEFAULT_FIELD_PROFILE).strip().lower()
    try:
        return _REGISTRY[key]
    except KeyError:
        raise ValueError(
            f"Unknown field profile '{name}'. Available: {', '.join(sorted(_REGISTRY))}"
        ) from None


def list_profiles() -> list[str]:
    return sorted(_REGISTRY)
