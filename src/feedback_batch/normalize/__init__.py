"""
Response normalization for the feedback batch framework

Turns whatever the analysis endpoint returns into total records over a fixed
canonical field set, falling back to a default-filled diagnostic record
instead of raising.
"""

from .envelope import unwrap_envelope
from .normalizer import ResponseNormalizer, apply_profile, normalize, to_pipe_text
from .profiles import (
    BRAND,
    REVIEW,
    SENTIMENT,
    VISUAL_REVIEW,
    FieldProfile,
    get_profile,
    list_profiles,
    register_profile,
)
from .strategies import ParseStrategy, default_strategies, parse_pipe_text
from .types import NormalizationDiagnostics, NormalizationResult, NormalizedRecord

__all__ = [  # noqa: RUF022
    # Central interface
    "ResponseNormalizer",
    "normalize",
    "to_pipe_text",
    # Result types
    "NormalizedRecord",
    "NormalizationResult",
    "NormalizationDiagnostics",
    # Field profiles
    "FieldProfile",
    "REVIEW",
    "VISUAL_REVIEW",
    "BRAND",
    "SENTIMENT",
    "get_profile",
    "list_profiles",
    "register_profile",
    # Building blocks
    "ParseStrategy",
    "default_strategies",
    "parse_pipe_text",
    "apply_profile",
    "unwrap_envelope",
]
