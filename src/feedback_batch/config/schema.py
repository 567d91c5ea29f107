"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces configuration
values from various sources (environment, files, programmatic) into the correct
types with proper defaults.
"""

from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from feedback_batch.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_FIELD_PROFILE,
    DEFAULT_JSON_ROW_LIMIT,
    DEFAULT_PAYLOAD_KEY,
    NETWORK_TIMEOUT,
)

ProcessingMode = Literal["batch", "row"]
PayloadKey = Literal["text", "data"]


class FeedbackSettings(BaseSettings):
    """Pydantic settings schema for feedback batch configuration.

    This handles validation, type coercion, and default values for all
    configuration fields. It integrates with environment variables using
    the FEEDBACK_BATCH_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="FEEDBACK_BATCH_",
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars for forward compatibility
    )

    # --- Endpoint ---

    endpoint_url: str | None = Field(
        default=None,
        description="URL of the remote text-analysis endpoint",
    )

    api_key: str | None = Field(
        default=None,
        description="Optional bearer token sent to the endpoint",
    )

    payload_key: PayloadKey = Field(
        default=DEFAULT_PAYLOAD_KEY,
        description="JSON body key carrying the text ('text' or 'data')",
    )

    timeout_seconds: float = Field(
        default=NETWORK_TIMEOUT,
        description="Per-request timeout in seconds",
        gt=0,
    )

    # --- Batching ---

    mode: ProcessingMode = Field(
        default="batch",
        description="'batch' sends header + a chunk of rows, 'row' sends one row per call",
    )

    batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE,
        description="Rows per remote call in batch mode",
        ge=1,
    )

    max_rows: int | None = Field(
        default=None,
        description="Upper bound on data rows processed (None for all)",
        ge=1,
    )

    json_row_limit: int = Field(
        default=DEFAULT_JSON_ROW_LIMIT,
        description="Objects read from a JSON input file",
        ge=1,
    )

    continue_on_error: bool = Field(
        default=True,
        description="Record a diagnostic item and keep going after a failed call",
    )

    # --- Normalization ---

    field_profile: str = Field(
        default=DEFAULT_FIELD_PROFILE,
        description="Name of the canonical field set applied to responses",
        min_length=1,
    )

    @field_validator("endpoint_url", mode="before")
    @classmethod
    def blank_endpoint_is_none(cls, v: Any) -> Any:
        """Treat empty strings from env or files as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("endpoint_url")
    @classmethod
    def validate_endpoint_scheme(cls, v: str | None) -> str | None:
        """Only http(s) endpoints are supported."""
        if v is not None and not v.lower().startswith(("http://", "https://")):
            raise ValueError(f"endpoint_url must be an http(s) URL, got {v!r}")
        return v

    @field_validator("payload_key", "mode", "field_profile", mode="before")
    @classmethod
    def lowercase_choice(cls, v: Any) -> Any:
        """Accept choices case-insensitively."""
        return v.strip().lower() if isinstance(v, str) else v

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary keyed by field name."""
        return {name: getattr(self, name) for name in type(self).model_fields}


def default_values() -> dict[str, Any]:
    """Schema defaults without reading the environment."""
    return FeedbackSettings.model_construct().to_dict()


def field_names() -> tuple[str, ...]:
    """Known configuration field names in declaration order."""
    return tuple(FeedbackSettings.model_fields)
