"""Layered merge of settings sources.

Each layer overrides the one before it: schema defaults, the home file, the
project file, FEEDBACK_BATCH_* variables, then programmatic values.
"""

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .schema import FeedbackSettings, default_values
from .types import ConfigOrigin, ResolvedConfig

log = logging.getLogger(__name__)

PROFILE_ENV = "FEEDBACK_BATCH_PROFILE"


class ConfigResolver:
    """Builds a ResolvedConfig and remembers where each value came from."""

    def __init__(self) -> None:
        self.file_loader = FileConfigLoader()
        self.env_loader = EnvironmentConfigLoader()

    def resolve(
        self,
        programmatic: dict[str, Any] | None = None,
        *,
        profile: str | None = None,
        use_env_file: str | Path | None = None,
        project_root: Path | None = None,
    ) -> ResolvedConfig:
        """Merge all layers and validate the result.

        A broken home file is logged and skipped. A broken project file is
        fatal unless a profile was requested, since the profile may live in
        the home file instead.

        Raises:
            ValueError: A layer holds an invalid value.
            ConfigFileError: pyproject.toml cannot be parsed.
        """
        if profile is None:
            profile = os.getenv(PROFILE_ENV)

        merged: dict[str, Any] = dict(default_values())
        origins: dict[str, ConfigOrigin] = dict.fromkeys(merged, "default")

        try:
            home_values = self.file_loader.load_home_config(profile=profile)
        except ConfigFileError as e:
            log.warning("Skipping home settings file: %s", e)
            home_values = {}
        self._layer(merged, origins, home_values, "file")

        try:
            project_values = self.file_loader.load_project_config(
                project_root=project_root, profile=profile
            )
        except ConfigFileError:
            if profile is None:
                raise
            project_values = {}
        self._layer(merged, origins, project_values, "file")

        try:
            env_values = self.env_loader.load_env_config(env_file=use_env_file)
        except (ValueError, FileNotFoundError) as e:
            raise ValueError(f"Environment configuration error: {e}") from e
        self._layer(merged, origins, env_values, "env")

        self._layer(merged, origins, programmatic or {}, "programmatic")

        try:
            validated = FeedbackSettings(**merged).to_dict()
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

        resolved = ResolvedConfig(**validated, origin=origins)
        log.debug("Resolved settings: %s", resolved)
        return resolved

    def list_available_profiles(
        self, project_root: Path | None = None
    ) -> dict[str, list[str]]:
        return self.file_loader.list_available_profiles(project_root)

    @staticmethod
    def _layer(
        merged: dict[str, Any],
        origins: dict[str, ConfigOrigin],
        values: dict[str, Any],
        origin: ConfigOrigin,
    ) -> None:
        # unknown keys are ignored
        for name in values.keys() & merged.keys():
            merged[name] = values[name]
            origins[name] = origin
