"""Entry points for resolving feedback-batch settings."""

from pathlib import Path
from typing import Any

from .resolver import ConfigResolver
from .scope import get_ambient_resolved_config
from .types import ResolvedConfig

_resolver = ConfigResolver()


def resolve_config(
    programmatic: dict[str, Any] | None = None,
    *,
    profile: str | None = None,
    use_env_file: str | Path | None = None,
    project_root: Path | None = None,
) -> ResolvedConfig:
    """Merge every settings source into one ResolvedConfig.

    Later sources win: defaults, home file, project file, environment,
    then ``programmatic``. When called under ``config_scope()`` the scoped
    config replaces the file and environment layers and ``programmatic`` is
    laid over it.

    ``profile`` falls back to FEEDBACK_BATCH_PROFILE. ``use_env_file`` names
    a dotenv file to export before the environment is read.

    Raises:
        ValueError: The merged settings do not validate.
        ConfigFileError: pyproject.toml cannot be parsed.

    Example:
        config = resolve_config({"endpoint_url": "https://worker.example/"})
    """
    scoped = get_ambient_resolved_config()
    if scoped is not None:
        return scoped.with_overrides(**programmatic) if programmatic else scoped

    return _resolver.resolve(
        programmatic=programmatic,
        profile=profile,
        use_env_file=use_env_file,
        project_root=project_root,
    )


def list_available_profiles(project_root: Path | None = None) -> dict[str, list[str]]:
    return _resolver.list_available_profiles(project_root)
