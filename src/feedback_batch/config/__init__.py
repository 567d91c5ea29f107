"""Configuration management for feedback batch processing.

Resolve once, freeze, then hand the frozen configuration to the processor:

- ResolvedConfig: post-resolution configuration with audit metadata
- FrozenConfig: immutable configuration for processing
- SourceMap: origin of every configuration value
"""

from .api import list_available_profiles, resolve_config
from .env_loader import EnvironmentConfigLoader
from .file_loader import ConfigFileError, FileConfigLoader
from .resolver import ConfigResolver
from .schema import FeedbackSettings
from .scope import config_override, config_scope, get_ambient_resolved_config
from .types import ConfigOrigin, FrozenConfig, ResolvedConfig, SourceMap

__all__ = [
    "ConfigFileError",
    "ConfigOrigin",
    "ConfigResolver",
    "EnvironmentConfigLoader",
    "FeedbackSettings",
    "FileConfigLoader",
    "FrozenConfig",
    "ResolvedConfig",
    "SourceMap",
    "config_override",
    "config_scope",
    "get_ambient_resolved_config",
    "list_available_profiles",
    "resolve_config",
]
