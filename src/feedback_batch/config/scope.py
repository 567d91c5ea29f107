"""Context-local configuration for code that resolves settings lazily.

Only ``resolve_config()`` consults the scope. A FrozenConfig that already
reached a BatchProcessor is unaffected by scopes entered later.
"""

from collections.abc import Generator
from contextlib import contextmanager
import contextvars
from typing import Any

from .types import ResolvedConfig

_scoped_config: contextvars.ContextVar[ResolvedConfig | None] = contextvars.ContextVar(
    "feedback_batch_scoped_config", default=None
)


def get_ambient_resolved_config() -> ResolvedConfig | None:
    return _scoped_config.get()


@contextmanager
def config_scope(config: ResolvedConfig) -> Generator[None]:
    """Make ``config`` the base for ``resolve_config()`` within the block.

    Example:
        base = resolve_config()
        with config_scope(base.with_overrides(mode="row")):
            result = analyze_file("reviews.csv")
    """
    token = _scoped_config.set(config)
    try:
        yield
    finally:
        _scoped_config.reset(token)


@contextmanager
def config_override(**overrides: Any) -> Generator[None]:
    """Scope a copy of the current configuration with a few fields changed."""
    current = get_ambient_resolved_config()
    if current is None:
        from .api import resolve_config

        current = resolve_config()

    with config_scope(current.with_overrides(**overrides)):
        yield
