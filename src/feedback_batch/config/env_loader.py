"""FEEDBACK_BATCH_* environment variables as a settings source."""

import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .schema import FeedbackSettings, field_names

ENV_PREFIX = "FEEDBACK_BATCH_"
_SECRET_FIELDS = frozenset({"api_key"})


def env_var_for(field_name: str) -> str:
    """``endpoint_url`` -> ``FEEDBACK_BATCH_ENDPOINT_URL``."""
    return f"{ENV_PREFIX}{field_name.upper()}"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


class EnvironmentConfigLoader:
    """Collects the settings that are present in the process environment."""

    def load_env_config(self, env_file: str | Path | None = None) -> dict[str, Any]:
        """Typed values for every field with a matching variable.

        When ``env_file`` is given, its assignments are exported first.
        Variables that are already set keep their value.

        Raises:
            ValueError: A variable does not coerce to its field's type.
        """
        if env_file:
            self._export_dotenv(Path(env_file))

        present = {}
        for name in field_names():
            raw = os.environ.get(env_var_for(name))
            if raw is not None:
                present[name] = raw
        if not present:
            return {}

        try:
            settings = FeedbackSettings(**present)
        except ValidationError as e:
            shown = ", ".join(
                f"{env_var_for(name)}={raw}"
                for name, raw in present.items()
                if name not in _SECRET_FIELDS
            )
            raise ValueError(f"Rejected environment settings ({shown}): {e}") from e

        return {name: getattr(settings, name) for name in present}

    @staticmethod
    def _export_dotenv(env_path: Path) -> None:
        """Export ``KEY=VALUE`` assignments from a dotenv-style file."""
        if not env_path.is_file():
            raise FileNotFoundError(f"No such env file: {env_path}")

        try:
            lines = env_path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise ValueError(f"Cannot read env file {env_path}: {e}") from e

        for number, text in enumerate(lines, start=1):
            text = text.strip()
            if not text or text.startswith("#"):
                continue
            key, sep, value = text.partition("=")
            if not sep or not key.strip():
                raise ValueError(f"{env_path}:{number}: expected KEY=VALUE, got {text!r}")
            os.environ.setdefault(key.strip(), _unquote(value.strip()))
