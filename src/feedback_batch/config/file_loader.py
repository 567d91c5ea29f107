"""TOML sources for feedback-batch settings.

Two files are consulted: the ``[tool.feedback_batch]`` table of the nearest
pyproject.toml and a per-user ``~/.config/feedback_batch.toml``. Both may
carry named profiles under a ``profiles`` sub-table.
"""

import os
from pathlib import Path
import tomllib
from typing import Any

from feedback_batch.exceptions import FeedbackBatchError

TOOL_SECTION = "feedback_batch"
HOME_CONFIG_ENV = "FEEDBACK_BATCH_CONFIG_HOME"
PYPROJECT_ENV = "FEEDBACK_BATCH_PYPROJECT_PATH"


class ConfigFileError(FeedbackBatchError):
    """A settings file exists but could not be used."""

    def __init__(
        self, file_path: Path, message: str, cause: Exception | None = None
    ) -> None:
        self.file_path = file_path
        self.message = message
        self.cause = cause
        super().__init__(f"{file_path}: {message}")


class FileConfigLoader:
    """Reads settings tables out of pyproject.toml and the home file."""

    def load_project_config(
        self, project_root: Path | None = None, profile: str | None = None
    ) -> dict[str, Any]:
        """Settings from ``[tool.feedback_batch]`` of the nearest pyproject.toml.

        The lookup walks upward from ``project_root`` (or the working
        directory). With ``profile`` set, only
        ``[tool.feedback_batch.profiles.<profile>]`` is returned.

        Raises:
            ConfigFileError: The file is not valid TOML or lacks the profile.
        """
        location = self._locate_pyproject(project_root)
        if location is None:
            return {}

        table = self._tool_table(self._parse(location))
        if not table:
            return {}
        return self._pick(table, profile, location)

    def load_home_config(self, profile: str | None = None) -> dict[str, Any]:
        """Settings from the per-user file, or ``{}`` when there is none."""
        location = self._home_path()
        if not location.is_file():
            return {}
        return self._pick(self._parse(location), profile, location)

    def list_available_profiles(
        self, project_root: Path | None = None
    ) -> dict[str, list[str]]:
        """Profile names per source; unreadable files contribute nothing."""
        found: dict[str, list[str]] = {"project": [], "home": []}

        location = self._locate_pyproject(project_root)
        if location is not None:
            try:
                table = self._tool_table(self._parse(location))
            except ConfigFileError:
                table = {}
            found["project"] = sorted(table.get("profiles", {}))

        home = self._home_path()
        if home.is_file():
            try:
                found["home"] = sorted(self._parse(home).get("profiles", {}))
            except ConfigFileError:
                pass

        return found

    @staticmethod
    def _tool_table(document: dict[str, Any]) -> dict[str, Any]:
        return document.get("tool", {}).get(TOOL_SECTION, {})

    @staticmethod
    def _pick(
        table: dict[str, Any], profile: str | None, location: Path
    ) -> dict[str, Any]:
        if not profile:
            return {k: v for k, v in table.items() if k != "profiles"}

        named = table.get("profiles", {})
        if profile not in named:
            known = ", ".join(sorted(named)) or "none"
            raise ConfigFileError(
                location, f"no profile named '{profile}' (known: {known})"
            )
        return dict(named[profile])

    @staticmethod
    def _parse(location: Path) -> dict[str, Any]:
        try:
            return tomllib.loads(location.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
            raise ConfigFileError(location, f"unreadable TOML ({e})", cause=e) from e

    @staticmethod
    def _locate_pyproject(start: Path | None = None) -> Path | None:
        pinned = os.getenv(PYPROJECT_ENV)
        if pinned and start is None:
            candidate = Path(pinned)
            return candidate if candidate.is_file() else None

        directory = Path(start or Path.cwd()).resolve()
        for folder in (directory, *directory.parents):
            candidate = folder / "pyproject.toml"
            if candidate.is_file():
                return candidate
        return None

    @staticmethod
    def _home_path() -> Path:
        pinned = os.getenv(HOME_CONFIG_ENV)
        if pinned:
            return Path(pinned)
        return Path.home() / ".config" / "feedback_batch.toml"
