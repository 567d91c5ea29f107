"""
Global test configuration with support for different test types.
"""

from collections.abc import Callable, Generator
from contextlib import contextmanager
import json
import logging
import os
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
import yaml

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_feedback_env(request, monkeypatch):
    """Ensure a clean FEEDBACK_BATCH_* environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("FEEDBACK_BATCH_"):
            monkeypatch.delenv(key, raising=False)
    # Avoid DEBUG toggles switching telemetry on
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def neutral_config_files(request, monkeypatch, tmp_path):
    """Point the home file and pyproject.toml lookups at isolated temp paths.

    Prevents reading a developer's real ~/.config/feedback_batch.toml or the
    checkout's own pyproject.toml during tests.
    """
    if request.node.get_closest_marker("allow_real_config_files"):
        return

    isolated = tmp_path / "config_isolated"
    isolated.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("FEEDBACK_BATCH_CONFIG_HOME", str(isolated / "feedback_batch.toml"))
    monkeypatch.setenv("FEEDBACK_BATCH_PYPROJECT_PATH", str(isolated / "pyproject.toml"))


@pytest.fixture
def isolated_config_sources(tmp_path):
    """Completely isolate configuration sources for testing.

    Returns a context manager factory that writes the given project and home
    TOML content, sets FEEDBACK_BATCH_* variables (prefix added
    automatically), and clears every other FEEDBACK_BATCH_* variable.
    """

    @contextmanager
    def _setup(
        *,
        pyproject_content: str = "",
        home_content: str = "",
        env_vars: dict[str, str] | None = None,
    ) -> Generator[None]:
        clean_env = {
            k: v for k, v in os.environ.items() if not k.startswith("FEEDBACK_BATCH_")
        }
        for key, value in (env_vars or {}).items():
            if not key.startswith("FEEDBACK_BATCH_"):
                key = f"FEEDBACK_BATCH_{key.upper()}"
            clean_env[key] = value

        project_dir = tmp_path / "project"
        project_dir.mkdir(exist_ok=True)
        pyproject_path = project_dir / "pyproject.toml"

        home_dir = tmp_path / "home"
        home_dir.mkdir(exist_ok=True)
        home_config_path = home_dir / "feedback_batch.toml"

        if pyproject_content:
            pyproject_path.write_text(pyproject_content)
        if home_content:
            home_config_path.write_text(home_content)

        clean_env["FEEDBACK_BATCH_PYPROJECT_PATH"] = str(pyproject_path)
        clean_env["FEEDBACK_BATCH_CONFIG_HOME"] = str(home_config_path)

        with patch.dict(os.environ, clean_env, clear=True):
            yield

    return _setup


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Component integration tests with a mocked endpoint",
        "allow_env_pollution: Keep the real FEEDBACK_BATCH_* environment",
        "allow_real_config_files: Read real home and project config files",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


@pytest.fixture(scope="session")
def sample_responses() -> dict:
    """Raw endpoint answers collected from the deployments we talk to."""
    with (FIXTURES_DIR / "responses.yml").open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    assert isinstance(data, dict), "Sample responses must be a mapping"
    return data


@pytest.fixture
def endpoint_url() -> str:
    return "https://worker.example.test/analyze"


@pytest.fixture
def mock_endpoint() -> Callable[..., tuple[httpx.MockTransport, list[dict]]]:
    """Build an httpx transport that answers from a list of responses.

    Each entry is a dict/list/str body (sent as JSON, or text for strings
    when `as_text` is set) or an int status code. The returned list records
    every JSON request body the endpoint received.
    """

    def _build(
        *responses: object, as_text: bool = False
    ) -> tuple[httpx.MockTransport, list[dict]]:
        received: list[dict] = []
        queue = list(responses)

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            answer = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(answer, int):
                return httpx.Response(answer, text="upstream failure")
            if isinstance(answer, Exception):
                raise answer
            if as_text and isinstance(answer, str):
                return httpx.Response(200, text=answer)
            return httpx.Response(200, json=answer)

        return httpx.MockTransport(handler), received

    return _build
