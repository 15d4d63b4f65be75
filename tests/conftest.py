"""Shared test fixtures for clientforge.

Provides reusable fixtures for loading spec fixtures, creating isolated
projects, managing output state, and running CLI commands. These fixtures
are automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any

import pytest

from clientforge.config import get_output_paths, parse_config, render_config
from clientforge.models import OutputPaths
from clientforge.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"

FIXED_TIMESTAMP = "2024-01-01T00:00:00+00:00"


def load_fixture(name: str) -> dict[str, Any]:
    """Load a JSON spec fixture by file name."""
    return json.loads((FIXTURES_DIR / name).read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file"). Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw spec fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_spec() -> dict[str, Any]:
    """OpenAPI 3.0 petstore: six operations, four component schemas."""
    return load_fixture("petstore.json")


@pytest.fixture
def swagger2_spec() -> dict[str, Any]:
    """Swagger 2.0 users API with body and formData parameters."""
    return load_fixture("swagger2.json")


@pytest.fixture
def edge_spec() -> dict[str, Any]:
    """OpenAPI 3.1 spec with awkward names, a skipped and a duplicate operation."""
    return load_fixture("edge_cases.json")


# ---------------------------------------------------------------------------
# Project isolation fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create an empty project in a temporary directory and chdir into it.

    The project root is marked with a ``pyproject.toml``. XDG_DATA_HOME is
    redirected under tmp_path so crash logs never touch the real home
    directory, and NO_COLOR keeps output free of markup.

    Returns:
        The project root.
    """
    project = tmp_path / "project"
    project.mkdir()
    (project / "pyproject.toml").write_text('[project]\nname = "demo"\n', encoding="utf-8")

    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.chdir(project)
    return project


def write_project_config(project: Path, **overrides: Any) -> Path:
    """Write ``api.config.toml`` into *project* and return its path.

    Keyword arguments are passed to :func:`clientforge.config.render_config`.
    """
    options: dict[str, Any] = {"output_folder": "client/api"}
    options.update(overrides)
    config_path = project / "api.config.toml"
    config_path.write_text(render_config(**options), encoding="utf-8")
    return config_path


@pytest.fixture
def project_paths(isolated_project: Path) -> OutputPaths:
    """Output paths of a project configured with ``output.folder = "client/api"``."""
    config_path = write_project_config(isolated_project)
    config = parse_config(config_path.read_text(encoding="utf-8"))
    return get_output_paths(config, isolated_project)


@pytest.fixture
def cached_petstore(project_paths: OutputPaths) -> OutputPaths:
    """Project paths with the petstore spec already cached in ``_internal``."""
    project_paths.internal.mkdir(parents=True, exist_ok=True)
    project_paths.generated.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(FIXTURES_DIR / "petstore.json", project_paths.spec)
    return project_paths


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


class RecordingReporter:
    """Reporter that keeps every diagnostic as ``(level, message, context)``."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict[str, Any]]] = []

    def _record(self, level: str, message: str, context: dict[str, Any]) -> None:
        self.records.append((level, message, context))

    def info(self, message: str, **context: Any) -> None:
        self._record("info", message, context)

    def success(self, message: str, **context: Any) -> None:
        self._record("success", message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._record("warning", message, context)

    def error(self, message: str, **context: Any) -> None:
        self._record("error", message, context)

    def debug(self, message: str, **context: Any) -> None:
        self._record("debug", message, context)

    def spin(self, message: str):
        import contextlib

        self._record("spin", message, {})
        return contextlib.nullcontext()

    def messages(self, level: str) -> list[str]:
        return [message for lvl, message, _ in self.records if lvl == level]


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
