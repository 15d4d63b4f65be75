"""Tests for clientforge.config -- project discovery, parsing, output paths."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from clientforge.config import (
    CONFIG_FILENAME,
    DEFAULT_ENDPOINT,
    DEFAULT_OUTPUT_FOLDER,
    _atomic_write,
    create_default_config,
    ensure_output_folders,
    find_project_root,
    get_config_path,
    get_data_dir,
    get_output_paths,
    load_config,
    parse_config,
    render_config,
    resolve_spec_source,
)
from clientforge.exceptions import ConfigError, ConfigValidationError
from clientforge.models import InstanceConfig


MINIMAL = """\
api_endpoint = "https://api.example.com/openapi.json"
poll_interval_ms = 5000

[output]
folder = "src/api"
"""


# ---------------------------------------------------------------------------
# Data directory
# ---------------------------------------------------------------------------


class TestDataDir:
    def test_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_data"
        monkeypatch.setattr("clientforge.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(custom))

        result = get_data_dir()
        assert result == custom / "clientforge"
        assert result.is_dir()

    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("clientforge.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".local" / "share" / "clientforge"

    def test_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("clientforge.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".clientforge"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_text(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "file.txt"
        _atomic_write(target, "hello")
        assert target.read_text() == "hello"

    def test_writes_bytes(self, tmp_path: Path) -> None:
        target = tmp_path / "file.bin"
        _atomic_write(target, b"\x00\x01")
        assert target.read_bytes() == b"\x00\x01"

    def test_replaces_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "file.txt"
        target.write_text("old")
        _atomic_write(target, "new")
        assert target.read_text() == "new"

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        _atomic_write(tmp_path / "file.txt", "x")
        assert os.listdir(tmp_path) == ["file.txt"]

    def test_cleans_up_on_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def _boom(src: str, dst: str) -> None:
            raise OSError("disk full")

        monkeypatch.setattr("clientforge.config.os.replace", _boom)
        with pytest.raises(OSError, match="disk full"):
            _atomic_write(tmp_path / "file.txt", "x")
        assert os.listdir(tmp_path) == []


# ---------------------------------------------------------------------------
# Project discovery
# ---------------------------------------------------------------------------


class TestFindProjectRoot:
    @pytest.mark.parametrize("marker", ["pyproject.toml", "setup.py", "setup.cfg"])
    def test_walks_up_to_marker(self, tmp_path: Path, marker: str) -> None:
        (tmp_path / marker).write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_project_root(nested) == tmp_path.resolve()

    def test_nearest_marker_wins(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("")
        inner = tmp_path / "packages" / "inner"
        inner.mkdir(parents=True)
        (inner / "pyproject.toml").write_text("")

        assert find_project_root(inner / ".") == inner.resolve()

    def test_no_marker_returns_start(self, tmp_path: Path) -> None:
        start = tmp_path / "nothing-here"
        start.mkdir()
        # tmp_path lives under the system temp dir, which has no markers
        assert find_project_root(start) in (start.resolve(), *start.resolve().parents)

    def test_defaults_to_cwd(self, isolated_project: Path) -> None:
        assert find_project_root() == isolated_project.resolve()

    def test_config_path(self, tmp_path: Path) -> None:
        assert get_config_path(tmp_path) == tmp_path / CONFIG_FILENAME


# ---------------------------------------------------------------------------
# Template rendering
# ---------------------------------------------------------------------------


class TestRenderConfig:
    def test_defaults_round_trip(self) -> None:
        config = parse_config(render_config())
        assert config.api_endpoint == DEFAULT_ENDPOINT
        assert config.output.folder == DEFAULT_OUTPUT_FOLDER
        assert config.spec_file is None
        assert config.instance == InstanceConfig()
        assert config.watch.debug is False
        assert config.fetch.headers == {}

    def test_custom_values(self) -> None:
        text = render_config(
            endpoint="https://api.example.com/spec.json",
            output_folder="src/client",
            instance=InstanceConfig(
                base_url_env="MY_URL", token_env="MY_TOKEN", with_credentials=False, timeout=5000
            ),
            spec_file="./openapi.yaml",
            poll_interval_ms=2000,
        )
        config = parse_config(text)
        assert config.api_endpoint == "https://api.example.com/spec.json"
        assert config.output.folder == "src/client"
        assert config.spec_file == "./openapi.yaml"
        assert config.poll_interval_ms == 2000
        assert config.instance.base_url_env == "MY_URL"
        assert config.instance.token_env == "MY_TOKEN"
        assert config.instance.with_credentials is False
        assert config.instance.timeout == 5000

    def test_spec_file_commented_out_by_default(self) -> None:
        assert '# spec_file = "./openapi.json"' in render_config()


# ---------------------------------------------------------------------------
# Parsing and validation
# ---------------------------------------------------------------------------


class TestParseConfig:
    def test_minimal(self) -> None:
        config = parse_config(MINIMAL)
        assert config.api_endpoint == "https://api.example.com/openapi.json"
        assert config.poll_interval_ms == 5000
        assert config.output.folder == "src/api"
        assert config.instance.token_env == "API_AUTH_TOKEN"

    def test_invalid_toml(self) -> None:
        with pytest.raises(ConfigError, match="Failed to parse api.config.toml"):
            parse_config("api_endpoint = ")

    def test_missing_endpoint(self) -> None:
        text = MINIMAL.replace('api_endpoint = "https://api.example.com/openapi.json"\n', "")
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_config(text)
        assert exc_info.value.field == "api_endpoint"

    def test_blank_endpoint(self) -> None:
        text = MINIMAL.replace("https://api.example.com/openapi.json", "  ")
        with pytest.raises(ConfigValidationError, match="api_endpoint must be a non-empty"):
            parse_config(text)

    def test_blank_output_folder(self) -> None:
        text = MINIMAL.replace('folder = "src/api"', 'folder = ""')
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_config(text)
        assert exc_info.value.field == "output.folder"
        assert "output.folder must be a non-empty string path" in exc_info.value.message

    def test_missing_output_section(self) -> None:
        text = MINIMAL.split("[output]")[0]
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_config(text)
        assert exc_info.value.field == "output"

    def test_poll_interval_too_small(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_config(MINIMAL.replace("5000", "10"))
        assert exc_info.value.field == "poll_interval_ms"

    def test_blank_spec_file_ignored(self) -> None:
        config = parse_config('spec_file = "  "\n' + MINIMAL)
        assert config.spec_file is None

    def test_invalid_instance_values_fall_back(self) -> None:
        text = MINIMAL + (
            "\n[instance]\n"
            'base_url_env = ""\n'
            "token_env = 42\n"
            'with_credentials = "yes"\n'
            "timeout = -5\n"
        )
        assert parse_config(text).instance == InstanceConfig()

    def test_partial_instance(self) -> None:
        text = MINIMAL + '\n[instance]\ntoken_env = "SESSION"\n'
        instance = parse_config(text).instance
        assert instance.token_env == "SESSION"
        assert instance.base_url_env == "API_BASE_URL"
        assert instance.timeout == 30_000

    def test_invalid_watch_debug_falls_back(self) -> None:
        text = MINIMAL + '\n[watch]\ndebug = "loud"\n'
        assert parse_config(text).watch.debug is False

    def test_fetch_headers(self) -> None:
        text = MINIMAL + '\n[fetch.headers]\nAuthorization = "Bearer $TOKEN"\n'
        assert parse_config(text).fetch.headers == {"Authorization": "Bearer $TOKEN"}


class TestLoadConfig:
    def test_creates_default_when_missing(self, isolated_project: Path) -> None:
        loaded = load_config()

        assert loaded.was_created is True
        assert loaded.config_path == isolated_project.resolve() / CONFIG_FILENAME
        assert loaded.config_path.is_file()
        assert loaded.config.api_endpoint == DEFAULT_ENDPOINT

    def test_loads_existing(self, isolated_project: Path) -> None:
        (isolated_project / CONFIG_FILENAME).write_text(MINIMAL)
        loaded = load_config()

        assert loaded.was_created is False
        assert loaded.project_root == isolated_project.resolve()
        assert loaded.config.output.folder == "src/api"

    def test_explicit_path(self, isolated_project: Path) -> None:
        custom = isolated_project / "configs" / "client.toml"
        custom.parent.mkdir()
        custom.write_text(MINIMAL)

        loaded = load_config(custom)
        assert loaded.config_path == custom
        assert loaded.was_created is False

    def test_create_default_config(self, tmp_path: Path) -> None:
        target = tmp_path / CONFIG_FILENAME
        create_default_config(target)
        assert parse_config(target.read_text()).api_endpoint == DEFAULT_ENDPOINT


# ---------------------------------------------------------------------------
# Resolution helpers
# ---------------------------------------------------------------------------


class TestResolveSpecSource:
    def test_flag_wins(self, tmp_path: Path) -> None:
        config = parse_config('spec_file = "config.json"\n' + MINIMAL)
        source = resolve_spec_source(config, tmp_path, "flag.json")
        assert source.is_local
        assert source.location == str(tmp_path / "flag.json")

    def test_config_spec_file(self, tmp_path: Path) -> None:
        config = parse_config('spec_file = "specs/openapi.yaml"\n' + MINIMAL)
        source = resolve_spec_source(config, tmp_path)
        assert source.kind == "local"
        assert source.location == str(tmp_path / "specs" / "openapi.yaml")

    def test_absolute_spec_file_kept(self, tmp_path: Path) -> None:
        absolute = tmp_path / "abs.json"
        config = parse_config(f'spec_file = "{absolute.as_posix()}"\n' + MINIMAL)
        assert resolve_spec_source(config, Path("/elsewhere")).location == str(absolute)

    def test_remote_endpoint(self, tmp_path: Path) -> None:
        source = resolve_spec_source(parse_config(MINIMAL), tmp_path)
        assert source.kind == "remote"
        assert not source.is_local
        assert source.location == "https://api.example.com/openapi.json"


class TestOutputPaths:
    def test_layout(self, tmp_path: Path) -> None:
        paths = get_output_paths(parse_config(MINIMAL), tmp_path)
        folder = tmp_path / "src" / "api"

        assert paths.folder == folder
        assert paths.spec == folder / "_internal" / "openapi.json"
        assert paths.cache == folder / "_internal" / ".api-cache.json"
        assert paths.generated_init == folder / "_generated" / "__init__.py"
        assert paths.types == folder / "_generated" / "api_types.py"
        assert paths.operations == folder / "_generated" / "api_operations.py"
        assert paths.package_init == folder / "__init__.py"
        assert paths.helpers == folder / "api_helpers.py"
        assert paths.instance == folder / "api_instance.py"
        assert paths.error == folder / "api_error.py"
        assert paths.client == folder / "api_client.py"

    def test_ensure_output_folders(self, tmp_path: Path) -> None:
        paths = get_output_paths(parse_config(MINIMAL), tmp_path)
        ensure_output_folders(paths)
        ensure_output_folders(paths)

        assert paths.internal.is_dir()
        assert paths.generated.is_dir()
