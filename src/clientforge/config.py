"""Project configuration: ``api.config.toml`` discovery, validation, and output paths.

This module handles all persistent configuration for clientforge:

* **Project root** -- the nearest ancestor of the working directory that
  holds ``pyproject.toml``, ``setup.py``, or ``setup.cfg``. See
  :func:`find_project_root`.
* **Config file** -- ``api.config.toml`` at the project root, parsed with
  ``toml`` and validated into :class:`~clientforge.models.ApiConfig`. A
  missing file is created from a commented template on first load.
* **Output layout** -- :func:`get_output_paths` resolves every file the
  generator reads or writes under ``output.folder``.
* **Data directory** -- XDG compliant on Linux/BSD, ``~/.clientforge/`` on
  macOS and Windows. Only used for crash logs.

Config writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) so an interrupted ``init`` never leaves a truncated
file behind.
"""

from __future__ import annotations

import os
import platform
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import toml
from pydantic import ValidationError as PydanticValidationError

from clientforge.exceptions import ConfigError, ConfigValidationError
from clientforge.models import ApiConfig, InstanceConfig, OutputPaths

_APP_NAME = "clientforge"
CONFIG_FILENAME = "api.config.toml"
PROJECT_MARKERS = ("pyproject.toml", "setup.py", "setup.cfg")

DEFAULT_ENDPOINT = "http://localhost:3000/docs/swagger/json"
DEFAULT_OUTPUT_FOLDER = "app/services/api"
DEFAULT_POLL_INTERVAL_MS = 10_000

_CONFIG_TEMPLATE = """\
# clientforge configuration

api_endpoint = "{endpoint}"
{spec_file_line}
poll_interval_ms = {poll_interval_ms}

[output]
folder = "{folder}"

# [fetch.headers]
# Authorization = "Bearer $SPEC_TOKEN"

[instance]
base_url_env = "{base_url_env}"
token_env = "{token_env}"
with_credentials = {with_credentials}
timeout = {timeout}

[watch]
debug = false
"""


@dataclass
class LoadedConfig:
    """A validated config together with where it came from."""

    config: ApiConfig
    project_root: Path
    config_path: Path
    was_created: bool


@dataclass
class SpecSource:
    """Where the spec should be read from: a local file or a remote URL."""

    kind: str
    location: str

    @property
    def is_local(self) -> bool:
        return self.kind == "local"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/clientforge/`` (default
    ``~/.local/share/clientforge/``). On macOS/Windows: ``~/.clientforge/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: Union[str, bytes]) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = data.encode("utf-8") if isinstance(data, str) else data

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = fd.name
        fd.write(payload)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Project discovery ---


def find_project_root(start_dir: Optional[Path] = None) -> Path:
    """Walk up from *start_dir* to the nearest directory with a project marker.

    Args:
        start_dir: Where to start. Defaults to the working directory.

    Returns:
        The first ancestor (inclusive) containing one of
        :data:`PROJECT_MARKERS`, or *start_dir* itself when none does.
    """
    start = (start_dir or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if any((candidate / marker).is_file() for marker in PROJECT_MARKERS):
            return candidate
    return start


def get_config_path(project_root: Path) -> Path:
    """Return ``<project_root>/api.config.toml``."""
    return project_root / CONFIG_FILENAME


def config_exists(config_path: Path) -> bool:
    return config_path.is_file()


def render_config(
    endpoint: str = DEFAULT_ENDPOINT,
    output_folder: str = DEFAULT_OUTPUT_FOLDER,
    instance: Optional[InstanceConfig] = None,
    spec_file: Optional[str] = None,
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
) -> str:
    """Render the commented ``api.config.toml`` template.

    Args:
        endpoint: Remote spec URL.
        output_folder: Output folder relative to the project root.
        instance: Settings for the generated HTTP instance.
        spec_file: Optional local spec path; rendered commented out when
            omitted.
        poll_interval_ms: Watch mode polling interval.

    Returns:
        TOML text ready to be written to disk.
    """
    instance = instance or InstanceConfig()
    if spec_file:
        spec_file_line = f"spec_file = {toml.dumps({'v': spec_file})[4:].strip()}"
    else:
        spec_file_line = '# spec_file = "./openapi.json"  # use a local file instead of the endpoint'
    return _CONFIG_TEMPLATE.format(
        endpoint=endpoint,
        spec_file_line=spec_file_line,
        poll_interval_ms=poll_interval_ms,
        folder=output_folder,
        base_url_env=instance.base_url_env,
        token_env=instance.token_env,
        with_credentials="true" if instance.with_credentials else "false",
        timeout=instance.timeout,
    )


def create_default_config(config_path: Path, content: Optional[str] = None) -> None:
    """Write *content* (default: the stock template) to *config_path* atomically."""
    _atomic_write(config_path, content if content is not None else render_config())


def _field_from_loc(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "root"


def parse_config(text: str, config_path: Optional[Path] = None) -> ApiConfig:
    """Parse and validate TOML *text* into an :class:`ApiConfig`.

    Raises:
        ConfigError: If the text is not valid TOML.
        ConfigValidationError: If a value is missing or has the wrong shape.
            The ``field`` names the first offending key, dotted.
    """
    try:
        data = toml.loads(text)
    except toml.TomlDecodeError as exc:
        name = config_path.name if config_path else CONFIG_FILENAME
        raise ConfigError(
            f"Failed to parse {name}: {exc}",
            "Check your TOML syntax. Run 'clientforge init --force' to "
            "regenerate with defaults.",
        ) from exc

    try:
        return ApiConfig.model_validate(data)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = _field_from_loc(tuple(first.get("loc", ())))
        message = str(first.get("msg", "invalid value"))
        # pydantic prefixes errors raised from our validators
        message = message.removeprefix("Value error, ")
        raise ConfigValidationError(field, message) from exc


def load_config(config_path: Optional[Path] = None) -> LoadedConfig:
    """Locate, auto-create if missing, and validate ``api.config.toml``.

    Args:
        config_path: Explicit config file (``--config``). Defaults to
            ``<project_root>/api.config.toml``.

    Returns:
        A :class:`LoadedConfig`; ``was_created`` is ``True`` when the file
        did not exist and the default template was written.
    """
    project_root = find_project_root()
    resolved = config_path or get_config_path(project_root)

    was_created = False
    if not config_exists(resolved):
        try:
            create_default_config(resolved)
        except OSError as exc:
            raise ConfigError(f"Failed to create {resolved}: {exc}") from exc
        was_created = True

    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to load config: {exc}") from exc

    return LoadedConfig(
        config=parse_config(text, resolved),
        project_root=project_root,
        config_path=resolved,
        was_created=was_created,
    )


# --- Resolution helpers ---


def _resolve_against(project_root: Path, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else project_root / path


def resolve_spec_source(
    config: ApiConfig,
    project_root: Path,
    flag_spec_file: Optional[str] = None,
) -> SpecSource:
    """Decide where to load the spec from.

    Precedence (high to low): the ``--spec-file`` flag, ``spec_file`` in the
    config, ``api_endpoint`` in the config.
    """
    if flag_spec_file:
        return SpecSource("local", str(_resolve_against(project_root, flag_spec_file)))
    if config.spec_file:
        return SpecSource("local", str(_resolve_against(project_root, config.spec_file)))
    return SpecSource("remote", config.api_endpoint)


def resolve_output_folder(config: ApiConfig, project_root: Path) -> Path:
    return _resolve_against(project_root, config.output.folder)


def get_output_paths(config: ApiConfig, project_root: Path) -> OutputPaths:
    """Resolve every generated and cached file location for *config*.

    ``_internal`` holds the cached spec and metadata, ``_generated`` holds
    the modules rewritten on every run, and the folder root holds the
    generated-once client modules.
    """
    folder = resolve_output_folder(config, project_root)
    internal = folder / "_internal"
    generated = folder / "_generated"
    return OutputPaths(
        folder=folder,
        internal=internal,
        generated=generated,
        spec=internal / "openapi.json",
        cache=internal / ".api-cache.json",
        generated_init=generated / "__init__.py",
        types=generated / "api_types.py",
        operations=generated / "api_operations.py",
        package_init=folder / "__init__.py",
        helpers=folder / "api_helpers.py",
        instance=folder / "api_instance.py",
        error=folder / "api_error.py",
        client=folder / "api_client.py",
    )


def ensure_output_folders(paths: OutputPaths) -> None:
    """Create the ``_internal`` and ``_generated`` folders (and their parent)."""
    paths.internal.mkdir(parents=True, exist_ok=True)
    paths.generated.mkdir(parents=True, exist_ok=True)
