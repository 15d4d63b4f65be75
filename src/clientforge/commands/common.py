"""Helpers shared by the built-in commands.

Every command follows the same outline: load the project config, resolve
the output paths, do its work through the core modules with the global
:class:`~clientforge.output.OutputManager` as reporter, and turn a
:class:`~clientforge.exceptions.ClientforgeError` into a formatted message
and the error's exit code.
"""

from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Iterator, Optional

import typer

from clientforge.config import LoadedConfig, ensure_output_folders, get_output_paths, load_config
from clientforge.exceptions import ClientforgeError, InvalidUsageError, format_error
from clientforge.models import ClientFilesResult, GenerationResult, OutputPaths
from clientforge.output import format_duration, get_output


@contextlib.contextmanager
def cli_errors() -> Iterator[None]:
    """Print a :class:`ClientforgeError` and exit with its exit code.

    Example::

        with cli_errors():
            loaded = load_project(ctx)
    """
    try:
        yield
    except ClientforgeError as exc:
        get_output().error(format_error(exc))
        raise typer.Exit(code=exc.exit_code) from None


def config_path_option(ctx: typer.Context) -> Optional[Path]:
    """Return the ``--config`` path given to the root command, if any."""
    obj = ctx.obj if isinstance(ctx.obj, dict) else {}
    value = obj.get("config_path")
    return Path(value) if value else None


def load_project(ctx: typer.Context) -> tuple[LoadedConfig, OutputPaths]:
    """Load the config (creating it if missing) and prepare output folders."""
    output = get_output()
    output.info("Loading configuration...")
    loaded = load_config(config_path_option(ctx))
    if loaded.was_created:
        output.warning(
            "Created default api.config.toml - please review and update settings",
            config_path=str(loaded.config_path),
        )
    paths = get_output_paths(loaded.config, loaded.project_root)
    output.debug("Resolved output paths", folder=str(paths.folder))
    ensure_output_folders(paths)
    return loaded, paths


def check_only_flags(types_only: bool, operations_only: bool) -> None:
    """Reject ``--types-only`` combined with ``--operations-only``."""
    if types_only and operations_only:
        raise InvalidUsageError("Cannot use --types-only and --operations-only together")


def report_generation(
    result: GenerationResult,
    paths: OutputPaths,
    client_files: Optional[ClientFilesResult] = None,
    headline: str = "Generation completed successfully",
) -> None:
    """Print the summary of a generation run (or its dry-run plan)."""
    output = get_output()
    output.separator()

    if result.dry_run is not None:
        output.info("Dry run complete - no files written")
        output.info("Operations found", operations=result.dry_run.operation_count)
        for file in result.dry_run.files:
            output.info(f"Would {file.action}: {file.path} ({file.lines} lines)")
        return

    output.success(
        headline,
        operations=result.operation_count,
        duration=format_duration(result.duration_ms),
    )
    if result.types_generated:
        output.info("Types output", types=str(paths.types))
    if result.operations_generated:
        output.info("Operations output", operations=str(paths.operations))

    if client_files is not None and client_files.any_written:
        output.info("Client files created:")
        for written, path in (
            (client_files.package, paths.package_init),
            (client_files.helpers, paths.helpers),
            (client_files.instance, paths.instance),
            (client_files.error, paths.error),
            (client_files.client, paths.client),
        ):
            if written:
                output.info(f"  - {path}")
