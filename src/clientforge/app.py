"""Typer application and CLI entry point for clientforge.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``init``, ``fetch``, ``generate``, ``diff``,
``validate``, ``status``, ``watch``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`clientforge.config`: Project configuration and output paths.
    :mod:`clientforge.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from clientforge import __version__
from clientforge.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="clientforge",
    help="Generate a typed Python HTTP client from an OpenAPI spec.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from clientforge.commands.diff import diff_command  # noqa: E402
from clientforge.commands.fetch import fetch_command  # noqa: E402
from clientforge.commands.generate import generate_command  # noqa: E402
from clientforge.commands.init import init_command  # noqa: E402
from clientforge.commands.status import status_command  # noqa: E402
from clientforge.commands.validate import validate_command  # noqa: E402
from clientforge.commands.watch import watch_command  # noqa: E402

app.command("init")(init_command)
app.command("fetch")(fetch_command)
app.command("generate")(generate_command)
app.command("diff")(diff_command)
app.command("validate")(validate_command)
app.command("status")(status_command)
app.command("watch")(watch_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"clientforge {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to api.config.toml (default: project root)."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~clientforge.output.OutputManager` from
    CLI flags and stores the ``--config`` path in the Typer context so that
    sub-commands can read it via ``ctx.obj``.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
        no_color: Disable all colour and Rich markup.
        config: Explicit config file path.
    """
    from clientforge.output import OutputManager, set_output

    set_output(OutputManager(no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from clientforge.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``clientforge`` console script.

    Unhandled :class:`~clientforge.exceptions.ClientforgeError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from clientforge.exceptions import ClientforgeError, format_error
        from clientforge.output import error

        if isinstance(exc, ClientforgeError):
            error(format_error(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
