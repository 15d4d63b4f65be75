"""Exception hierarchy for clientforge.

All exceptions inherit from :class:`ClientforgeError`, which carries three
class-level attributes:

* ``exit_code`` -- a constant from :mod:`clientforge.exit_codes`.
* ``code`` -- a stable machine-readable identifier printed in brackets.
* ``default_hint`` -- the recovery hint used when none is passed.

The top-level error handler in :func:`clientforge.app.main` catches
``ClientforgeError``, prints :func:`format_error` output and exits with the
appropriate code, while unexpected exceptions produce a crash log and exit
with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ClientforgeError           (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- ConfigError            (exit 3)
    |   +-- ConfigValidationError
    +-- NetworkError           (exit 4)
    +-- SpecNotFoundError      (exit 5)
    +-- SpecParseError         (exit 6)
    +-- GenerationError        (exit 7)
    +-- OutputError            (exit 8)
    +-- ValidationError        (exit 9)
"""

from __future__ import annotations

from typing import Optional

from clientforge.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NETWORK_ERROR,
    EXIT_OUTPUT_ERROR,
    EXIT_SPEC_NOT_FOUND,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_VALIDATION_ERROR,
)


class ClientforgeError(Exception):
    """Base exception for all clientforge errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`clientforge.exit_codes`, plus a ``code`` and a
    ``default_hint``. The entry point catches this exception type and calls
    ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        recovery_hint: Actionable next step. Falls back to the class-level
            ``default_hint``.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    code: str = "CLIENTFORGE_ERROR"
    default_hint: str = "Re-run with --verbose for more detail."

    def __init__(
        self,
        message: str,
        recovery_hint: Optional[str] = None,
        exit_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.recovery_hint = recovery_hint or self.default_hint
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ClientforgeError):
    """Raised for invalid or conflicting CLI arguments."""

    exit_code = EXIT_INVALID_USAGE
    code = "INVALID_USAGE"
    default_hint = "Run the command with --help to see valid options."


class ConfigError(ClientforgeError):
    """Raised when ``api.config.toml`` is missing, unreadable, or unparsable."""

    exit_code = EXIT_CONFIG_ERROR
    code = "CONFIG_ERROR"
    default_hint = "Run 'clientforge init' to create a default configuration file."


class ConfigValidationError(ConfigError):
    """Raised when a config value is missing or has the wrong shape.

    Args:
        field: Dotted config key that failed validation (e.g.
            ``output.folder``).
        message: Description of the problem.
    """

    code = "CONFIG_VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        super().__init__(
            f"Invalid configuration: {message}",
            f"Check your api.config.toml and ensure '{field}' is correctly set.",
        )
        self.field = field


class NetworkError(ClientforgeError):
    """Raised when the OpenAPI spec cannot be fetched.

    The recovery hint depends on the failure: a 404 points at the configured
    endpoint, a 5xx suggests the server is down, everything else asks the
    user to check connectivity.

    Args:
        url: The endpoint that was requested.
        message: Description of the failure.
        status_code: HTTP status code when the server responded.
        kind: ``"timeout"``, ``"connection"``, or ``"http"``.
    """

    exit_code = EXIT_NETWORK_ERROR
    code = "NETWORK_ERROR"

    def __init__(
        self,
        url: str,
        message: str,
        status_code: Optional[int] = None,
        kind: Optional[str] = None,
    ):
        if status_code == 404:
            hint = (
                "The OpenAPI endpoint was not found. "
                "Verify the 'api_endpoint' in api.config.toml."
            )
        elif status_code is not None and status_code >= 500:
            hint = (
                "The server returned an error. "
                "Try again later or check if the API server is running."
            )
        else:
            hint = (
                "Check your network connection and ensure the API endpoint "
                f"is accessible: {url}"
            )
        super().__init__(message, hint)
        self.url = url
        self.status_code = status_code
        if kind is None:
            kind = "http" if status_code is not None else "connection"
        self.kind = kind


class SpecNotFoundError(ClientforgeError):
    """Raised when no local copy of the OpenAPI spec exists."""

    exit_code = EXIT_SPEC_NOT_FOUND
    code = "SPEC_NOT_FOUND"
    default_hint = (
        "Run 'clientforge fetch' to download the spec from the remote endpoint."
    )

    def __init__(self, spec_path: str):
        super().__init__(f"OpenAPI spec not found at: {spec_path}")
        self.spec_path = spec_path


class SpecParseError(ClientforgeError):
    """Raised when the OpenAPI spec cannot be decoded into an object."""

    exit_code = EXIT_SPEC_PARSE_ERROR
    code = "SPEC_PARSE_ERROR"

    def __init__(self, message: str, spec_path: Optional[str] = None):
        location = f"at '{spec_path}' " if spec_path else ""
        super().__init__(
            f"Failed to parse OpenAPI spec: {message}",
            f"The OpenAPI spec {location}may be corrupted. "
            "Try running 'clientforge fetch --force' to re-download it.",
        )
        self.spec_path = spec_path


class GenerationError(ClientforgeError):
    """Raised when rendering one of the client modules fails.

    Args:
        phase: Which part of generation failed (``types``, ``operations``,
            ``client-files``).
        message: Description of the failure.
    """

    exit_code = EXIT_GENERATION_ERROR
    code = "GENERATION_ERROR"
    default_hint = (
        "Check the error details above. Previous generated files have been preserved."
    )

    def __init__(self, phase: str, message: str):
        super().__init__(f"Generation failed during {phase}: {message}")
        self.phase = phase


class OutputError(ClientforgeError):
    """Raised when generated files cannot be written to the output directory."""

    exit_code = EXIT_OUTPUT_ERROR
    code = "OUTPUT_ERROR"

    def __init__(self, output_path: str, message: str):
        super().__init__(
            message, f"Check permissions for the output directory: {output_path}"
        )
        self.output_path = output_path


class ValidationError(ClientforgeError):
    """Raised when structural spec issues are escalated to a failure.

    Args:
        issues: Pre-formatted ``"<pointer>: <message>"`` lines.
    """

    exit_code = EXIT_VALIDATION_ERROR
    code = "VALIDATION_ERROR"
    default_hint = "Review the issues listed above and fix them in your API definition."

    def __init__(self, issues: list[str]):
        super().__init__(
            f"OpenAPI spec validation failed with {len(issues)} issue(s)"
        )
        self.issues = issues


def format_error(error: BaseException) -> str:
    """Render an exception for display, including its recovery hint.

    Args:
        error: Any exception. Non-clientforge errors are rendered without a
            hint.

    Returns:
        ``"Error [CODE]: message\\n\\nRecovery: hint"`` for
        :class:`ClientforgeError`, ``"Error: message"`` otherwise.
    """
    if isinstance(error, ClientforgeError):
        return "\n".join(
            [
                f"Error [{error.code}]: {error.message}",
                "",
                f"Recovery: {error.recovery_hint}",
            ]
        )
    return f"Error: {error}"


def is_recoverable(error: BaseException) -> bool:
    """Return ``True`` if retrying or fetching can fix *error*.

    Network errors may succeed on retry or fall back to the cached spec, and
    a missing spec is fixed by running ``clientforge fetch``.
    """
    return isinstance(error, (NetworkError, SpecNotFoundError))
