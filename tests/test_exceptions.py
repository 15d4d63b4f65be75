"""Tests for clientforge.exceptions -- exit codes, hints, formatting."""

from __future__ import annotations

import pytest

from clientforge.exceptions import (
    ClientforgeError,
    ConfigError,
    ConfigValidationError,
    GenerationError,
    InvalidUsageError,
    NetworkError,
    OutputError,
    SpecNotFoundError,
    SpecParseError,
    ValidationError,
    format_error,
    is_recoverable,
)
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


class TestExitCodes:
    @pytest.mark.parametrize(
        ("error", "code", "exit_code"),
        [
            (ClientforgeError("x"), "CLIENTFORGE_ERROR", EXIT_GENERIC_FAILURE),
            (InvalidUsageError("x"), "INVALID_USAGE", EXIT_INVALID_USAGE),
            (ConfigError("x"), "CONFIG_ERROR", EXIT_CONFIG_ERROR),
            (ConfigValidationError("output.folder", "x"), "CONFIG_VALIDATION_ERROR", EXIT_CONFIG_ERROR),
            (NetworkError("https://x", "x"), "NETWORK_ERROR", EXIT_NETWORK_ERROR),
            (SpecNotFoundError("spec.json"), "SPEC_NOT_FOUND", EXIT_SPEC_NOT_FOUND),
            (SpecParseError("x"), "SPEC_PARSE_ERROR", EXIT_SPEC_PARSE_ERROR),
            (GenerationError("types", "x"), "GENERATION_ERROR", EXIT_GENERATION_ERROR),
            (OutputError("/out", "x"), "OUTPUT_ERROR", EXIT_OUTPUT_ERROR),
            (ValidationError(["a"]), "VALIDATION_ERROR", EXIT_VALIDATION_ERROR),
        ],
    )
    def test_codes(self, error: ClientforgeError, code: str, exit_code: int) -> None:
        assert error.code == code
        assert error.exit_code == exit_code

    def test_exit_code_override(self) -> None:
        assert ClientforgeError("x", exit_code=42).exit_code == 42

    def test_config_validation_is_config_error(self) -> None:
        assert isinstance(ConfigValidationError("f", "m"), ConfigError)


class TestMessagesAndHints:
    def test_default_hint(self) -> None:
        assert ConfigError("x").recovery_hint == (
            "Run 'clientforge init' to create a default configuration file."
        )

    def test_explicit_hint(self) -> None:
        assert ConfigError("x", "do this").recovery_hint == "do this"

    def test_config_validation(self) -> None:
        err = ConfigValidationError("output.folder", "must not be blank")
        assert err.message == "Invalid configuration: must not be blank"
        assert "'output.folder'" in err.recovery_hint
        assert err.field == "output.folder"

    def test_network_404_hint(self) -> None:
        err = NetworkError("https://api", "HTTP 404", status_code=404)
        assert "not found" in err.recovery_hint
        assert err.kind == "http"

    def test_network_5xx_hint(self) -> None:
        assert "server returned an error" in NetworkError("u", "m", status_code=503).recovery_hint

    def test_network_connection_hint(self) -> None:
        err = NetworkError("https://api", "refused")
        assert err.recovery_hint.endswith("https://api")
        assert err.kind == "connection"

    def test_network_explicit_kind(self) -> None:
        assert NetworkError("u", "m", kind="timeout").kind == "timeout"

    def test_spec_not_found(self) -> None:
        err = SpecNotFoundError("out/_internal/openapi.json")
        assert err.message == "OpenAPI spec not found at: out/_internal/openapi.json"
        assert "clientforge fetch" in err.recovery_hint

    def test_spec_parse_location(self) -> None:
        err = SpecParseError("bad", "spec.yaml")
        assert err.message == "Failed to parse OpenAPI spec: bad"
        assert "at 'spec.yaml'" in err.recovery_hint

    def test_generation_phase(self) -> None:
        err = GenerationError("operations", "boom")
        assert err.message == "Generation failed during operations: boom"
        assert err.phase == "operations"

    def test_validation_issue_count(self) -> None:
        err = ValidationError(["/: a", "/info: b"])
        assert err.message == "OpenAPI spec validation failed with 2 issue(s)"
        assert err.issues == ["/: a", "/info: b"]


class TestFormatError:
    def test_clientforge_error(self) -> None:
        err = SpecNotFoundError("spec.json")
        assert format_error(err) == (
            "Error [SPEC_NOT_FOUND]: OpenAPI spec not found at: spec.json\n"
            "\n"
            "Recovery: Run 'clientforge fetch' to download the spec from the remote endpoint."
        )

    def test_other_exception(self) -> None:
        assert format_error(ValueError("nope")) == "Error: nope"


class TestIsRecoverable:
    def test_recoverable(self) -> None:
        assert is_recoverable(NetworkError("u", "m"))
        assert is_recoverable(SpecNotFoundError("p"))

    def test_not_recoverable(self) -> None:
        assert not is_recoverable(ConfigError("m"))
        assert not is_recoverable(RuntimeError("m"))
