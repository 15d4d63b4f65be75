"""Validate command -- report spec issues that affect generation.

Implements ``clientforge validate``. Errors always fail the command;
``--strict`` makes warnings fail it too.
"""

from __future__ import annotations

from typing import Optional

import typer

from clientforge.models import Severity
from clientforge.output import get_output


def validate_command(
    ctx: typer.Context,
    spec: Optional[str] = typer.Option(
        None, "--spec", "-s", help="Validate this spec file instead of the cached one."
    ),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as errors."),
) -> None:
    """Check the OpenAPI spec for issues that could affect generation.

    Reports missing operationIds (those operations are skipped), missing
    response definitions, duplicate operationIds, and invalid structure.

    Example::

        clientforge validate
        clientforge validate --strict
        clientforge validate --spec ./openapi.json
    """
    from clientforge.analysis import enforce_issues, validate_spec
    from clientforge.commands.common import cli_errors, load_project
    from clientforge.parser import load_spec_file

    output = get_output()
    output.separator("clientforge validate")

    with cli_errors():
        if spec:
            spec_path = spec
        else:
            _, paths = load_project(ctx)
            spec_path = str(paths.spec)

        output.info("Validating OpenAPI spec...", spec_path=spec_path)
        issues = validate_spec(load_spec_file(spec_path))

        errors = [i for i in issues if i.severity == Severity.ERROR]
        warnings = [i for i in issues if i.severity == Severity.WARNING]

        if errors:
            output.separator("Errors")
            for issue in errors:
                output.error(issue.message, path=issue.path)
        if warnings:
            output.separator("Warnings")
            for issue in warnings:
                output.warning(issue.message, path=issue.path)

        output.separator()
        output.info("Validation complete", errors=len(errors), warnings=len(warnings))

        enforce_issues(issues, strict=strict)
        output.success("OpenAPI spec is valid")
