"""Structural checks that predict what generation will do with a spec.

:func:`validate_spec` never raises; it collects
:class:`~clientforge.models.ValidationIssue` objects with fixed severities.
Whether issues fail a run is decided separately by :func:`enforce_issues`.

The "operation needs a string ``operationId``" rule is shared with the
extractor through :func:`~clientforge.parser.extractor.operation_id_of`, so
every warning about a missing id matches an operation that generation
skips.
"""

from __future__ import annotations

from typing import Any

from clientforge.exceptions import ValidationError
from clientforge.models import HTTPMethod, Severity, ValidationIssue
from clientforge.parser.extractor import operation_id_of
from clientforge.parser.probe import probe


def _error(path: str, message: str) -> ValidationIssue:
    return ValidationIssue(severity=Severity.ERROR, path=path, message=message)


def _warning(path: str, message: str) -> ValidationIssue:
    return ValidationIssue(severity=Severity.WARNING, path=path, message=message)


def validate_spec(spec: Any) -> list[ValidationIssue]:
    """Return structural issues found in *spec*, in document order.

    Errors:

    * the document is not a mapping (no further checks run)
    * no ``openapi``/``swagger`` version field
    * no ``info`` object, or an ``info`` that is not a mapping
    * ``paths`` that is not a mapping
    * a path item that is not a mapping
    * an ``operationId`` already used by an earlier operation

    Warnings:

    * an operation without a string ``operationId`` (skipped during
      generation)
    * an operation without a non-empty ``responses`` mapping
    * no ``paths``
    * ``components`` without ``schemas``

    Regions are looked up with :func:`~clientforge.parser.probe.probe`, as in
    the extractor. A ``null`` operation is skipped; any other value is
    checked, an empty object included.
    """
    if not isinstance(spec, dict):
        return [_error("/", "Spec must be a valid JSON object")]

    issues: list[ValidationIssue] = []

    version = probe(spec, "openapi").or_default(None) or probe(spec, "swagger").or_default(None)
    if not version:
        issues.append(_error("/", "Missing 'openapi' or 'swagger' version field"))

    info = probe(spec, "info", kind=dict)
    if info.absent:
        issues.append(_error("/info", "Missing required 'info' object"))
    elif info.malformed:
        issues.append(_error("/info", "'info' must be an object"))

    paths = probe(spec, "paths", kind=dict)
    if paths.present:
        issues.extend(_validate_paths(paths.value))
    elif paths.malformed:
        issues.append(_error("/paths", "'paths' must be an object"))
    else:
        issues.append(_warning("/paths", "No paths defined in spec"))

    if not probe(spec, "components").absent:
        if not probe(spec, "components", "schemas").present:
            issues.append(_warning("/components", "No schemas defined in components"))

    return issues


def _validate_paths(paths: dict[str, Any]) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    seen_ids: dict[str, str] = {}

    for path_key, path_item in paths.items():
        if not isinstance(path_item, dict):
            issues.append(_error(f"/paths{path_key}", "Path item must be an object"))
            continue

        for method in HTTPMethod:
            operation = path_item.get(method.value)
            if operation is None:
                continue
            pointer = f"/paths{path_key}/{method.value}"

            op_id = operation_id_of(operation)
            if op_id is None:
                issues.append(
                    _warning(
                        pointer,
                        "Missing operationId - operation will be skipped during generation",
                    )
                )
            elif op_id in seen_ids:
                issues.append(
                    _error(
                        pointer,
                        f"Duplicate operationId '{op_id}' (also used at {seen_ids[op_id]})",
                    )
                )
            else:
                seen_ids[op_id] = pointer

            if not probe(operation, "responses", kind=dict).or_default(None):
                issues.append(_warning(pointer, "Missing responses definition"))

    return issues


def enforce_issues(issues: list[ValidationIssue], strict: bool = False) -> None:
    """Raise when *issues* should fail the run.

    Any error fails; with *strict*, any warning fails too. The raised
    :class:`~clientforge.exceptions.ValidationError` lists every failing
    issue (all issues in strict mode, only errors otherwise).

    Raises:
        ValidationError: If the issues are not acceptable.
    """
    errors = [i for i in issues if i.severity == Severity.ERROR]
    warnings = [i for i in issues if i.severity == Severity.WARNING]
    if errors or (strict and warnings):
        failing = issues if strict else errors
        raise ValidationError([issue.format() for issue in failing])
