"""Extract operation descriptors from a decoded OpenAPI spec.

This module walks the ``paths`` object of a spec and builds one
:class:`~clientforge.models.OperationDescriptor` per path + HTTP method
pair that carries a string ``operationId``. Descriptors drive every
downstream step: the code emitter, the spec differ, and the ``status``
command's endpoint counts.

Iteration order is fixed so that generated output is reproducible: paths in
document order, then methods in :class:`~clientforge.models.HTTPMethod`
declaration order (get, post, put, delete, patch). Other verbs are ignored.

Extraction never raises for a bad operation. A declared operation (any value
other than ``null``, including an empty object) without a usable
``operationId`` is skipped and reported through the injected
:class:`~clientforge.output.Reporter`, and a path item that is not a
mapping is skipped silently (the validator reports it).

Parameter merging follows the OpenAPI specification: path-level parameters
provide defaults, and operation-level parameters override them when they
share the same ``name`` and ``in`` values.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from clientforge.models import HTTPMethod, OperationDescriptor
from clientforge.output import NullReporter, Reporter
from clientforge.parser.probe import probe
from clientforge.parser.resolver import try_resolve_node

_PATH_PARAM_RE = re.compile(r"\{([^}]+)\}")
_JSON = "application/json"
_FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def extract_path_params(path: str) -> list[str]:
    """Return placeholder names from a path template, left to right.

    Duplicates are preserved and names are not validated::

        extract_path_params("/users/{id}/posts/{postId}")  # ["id", "postId"]
    """
    return _PATH_PARAM_RE.findall(path)


def operation_id_of(operation: Any) -> Optional[str]:
    """Return the operation's ``operationId`` when it is a non-empty string.

    This is the single inclusion rule shared by the extractor and the
    validator: anything else means the operation is skipped.
    """
    if not isinstance(operation, dict):
        return None
    op_id = operation.get("operationId")
    if isinstance(op_id, str) and op_id:
        return op_id
    return None


def iter_operations(spec: Any):
    """Yield ``(path, path_item, method, operation)`` for every declared operation.

    Path items that are not mappings are skipped. Only the five supported
    methods are visited, in their fixed order, and an operation value that
    is missing or ``None`` is skipped.
    """
    paths = probe(spec, "paths", kind=dict)
    if not paths.present:
        return
    for path, path_item in paths.value.items():
        if not isinstance(path_item, dict):
            continue
        for method in HTTPMethod:
            operation = path_item.get(method.value)
            if operation is None:
                continue
            yield path, path_item, method, operation


def merged_parameters(
    spec: dict[str, Any],
    path_item: dict[str, Any],
    operation: dict[str, Any],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters, resolving ``$ref`` entries.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field). Entries that are not mappings or whose
    reference cannot be resolved are dropped.
    """

    def _resolved(raw: Any) -> list[dict[str, Any]]:
        if not isinstance(raw, list):
            return []
        result = []
        for entry in raw:
            param = try_resolve_node(entry, spec)
            if isinstance(param, dict):
                result.append(param)
        return result

    path_params = _resolved(path_item.get("parameters"))
    op_params = _resolved(operation.get("parameters"))

    op_keys = {(p.get("name", ""), p.get("in", "")) for p in op_params}
    merged = [
        p for p in path_params if (p.get("name", ""), p.get("in", "")) not in op_keys
    ]
    merged.extend(op_params)
    return merged


def query_parameters(
    spec: dict[str, Any],
    path_item: dict[str, Any],
    operation: dict[str, Any],
) -> list[dict[str, Any]]:
    """Return the merged parameters whose ``in`` is ``query``."""
    return [
        p for p in merged_parameters(spec, path_item, operation) if p.get("in") == "query"
    ]


def has_form_body(
    spec: dict[str, Any],
    path_item: dict[str, Any],
    operation: dict[str, Any],
) -> bool:
    """Whether the operation's request body is sent as form fields.

    An OpenAPI 3 body qualifies when it offers a form media type and no
    JSON one, since JSON is preferred when both are listed. A Swagger 2
    operation qualifies when it has ``formData`` parameters.
    """
    body = try_resolve_node(operation.get("requestBody"), spec)
    content = probe(body, "content", kind=dict)
    if content.present:
        media = content.value
        return _JSON not in media and any(kind in media for kind in _FORM_TYPES)
    return any(
        p.get("in") == "formData" for p in merged_parameters(spec, path_item, operation)
    )


def extract_operations(
    spec: Any, reporter: Optional[Reporter] = None
) -> list[OperationDescriptor]:
    """Build descriptors for every operation with a string ``operationId``.

    Args:
        spec: The decoded spec. A non-mapping or a spec without ``paths``
            yields an empty list.
        reporter: Receives a warning per skipped operation and a debug line
            per extracted one.

    Returns:
        Descriptors in path order, then fixed method order.

    Example::

        ops = extract_operations(load_spec_file("openapi.json"))
        for op in ops:
            print(op.method.value.upper(), op.path, op.operation_id)
    """
    reporter = reporter or NullReporter()
    if not isinstance(spec, dict):
        return []

    operations: list[OperationDescriptor] = []
    for path, path_item, method, operation in iter_operations(spec):
        op_id = operation_id_of(operation)
        if op_id is None:
            reporter.warning(
                "Skipping operation without operationId",
                method=method.value.upper(),
                path=path,
            )
            continue

        summary = operation.get("summary")
        description = operation.get("description")
        operations.append(
            OperationDescriptor(
                operation_id=op_id,
                method=method,
                path=path,
                path_params=extract_path_params(path),
                has_request_body=operation.get("requestBody") is not None,
                has_query_params=bool(query_parameters(spec, path_item, operation)),
                form_body=has_form_body(spec, path_item, operation),
                summary=summary if isinstance(summary, str) else "",
                description=description if isinstance(description, str) else "",
            )
        )
        reporter.debug("Found operation", operation_id=op_id)

    return operations


def operations_by_id(
    operations: list[OperationDescriptor],
) -> dict[str, OperationDescriptor]:
    """Key descriptors by ``operation_id``; a later duplicate overwrites an earlier one."""
    return {op.operation_id: op for op in operations}
