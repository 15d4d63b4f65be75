"""Intermediate representation between descriptors and rendered source.

Each :class:`~clientforge.models.OperationDescriptor` becomes an
:class:`OperationNode` that carries every name and argument list the
templates need, so the templates contain no decisions of their own.

How an operation forwards its arguments to the client facade is decided by
a single table, :data:`CALL_SHAPES`:

==============  ============  ========================================
method          request body  positional arguments
==============  ============  ========================================
get / delete    (ignored)     url, [path_params], config
post/put/patch  yes           url, data, [path_params], config
post/put/patch  no            url, None, [path_params], config
==============  ============  ========================================

``path_params`` is dropped when the path template has no placeholders.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from clientforge.generator.naming import path_params_record, safe_method_name, to_type_name
from clientforge.models import HTTPMethod, OperationDescriptor

BODY_METHODS = frozenset({HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH})

# (method sends a body, operation declares a body) -> argument slots
CALL_SHAPES: dict[tuple[bool, bool], tuple[str, ...]] = {
    (False, False): ("url", "path_params", "config"),
    (False, True): ("url", "path_params", "config"),
    (True, True): ("url", "data", "path_params", "config"),
    (True, False): ("url", "none", "path_params", "config"),
}


def py_str(value: str) -> str:
    """Render *value* as a double-quoted Python string literal."""
    return json.dumps(value, ensure_ascii=False)


def doc_text(value: str) -> str:
    """Make *value* safe to embed inside a triple-quoted docstring."""
    return value.strip().replace("\\", "\\\\").replace('"', '\\"')


@dataclass(frozen=True)
class Parameter:
    """One parameter of a generated method signature."""

    name: str
    annotation: str
    default: Optional[str] = None

    def render(self) -> str:
        if self.default is None:
            return f"{self.name}: {self.annotation}"
        return f"{self.name}: {self.annotation} = {self.default}"


@dataclass(frozen=True)
class OperationNode:
    """Everything the templates need to emit one operation."""

    operation_id: str
    method_name: str
    http_method: str
    path: str
    prefix: str
    path_params: Optional[list[tuple[str, str]]]
    has_request_body: bool
    has_query_params: bool
    summary: str
    description: str
    form_body: bool = False

    @property
    def sends_body(self) -> bool:
        return HTTPMethod(self.http_method) in BODY_METHODS

    @property
    def takes_data(self) -> bool:
        return self.sends_body and self.has_request_body

    @property
    def path_literal(self) -> str:
        return py_str(self.path)

    @property
    def path_params_name(self) -> Optional[str]:
        return f"{self.prefix}PathParams" if self.path_params else None

    @property
    def request_body_name(self) -> str:
        return f"{self.prefix}RequestBody"

    @property
    def response_data_name(self) -> str:
        return f"{self.prefix}ResponseData"

    @property
    def query_params_name(self) -> str:
        return f"{self.prefix}QueryParams" if self.has_query_params else "Never"

    @property
    def config_annotation(self) -> str:
        return f"Optional[RequestConfig[{self.query_params_name}]]"

    @property
    def return_annotation(self) -> str:
        return f"Result[{self.response_data_name}]"

    @property
    def call_slots(self) -> tuple[str, ...]:
        slots = CALL_SHAPES[(self.sends_body, self.has_request_body)]
        if not self.path_params:
            slots = tuple(s for s in slots if s != "path_params")
        return slots

    def method_parameters(self) -> list[Parameter]:
        """Parameters of the ``ApiOperations`` method, after ``self``.

        Path params come first, then the request body, then ``config``.
        """
        params = []
        if self.path_params_name:
            params.append(Parameter("path_params", self.path_params_name))
        if self.takes_data:
            params.append(Parameter("data", self.request_body_name))
        params.append(Parameter("config", self.config_annotation, "None"))
        return params

    def call_arguments(self) -> list[str]:
        """Positional arguments forwarded to the facade, in call-shape order."""
        rendered = {
            "url": self.path_literal,
            "data": "data",
            "none": "None",
            "path_params": "path_params",
            "config": "config",
        }
        return [rendered[slot] for slot in self.call_slots]

    def protocol_parameters(self) -> list[Parameter]:
        """Parameters of the ``TypedApiClient`` overload for this path, after ``self``."""
        annotations = {
            "url": f"Literal[{self.path_literal}]",
            "data": self.request_body_name,
            "none": "None",
            "path_params": self.path_params_name or "",
        }
        params = []
        for slot in self.call_slots:
            if slot == "config":
                params.append(Parameter("config", self.config_annotation, "None"))
            elif slot == "none":
                params.append(Parameter("data", "None"))
            else:
                params.append(Parameter(slot, annotations[slot]))
        return params

    @property
    def docstring_lines(self) -> list[str]:
        lines = []
        if self.summary:
            lines.append(self.summary.strip())
        if self.description and self.description != self.summary:
            if lines:
                lines.append("")
            lines.extend(self.description.strip().splitlines())
        if lines:
            lines.append("")
        lines.append(f"operationId: {self.operation_id}")
        lines.append(f"method: {self.http_method.upper()}")
        lines.append(f"path: {self.path}")
        return lines


@dataclass(frozen=True)
class ProtocolMethod:
    """All overloads of one facade method (``get``, ``post``, ...)."""

    http_method: str
    nodes: list[OperationNode]

    @property
    def sends_body(self) -> bool:
        return HTTPMethod(self.http_method) in BODY_METHODS

    @property
    def generic_signature(self) -> str:
        if self.sends_body:
            return "self, url: str, data: Any = None, *args: Any"
        return "self, url: str, *args: Any"


def build_node(op: OperationDescriptor) -> OperationNode:
    """Lower one descriptor to an :class:`OperationNode`."""
    return OperationNode(
        operation_id=op.operation_id,
        method_name=safe_method_name(op.operation_id),
        http_method=op.method.value,
        path=op.path,
        prefix=to_type_name(op.operation_id),
        path_params=path_params_record(op.path_params),
        has_request_body=op.has_request_body,
        has_query_params=op.has_query_params,
        summary=op.summary,
        description=op.description,
        form_body=op.form_body,
    )


def build_nodes(operations: list[OperationDescriptor]) -> list[OperationNode]:
    return [build_node(op) for op in operations]


def unique_by_method_name(nodes: list[OperationNode]) -> list[OperationNode]:
    """Drop all but the last node per method name, keeping the later position.

    Python keeps the last ``def`` of a name anyway; emitting only that one
    keeps the generated class free of shadowed definitions.
    """
    last = {node.method_name: i for i, node in enumerate(nodes)}
    return [node for i, node in enumerate(nodes) if last[node.method_name] == i]


def protocol_methods(nodes: list[OperationNode]) -> list[ProtocolMethod]:
    """Group nodes by HTTP method in fixed method order.

    Every method is present even with zero nodes, so the protocol always
    exposes the full facade.
    """
    return [
        ProtocolMethod(method.value, [n for n in nodes if n.http_method == method.value])
        for method in HTTPMethod
    ]
