"""Render the generated client package from Jinja2 templates.

Every ``render_*`` function returns Python source as a string and never
touches the filesystem; :mod:`clientforge.generator.pipeline` decides what
gets written where.

Two families of modules are rendered:

* **Generated modules** (``_generated/api_types.py``,
  ``_generated/api_operations.py``) are derived from the spec and rewritten
  on every run.
* **Client modules** (``api_client.py``, ``api_error.py``,
  ``api_instance.py``, ``api_helpers.py``, ``__init__.py``) are written once
  and then owned by the user.

Templates live in ``generator/templates/`` next to this module.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from clientforge.generator.ir import (
    build_nodes,
    doc_text,
    protocol_methods,
    py_str,
    unique_by_method_name,
)
from clientforge.generator.schema_types import SchemaRenderer
from clientforge.models import InstanceConfig, OperationDescriptor

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``generator/templates/``)."""


def _create_jinja_env() -> Environment:
    """Create the Jinja2 environment for Python source templates.

    Autoescape is disabled for ``.py.j2`` templates (they produce Python,
    not HTML). Block trimming and lstrip keep control tags from leaving
    blank lines behind.
    """
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("py.j2",), default_for_string=False),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["py_str"] = py_str
    env.filters["docstring"] = _docstring
    env.filters["unquote"] = _unquote
    env.filters["comment"] = _comment
    return env


def _docstring(value: Union[str, list[str]], indent: str = "") -> str:
    """Render *value* as an indented, escaped triple-quoted docstring.

    A single line renders as ``\"\"\"text\"\"\"``; several lines put the
    closing quotes on their own line.
    """
    lines = value.splitlines() if isinstance(value, str) else list(value)
    lines = [doc_text(line) for line in lines]
    while lines and not lines[-1]:
        lines.pop()
    if not lines:
        return f'{indent}""""""'
    if len(lines) == 1:
        return f'{indent}"""{lines[0]}"""'
    body = "\n".join(f"{indent}{line}" if line else "" for line in lines[1:])
    return f'{indent}"""{lines[0]}\n{body}\n{indent}"""'


def _unquote(expr: str) -> str:
    """Strip the quotes from a bare forward reference like ``"Pet"``."""
    if len(expr) > 2 and expr[0] == expr[-1] == '"' and expr[1:-1].isidentifier():
        return expr[1:-1]
    return expr


def _comment(value: str) -> str:
    return " ".join(str(value).split())


def _timestamp(generated_at: Optional[str]) -> str:
    if generated_at:
        return generated_at
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _render(template_name: str, **context: Any) -> str:
    template = _create_jinja_env().get_template(template_name)
    return template.render(**context)


# ~ =================================== ~
# -- Generated modules --
# ~ =================================== ~


def render_types_module(
    spec: dict[str, Any],
    operations: list[OperationDescriptor],
    generated_at: Optional[str] = None,
) -> str:
    """Render ``_generated/api_types.py``.

    Contains one ``TypedDict`` or alias per component schema, followed by
    the ``<Prefix>RequestBody``, ``ResponseData``, ``Responses``, and
    ``QueryParams`` types of every operation and the ``SCHEMAS`` registry.
    """
    renderer = SchemaRenderer(spec)
    renderer.render_components()
    op_types = [renderer.operation_types(op) for op in operations]
    return _render(
        "api_types.py.j2",
        generated_at=_timestamp(generated_at),
        operation_count=len(operations),
        definitions=renderer.definitions,
        operations=op_types,
        schemas=[(raw, renderer.schema_names[raw]) for raw in renderer.components],
    )


def _type_imports(nodes: list) -> list[str]:
    names: set[str] = set()
    for node in nodes:
        names.update(
            (
                node.request_body_name,
                node.response_data_name,
                f"{node.prefix}Responses",
                f"{node.prefix}QueryParams",
            )
        )
    return sorted(names)


def render_operations_module(
    operations: list[OperationDescriptor],
    generated_at: Optional[str] = None,
) -> str:
    """Render ``_generated/api_operations.py``.

    Contains the path-params types, the ``ApiOperations`` class, the
    ``TypedApiClient`` protocol with one overload per path, and the
    ``OPERATION_TYPES`` runtime lookup table.
    """
    nodes = build_nodes(operations)
    # duplicate operationIds share a prefix; the last definition wins
    path_param_nodes = list(
        {node.path_params_name: node for node in nodes if node.path_params_name}.values()
    )

    return _render(
        "api_operations.py.j2",
        generated_at=_timestamp(generated_at),
        operation_count=len(operations),
        type_imports=_type_imports(nodes),
        path_param_nodes=path_param_nodes,
        method_nodes=unique_by_method_name(nodes),
        protocol_methods=protocol_methods(nodes),
        nodes=nodes,
    )


def render_generated_init(generated_at: Optional[str] = None) -> str:
    """Render ``_generated/__init__.py``."""
    return _render("generated_init.py.j2", generated_at=_timestamp(generated_at))


# ~ =================================== ~
# -- Client modules --
# ~ =================================== ~


def render_package_init(generated_at: Optional[str] = None) -> str:
    """Render the output package's ``__init__.py``."""
    return _render("package_init.py.j2", generated_at=_timestamp(generated_at))


def render_helpers_module(generated_at: Optional[str] = None) -> str:
    """Render ``api_helpers.py`` (runtime type lookups)."""
    return _render("api_helpers.py.j2", generated_at=_timestamp(generated_at))


def render_instance_module(
    instance: Optional[InstanceConfig] = None,
    generated_at: Optional[str] = None,
) -> str:
    """Render ``api_instance.py`` from the ``[instance]`` config section."""
    return _render(
        "api_instance.py.j2",
        generated_at=_timestamp(generated_at),
        instance=instance or InstanceConfig(),
    )


def render_error_module(generated_at: Optional[str] = None) -> str:
    """Render ``api_error.py`` (``Result``, ``ApiError``, ``safe_request``)."""
    return _render("api_error.py.j2", generated_at=_timestamp(generated_at))


def render_client_module(generated_at: Optional[str] = None) -> str:
    """Render ``api_client.py`` (the ``ApiClient`` facade and ``api``)."""
    return _render("api_client.py.j2", generated_at=_timestamp(generated_at))
