"""Code generator -- render a typed Python client from extracted operations.

This sub-package is the second half of the clientforge pipeline: it takes
the :class:`~clientforge.models.OperationDescriptor` list produced by the
parser and renders the client package that lives in the project's output
folder.

Typical usage::

    from clientforge.generator import generate, generate_client_files

    generate_client_files(paths, config.instance)
    result = generate(paths)
    print(result.operation_count)

Sub-modules:

* :mod:`~clientforge.generator.naming` -- Identifiers and type names derived
  from operationIds, schema names, and path placeholders.
* :mod:`~clientforge.generator.schema_types` -- OpenAPI schemas rendered as
  ``TypedDict`` classes and type expressions.
* :mod:`~clientforge.generator.ir` -- Per-operation nodes and the call-shape
  table that decides how each operation calls the client.
* :mod:`~clientforge.generator.emitter` -- Jinja2 rendering of every module.
* :mod:`~clientforge.generator.writer` -- All-or-nothing file promotion.
* :mod:`~clientforge.generator.pipeline` -- Spec in, files out.
"""

from clientforge.generator.emitter import render_operations_module, render_types_module
from clientforge.generator.pipeline import generate, generate_client_files

__all__ = [
    "generate",
    "generate_client_files",
    "render_operations_module",
    "render_types_module",
]
