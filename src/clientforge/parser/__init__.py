"""OpenAPI spec parser -- decode documents and extract operation descriptors.

This sub-package is the first half of the clientforge pipeline: turning a
raw OpenAPI/Swagger document (JSON or YAML) into the list of
:class:`~clientforge.models.OperationDescriptor` objects the generator,
differ, and status command consume.

Typical usage::

    from clientforge.parser import extract_operations, load_spec_file

    spec = load_spec_file("openapi.json")
    operations = extract_operations(spec)

Sub-modules:

* :mod:`~clientforge.parser.loader` -- JSON/YAML decoding with format
  detection.
* :mod:`~clientforge.parser.probe` -- present/absent/malformed lookups into
  the untyped spec tree.
* :mod:`~clientforge.parser.resolver` -- shallow ``$ref`` following.
* :mod:`~clientforge.parser.extractor` -- walks ``paths`` and produces
  descriptors.
"""

from clientforge.parser.extractor import (
    extract_operations,
    extract_path_params,
    operations_by_id,
)
from clientforge.parser.loader import load_spec_file, parse_spec

__all__ = [
    "extract_operations",
    "extract_path_params",
    "operations_by_id",
    "load_spec_file",
    "parse_spec",
]
