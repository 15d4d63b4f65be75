"""Derive Python identifiers and type names from OpenAPI names.

Path placeholder names, operationIds, and schema names come straight from
the spec and can contain characters that are not valid in Python source.
These helpers turn them into identifiers deterministically, so the same spec
always yields the same generated names.
"""

from __future__ import annotations

import keyword
import re
from typing import Optional

PATH_PARAM_VALUE_TYPE = "Union[str, int]"

_CAMEL_RE = re.compile(r"[-_]([a-z])")
_WORD_SPLIT_RE = re.compile(r"[^0-9A-Za-z]+")
_INVALID_CHAR_RE = re.compile(r"[^0-9A-Za-z_]")


def to_identifier(raw: str) -> str:
    """Collapse ``-x`` and ``_x`` into ``X``, leaving everything else alone.

    The transform is idempotent::

        to_identifier("user_id")   # "userId"
        to_identifier("post-id")   # "postId"
        to_identifier("userId")    # "userId"
    """
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), raw)


def path_params_record(path_params: list[str]) -> Optional[list[tuple[str, str]]]:
    """Map each path placeholder to its record key and value type.

    Returns ``None`` when there are no placeholders, which means the
    generated operation takes no path-params argument at all.
    """
    if not path_params:
        return None
    return [(to_identifier(name), PATH_PARAM_VALUE_TYPE) for name in path_params]


def to_type_name(name: str) -> str:
    """Build a PascalCase class name from an operationId or schema name.

    Existing inner capitals are kept, separators are dropped, and a leading
    digit gets an underscore prefix::

        to_type_name("getUserById")    # "GetUserById"
        to_type_name("user-profile")   # "UserProfile"
        to_type_name("2fa_setup")      # "_2faSetup"
    """
    words = [w for w in _WORD_SPLIT_RE.split(name) if w]
    result = "".join(w[0].upper() + w[1:] for w in words)
    if not result:
        return "_"
    if result[0].isdigit():
        result = f"_{result}"
    return result


def safe_method_name(operation_id: str) -> str:
    """Turn an operationId into a valid Python method name.

    Valid identifiers are kept verbatim, keywords get a trailing underscore,
    and any other character becomes ``_``.
    """
    name = _INVALID_CHAR_RE.sub("_", operation_id) or "_"
    if name[0].isdigit():
        name = f"_{name}"
    if keyword.iskeyword(name):
        name = f"{name}_"
    return name


def safe_field_name(name: str) -> bool:
    """Whether *name* can be a TypedDict class-syntax field."""
    return name.isidentifier() and not keyword.iskeyword(name)
