"""Follow ``$ref`` JSON Reference pointers in OpenAPI specifications.

OpenAPI documents commonly use ``$ref`` pointers (e.g.,
``{"$ref": "#/components/parameters/Limit"}``) for parameters, request
bodies, and responses. The extractor and type renderer need the referenced
object to inspect it, while schema references must stay intact so that
they render as named types. Resolution is therefore shallow: only the node
being inspected is followed, never its children.

Only **internal** references (those starting with ``#/``) are supported.
External file or URL references raise
:class:`~clientforge.exceptions.SpecParseError`.
"""

from __future__ import annotations

from typing import Any

from clientforge.exceptions import SpecParseError


def ref_name(ref: str) -> str:
    """Return the last segment of a ``$ref`` (the component name).

    Example::

        ref_name("#/components/schemas/Pet")  # "Pet"
    """
    return ref.rsplit("/", 1)[-1].replace("~1", "/").replace("~0", "~")


def resolve_ref(ref: str, root: dict[str, Any]) -> Any:
    """Resolve a single ``$ref`` string against the root spec.

    Parses JSON Pointer references like ``#/components/schemas/Pet`` and
    navigates the root dict to locate the referenced value. Handles
    RFC 6901 JSON Pointer escaping (``~0`` for ``~``, ``~1`` for ``/``).

    Raises:
        SpecParseError: If the reference is external (does not start with
            ``#/``), or if any segment in the pointer path does not exist
            in the document.
    """
    if not ref.startswith("#/"):
        raise SpecParseError(
            f"External $ref not supported: {ref}. "
            "Only internal references (#/...) are handled."
        )

    current: Any = root
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise SpecParseError(
                f"Cannot resolve $ref '{ref}': "
                f"cannot navigate into {type(current).__name__}"
            )

    return current


def resolve_node(node: Any, root: dict[str, Any]) -> Any:
    """Follow *node* while it is a ``$ref`` dict and return the target.

    Chains (a ref pointing at another ref) are followed. A cycle stops at
    the first repeated reference and returns that ``$ref`` dict unresolved.
    Non-ref values are returned unchanged.
    """
    seen: set[str] = set()
    while isinstance(node, dict) and isinstance(node.get("$ref"), str):
        ref = node["$ref"]
        if ref in seen:
            return node
        seen.add(ref)
        node = resolve_ref(ref, root)
    return node


def try_resolve_node(node: Any, root: dict[str, Any]) -> Any:
    """Like :func:`resolve_node` but returns ``None`` for dangling references.

    Used by code paths that must never raise, such as operation extraction.
    """
    try:
        return resolve_node(node, root)
    except SpecParseError:
        return None
