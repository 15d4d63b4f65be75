"""Shape-aware lookups into an untyped spec tree.

A spec document is an opaque decoded tree, so "is this region here?" has
three answers rather than two: the value exists with the expected shape,
it is absent, or something is there but has the wrong shape. Collapsing
the last two hides real spec errors, so :func:`probe` keeps them apart::

    result = probe(spec, "components", "schemas", kind=dict)
    if result.state is ProbeState.MALFORMED:
        ...
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional, Union


class ProbeState(str, enum.Enum):
    """Outcome of a :func:`probe` lookup."""

    PRESENT = "present"
    ABSENT = "absent"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class Probe:
    """Result of walking a key path through a decoded spec.

    Attributes:
        state: Whether the value was found with the expected shape.
        value: The value found (``None`` unless ``PRESENT``).
        at: The key at which the walk stopped, for ``ABSENT`` and
            ``MALFORMED`` results.
    """

    state: ProbeState
    value: Any = None
    at: Optional[str] = None

    @property
    def present(self) -> bool:
        return self.state is ProbeState.PRESENT

    @property
    def absent(self) -> bool:
        return self.state is ProbeState.ABSENT

    @property
    def malformed(self) -> bool:
        return self.state is ProbeState.MALFORMED

    def or_default(self, default: Any) -> Any:
        """Return the value when present, *default* otherwise."""
        return self.value if self.present else default


def probe(
    node: Any,
    *keys: str,
    kind: Optional[Union[type, tuple[type, ...]]] = None,
) -> Probe:
    """Walk *keys* into *node* and classify what is found.

    Args:
        node: Root of the walk, usually the decoded spec.
        *keys: Mapping keys to follow in order.
        kind: Expected type of the final value. When given, a value of any
            other type is ``MALFORMED``.

    Returns:
        ``ABSENT`` when a key is missing or its value is ``None``;
        ``MALFORMED`` when an intermediate value is not a mapping or the
        final value is not *kind*; ``PRESENT`` otherwise.
    """
    current = node
    for key in keys:
        if not isinstance(current, dict):
            return Probe(ProbeState.MALFORMED, at=key)
        if current.get(key) is None:
            return Probe(ProbeState.ABSENT, at=key)
        current = current[key]

    if current is None:
        return Probe(ProbeState.ABSENT, at=keys[-1] if keys else None)
    if kind is not None and not isinstance(current, kind):
        return Probe(ProbeState.MALFORMED, at=keys[-1] if keys else None)
    return Probe(ProbeState.PRESENT, value=current)
