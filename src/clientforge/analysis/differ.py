"""Classify operations as added, removed, or modified between two specs.

Operations are matched by ``operationId``. A matched pair counts as
modified only when one of the fields in :data:`COMPARED_FIELDS` differs;
``description``, ``path_params`` and ``has_query_params`` are ignored
because path params follow from ``path`` and a changed description does
not change the generated call.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from clientforge.models import ModifiedOperation, OperationDescriptor, SpecDiff
from clientforge.output import Reporter
from clientforge.parser.extractor import extract_operations, operations_by_id

COMPARED_FIELDS = ("method", "path", "has_request_body", "summary")

OperationSet = Union[list[OperationDescriptor], dict[str, OperationDescriptor]]


def _keyed(operations: OperationSet) -> dict[str, OperationDescriptor]:
    if isinstance(operations, dict):
        return operations
    return operations_by_id(operations)


def has_changes(old: OperationDescriptor, new: OperationDescriptor) -> bool:
    """Whether *old* and *new* differ in any compared field."""
    return any(getattr(old, name) != getattr(new, name) for name in COMPARED_FIELDS)


def diff_operations(old_ops: OperationSet, new_ops: OperationSet) -> SpecDiff:
    """Compare two descriptor sets keyed by ``operationId``.

    Args:
        old_ops: Descriptors of the current spec, as a list or keyed by id.
        new_ops: Descriptors of the incoming spec, as a list or keyed by id.

    Returns:
        A :class:`~clientforge.models.SpecDiff`. ``added`` and ``modified``
        follow the order of *new_ops*; ``removed`` follows *old_ops*.
    """
    old = _keyed(old_ops)
    new = _keyed(new_ops)

    diff = SpecDiff()
    for op_id, new_op in new.items():
        old_op = old.get(op_id)
        if old_op is None:
            diff.added.append(new_op)
        elif has_changes(old_op, new_op):
            diff.modified.append(ModifiedOperation(old=old_op, new=new_op))

    for op_id, old_op in old.items():
        if op_id not in new:
            diff.removed.append(old_op)

    return diff


def diff_specs(
    old_spec: Any, new_spec: Any, reporter: Optional[Reporter] = None
) -> SpecDiff:
    """Extract operations from both specs and diff them."""
    return diff_operations(
        extract_operations(old_spec, reporter),
        extract_operations(new_spec, reporter),
    )
