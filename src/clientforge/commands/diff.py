"""Diff command -- preview API changes before regenerating.

Implements ``clientforge diff``. Compares the cached spec's operations with
a fresh copy of the remote spec (or a local file given with ``--spec``) and
prints added, removed, and modified operations. Nothing is written.
"""

from __future__ import annotations

from typing import Optional

import typer

from clientforge.models import OperationDescriptor, SpecDiff
from clientforge.output import get_output


def _label(op: OperationDescriptor) -> str:
    return f"{op.method.value.upper()} {op.path} ({op.operation_id})"


def print_diff(diff: SpecDiff) -> None:
    """Print a :class:`~clientforge.models.SpecDiff` as ``+``/``-``/``~`` lines."""
    output = get_output()
    if diff.added:
        output.print_data(f"\n+ Added operations ({len(diff.added)}):")
        for op in diff.added:
            output.print_data(f"  + {_label(op)}")
    if diff.removed:
        output.print_data(f"\n- Removed operations ({len(diff.removed)}):")
        for op in diff.removed:
            output.print_data(f"  - {_label(op)}")
    if diff.modified:
        output.print_data(f"\n~ Modified operations ({len(diff.modified)}):")
        for change in diff.modified:
            old, new = change.old, change.new
            output.print_data(f"  ~ {_label(new)}")
            if old.method != new.method or old.path != new.path:
                output.print_data(
                    f"    Moved: {old.method.value.upper()} {old.path}"
                    f" -> {new.method.value.upper()} {new.path}"
                )
            if old.has_request_body != new.has_request_body:
                output.print_data(
                    f"    Request body: {str(old.has_request_body).lower()}"
                    f" -> {str(new.has_request_body).lower()}"
                )
            if old.summary != new.summary:
                output.print_data("    Summary changed")


def diff_command(
    ctx: typer.Context,
    spec: Optional[str] = typer.Option(
        None, "--spec", "-s", help="Compare against this local spec file instead of the endpoint."
    ),
) -> None:
    """Compare the cached spec with the remote (or a local file).

    Example::

        clientforge diff
        clientforge diff --spec ./new-openapi.json
    """
    from clientforge.analysis import diff_operations
    from clientforge.cache import SpecCache
    from clientforge.commands.common import cli_errors, load_project
    from clientforge.fetcher import (
        compute_hash,
        fetch_openapi_spec,
        has_local_spec,
        load_local_spec,
    )
    from clientforge.parser import extract_operations, load_spec_file, parse_spec

    output = get_output()
    output.separator("clientforge diff")

    with cli_errors():
        loaded, paths = load_project(ctx)

        current: list[OperationDescriptor] = []
        if has_local_spec(paths.spec):
            current = extract_operations(load_spec_file(paths.spec), output)
            output.info("Loaded current spec", operations=len(current))
        else:
            output.info("No current spec found - will show all as new")

        if spec:
            new_spec, content = load_local_spec(spec)
            new_hash = compute_hash(content)
            output.info("Loaded new spec from file", spec=spec)
        else:
            output.info("Fetching new spec from endpoint...", endpoint=loaded.config.api_endpoint)
            with output.spin("Fetching OpenAPI spec..."):
                result = fetch_openapi_spec(
                    loaded.config.api_endpoint,
                    paths,
                    output,
                    force=True,
                    headers=loaded.config.fetch.headers,
                )
            new_hash = result.hash
            new_spec = parse_spec(result.content, source=loaded.config.api_endpoint)

            metadata = SpecCache(paths.cache).load()
            if metadata is not None and metadata.hash == new_hash:
                output.success("Spec is identical to cached version - no changes")
                return

        incoming = extract_operations(new_spec, output)
        output.info("Analyzed new spec", operations=len(incoming), hash=new_hash[:8])

        diff = diff_operations(current, incoming)
        output.separator("Changes Summary")
        if not diff.has_changes:
            output.success("No changes to operations detected")
            return

        print_diff(diff)
        output.separator()
        output.info(
            "Total changes",
            added=len(diff.added),
            removed=len(diff.removed),
            modified=len(diff.modified),
        )
        output.suggest("Run 'clientforge fetch' to apply these changes")
