"""Fetch command -- download the spec and regenerate the client.

Implements ``clientforge fetch``. The spec comes from ``--endpoint``,
``--spec-file``, ``spec_file`` in the config, or ``api_endpoint`` (in that
order). When its hash matches the cached one nothing is regenerated unless
``--force`` is given.
"""

from __future__ import annotations

from typing import Optional

import typer

from clientforge.config import LoadedConfig, SpecSource, resolve_spec_source
from clientforge.models import FetchResult, OutputPaths
from clientforge.output import Reporter, get_output


def sync_spec(
    loaded: LoadedConfig,
    paths: OutputPaths,
    reporter: Reporter,
    endpoint: Optional[str] = None,
    spec_file: Optional[str] = None,
    force: bool = False,
) -> FetchResult:
    """Load the spec from its source and cache it when it changed.

    Returns:
        The fetch result; the spec was saved to ``paths.spec`` iff
        ``has_changed`` or *force* is set.
    """
    from clientforge.fetcher import fetch_openapi_spec, load_local_spec_file, save_spec

    config = loaded.config
    if endpoint:
        source = SpecSource("remote", endpoint)
    else:
        source = resolve_spec_source(config, loaded.project_root, spec_file)

    if source.is_local:
        result = load_local_spec_file(source.location, paths, reporter, force=force)
    else:
        with reporter.spin("Fetching OpenAPI spec..."):
            result = fetch_openapi_spec(
                source.location,
                paths,
                reporter,
                force=force,
                headers=config.fetch.headers,
            )
        if result.from_cache:
            reporter.warning("Using cached spec due to network issues")

    if result.has_changed or force:
        save_spec(result.content, result.hash, source.location, paths)
        reporter.info("Spec saved", bytes=len(result.content), hash=result.hash[:8])
    return result


def fetch_command(
    ctx: typer.Context,
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", "-e", help="Override the API endpoint from the config."
    ),
    spec_file: Optional[str] = typer.Option(
        None, "--spec-file", "-s", help="Load the spec from a local file instead."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Regenerate even if the spec is unchanged."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Show what would be generated without writing."
    ),
    types_only: bool = typer.Option(
        False, "--types-only", help="Only regenerate the types module."
    ),
    operations_only: bool = typer.Option(
        False, "--operations-only", help="Only regenerate the operations module."
    ),
) -> None:
    """Fetch the OpenAPI spec and regenerate the client.

    Example::

        clientforge fetch
        clientforge fetch --endpoint https://api.example.com/openapi.json --force
        clientforge fetch --spec-file ./openapi.yaml --dry-run
    """
    from clientforge.commands.common import (
        check_only_flags,
        cli_errors,
        load_project,
        report_generation,
    )
    from clientforge.generator import generate, generate_client_files

    output = get_output()
    output.separator("clientforge fetch")

    with cli_errors():
        check_only_flags(types_only, operations_only)
        loaded, paths = load_project(ctx)

        result = sync_spec(loaded, paths, output, endpoint, spec_file, force)
        if not (result.has_changed or force):
            output.info("Spec unchanged, skipping generation")
            output.suggest("Use --force to regenerate anyway")
            return

        client_files = None
        if not dry_run:
            client_files = generate_client_files(paths, loaded.config.instance, output)

        output.info("Starting type and operation generation...")
        generation = generate(
            paths,
            output,
            dry_run=dry_run,
            skip_types=operations_only,
            skip_operations=types_only,
        )
        report_generation(
            generation, paths, client_files, "Fetch and generation completed successfully"
        )
