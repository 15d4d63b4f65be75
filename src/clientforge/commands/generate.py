"""Generate command -- regenerate the client from the cached spec.

Implements ``clientforge generate``. Unlike ``fetch`` it never touches the
network: it works from ``_internal/openapi.json``, optionally replaced first
by ``--spec-file``.
"""

from __future__ import annotations

from typing import Optional

import typer

from clientforge.output import get_output


def generate_command(
    ctx: typer.Context,
    spec_file: Optional[str] = typer.Option(
        None, "--spec-file", "-s", help="Copy this local spec into the cache first."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Also regenerate the generated-once client files."
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
    """Generate the typed client from the cached spec.

    Example::

        clientforge generate
        clientforge generate --spec-file ./openapi.json
        clientforge generate --force   # rewrite api_client.py and friends too
    """
    from clientforge.commands.common import (
        check_only_flags,
        cli_errors,
        load_project,
        report_generation,
    )
    from clientforge.config import resolve_spec_source
    from clientforge.exceptions import SpecNotFoundError
    from clientforge.fetcher import compute_hash, has_local_spec, load_local_spec, save_spec
    from clientforge.generator import generate, generate_client_files

    output = get_output()
    output.separator("clientforge generate")

    with cli_errors():
        check_only_flags(types_only, operations_only)
        loaded, paths = load_project(ctx)

        if spec_file:
            source = resolve_spec_source(loaded.config, loaded.project_root, spec_file)
            output.info("Loading local spec file...", spec_file=source.location)
            _, content = load_local_spec(source.location)
            digest = compute_hash(content)
            save_spec(content, digest, source.location, paths)
            output.info("Spec copied to cache", bytes=len(content), hash=digest[:8])

        if not has_local_spec(paths.spec):
            raise SpecNotFoundError(str(paths.spec))

        client_files = None
        if not dry_run:
            client_files = generate_client_files(
                paths, loaded.config.instance, output, force=force
            )

        output.info("Starting type and operation generation...")
        result = generate(
            paths,
            output,
            dry_run=dry_run,
            skip_types=operations_only,
            skip_operations=types_only,
        )
        report_generation(result, paths, client_files)
