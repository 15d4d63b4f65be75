"""Turn the cached spec into the generated client package.

:func:`generate` is what ``fetch``, ``generate`` and ``watch`` run after a
spec lands in ``_internal/openapi.json``. It rewrites the ``_generated``
modules in one transaction. :func:`generate_client_files` writes the
generated-once modules that users are free to edit afterwards.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import Optional

from clientforge.exceptions import GenerationError
from clientforge.generator.emitter import (
    render_client_module,
    render_error_module,
    render_generated_init,
    render_helpers_module,
    render_instance_module,
    render_operations_module,
    render_package_init,
    render_types_module,
)
from clientforge.generator.writer import TransactionalWriter
from clientforge.models import (
    ClientFilesResult,
    DryRunFile,
    DryRunResult,
    GenerationResult,
    InstanceConfig,
    OutputPaths,
)
from clientforge.output import NullReporter, Reporter
from clientforge.parser import extract_operations, load_spec_file


def _render(phase: str, render: Callable[[], str]) -> str:
    try:
        return render()
    except GenerationError:
        raise
    except Exception as exc:
        raise GenerationError(phase, str(exc)) from exc


def _dry_run(files: list[tuple[Path, str]], operation_count: int) -> DryRunResult:
    return DryRunResult(
        files=[
            DryRunFile(
                path=path,
                lines=len(content.splitlines()),
                action="update" if path.exists() else "create",
            )
            for path, content in files
        ],
        operation_count=operation_count,
    )


def generate(
    paths: OutputPaths,
    reporter: Optional[Reporter] = None,
    dry_run: bool = False,
    skip_types: bool = False,
    skip_operations: bool = False,
    generated_at: Optional[str] = None,
) -> GenerationResult:
    """Regenerate the ``_generated`` package from the cached spec.

    Args:
        paths: Resolved output locations.
        reporter: Diagnostics sink; silent when ``None``.
        dry_run: Render everything but write nothing; the result carries
            the files that would be written.
        skip_types: Do not rewrite ``api_types.py``.
        skip_operations: Do not rewrite ``api_operations.py``.
        generated_at: Fixed timestamp for the file headers.

    Raises:
        SpecNotFoundError: If no spec has been cached yet.
        SpecParseError: If the cached spec cannot be decoded.
        GenerationError: If rendering fails.
        OutputError: If the files cannot be written. Previously generated
            files are left untouched.
    """
    reporter = reporter or NullReporter()
    started = time.monotonic()

    spec = load_spec_file(paths.spec)
    operations = extract_operations(spec, reporter)
    if not operations:
        reporter.warning("No operations found in spec", spec=str(paths.spec))
    reporter.debug("Extracted operations", count=len(operations))

    files: list[tuple[Path, str]] = [
        (paths.generated_init, _render("init", lambda: render_generated_init(generated_at)))
    ]
    if not skip_types:
        with reporter.spin("Generating types..."):
            files.append(
                (
                    paths.types,
                    _render("types", lambda: render_types_module(spec, operations, generated_at)),
                )
            )
    if not skip_operations:
        with reporter.spin("Generating operations..."):
            files.append(
                (
                    paths.operations,
                    _render(
                        "operations",
                        lambda: render_operations_module(operations, generated_at),
                    ),
                )
            )

    duration_ms = int((time.monotonic() - started) * 1000)

    if dry_run:
        return GenerationResult(
            operation_count=len(operations),
            duration_ms=duration_ms,
            dry_run=_dry_run(files, len(operations)),
        )

    with TransactionalWriter(paths.folder) as tx:
        for path, content in files:
            tx.stage(path, content)
    for path, _ in files:
        reporter.debug("Wrote file", path=str(path))

    return GenerationResult(
        operation_count=len(operations),
        duration_ms=int((time.monotonic() - started) * 1000),
        types_generated=not skip_types,
        operations_generated=not skip_operations,
    )


def generate_client_files(
    paths: OutputPaths,
    instance_config: Optional[InstanceConfig] = None,
    reporter: Optional[Reporter] = None,
    force: bool = False,
    generated_at: Optional[str] = None,
) -> ClientFilesResult:
    """Write the generated-once client modules.

    Existing files are kept unless *force* is set, so user edits survive
    regular runs. All files that need writing are committed together.
    """
    reporter = reporter or NullReporter()
    renderers: dict[str, tuple[Path, Callable[[], str]]] = {
        "package": (paths.package_init, lambda: render_package_init(generated_at)),
        "helpers": (paths.helpers, lambda: render_helpers_module(generated_at)),
        "instance": (
            paths.instance,
            lambda: render_instance_module(instance_config, generated_at),
        ),
        "error": (paths.error, lambda: render_error_module(generated_at)),
        "client": (paths.client, lambda: render_client_module(generated_at)),
    }

    written: dict[str, bool] = {}
    with TransactionalWriter(paths.folder) as tx:
        for key, (path, render) in renderers.items():
            if path.exists() and not force:
                reporter.debug("Keeping existing client file", path=str(path))
                written[key] = False
                continue
            tx.stage(path, _render("client-files", render))
            written[key] = True

    for key, (path, _) in renderers.items():
        if written[key]:
            reporter.debug("Wrote client file", path=str(path))
    return ClientFilesResult(**written)
