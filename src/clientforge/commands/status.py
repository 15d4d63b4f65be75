"""Status command -- show config, cached spec, and generated files.

Implements ``clientforge status``. Read-only apart from creating a default
config when none exists.
"""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Any, Optional

import typer

from clientforge.models import HTTPMethod, OutputPaths
from clientforge.output import format_time_ago, get_output


def count_endpoints(spec: Any) -> dict[str, int]:
    """Count operations per HTTP method, plus ``total``.

    Every declared operation is counted, with or without an operationId.
    """
    from clientforge.parser.extractor import iter_operations

    counts = {method.value: 0 for method in HTTPMethod}
    for _, _, method, _ in iter_operations(spec):
        counts[method.value] += 1
    counts["total"] = sum(counts.values())
    return counts


def _file_state(path: Path) -> str:
    try:
        mtime = path.stat().st_mtime
    except OSError:
        return "missing"
    return f"present ({format_time_ago(time.time() - mtime)})"


def _relative(path: Path, root: Path) -> str:
    try:
        return os.path.relpath(path, root)
    except ValueError:
        return str(path)


def _generated_rows(paths: OutputPaths, root: Path) -> list[list[str]]:
    files = [
        ("types", paths.types),
        ("operations", paths.operations),
        ("package", paths.package_init),
        ("helpers", paths.helpers),
        ("instance", paths.instance),
        ("error", paths.error),
        ("client", paths.client),
    ]
    return [[name, _relative(path, root), _file_state(path)] for name, path in files]


def status_command(ctx: typer.Context) -> None:
    """Show the current config, cached spec, and generated file state.

    Example::

        clientforge status
    """
    from clientforge.cache import SpecCache
    from clientforge.commands.common import cli_errors, config_path_option
    from clientforge.config import get_output_paths, load_config
    from clientforge.fetcher import has_local_spec
    from clientforge.parser import load_spec_file

    output = get_output()

    with cli_errors():
        loaded = load_config(config_path_option(ctx))
        config = loaded.config
        root = loaded.project_root
        paths = get_output_paths(config, root)

        output.separator("Status")
        created = " (created)" if loaded.was_created else ""
        output.print_data(f"Config: {_relative(loaded.config_path, root)}{created}")
        output.print_data(f"  endpoint: {config.api_endpoint}")
        if config.spec_file:
            output.print_data(f"  spec_file: {config.spec_file}")
        output.print_data(f"  output: {config.output.folder}")

        output.print_data("")
        output.print_data("Spec:")
        stats = SpecCache(paths.cache).stats()
        spec_exists = has_local_spec(paths.spec)
        counts: Optional[dict[str, int]] = None
        if spec_exists and stats["cached"]:
            output.print_data(
                f"  cached: yes (hash: {stats['hash'][:8]}, "
                f"{format_time_ago(stats['age_seconds'])})"
            )
        elif spec_exists:
            output.print_data("  cached: yes (no metadata)")
        else:
            output.print_data("  cached: no - run 'clientforge fetch' first")

        if spec_exists:
            counts = count_endpoints(load_spec_file(paths.spec))
        if counts and counts["total"]:
            output.print_data(f"  endpoints: {counts['total']} total")
            per_method = [
                f"{method.value.upper()}: {counts[method.value]}"
                for method in HTTPMethod
                if counts[method.value]
            ]
            output.print_data(f"    {'  '.join(per_method)}")

        output.print_data("")
        output.print_table(
            ["file", "path", "state"],
            _generated_rows(paths, root),
            title="Generated files",
        )
