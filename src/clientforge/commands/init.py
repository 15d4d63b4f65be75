"""Init command -- set up clientforge in the current project.

Implements the ``clientforge init`` top-level command. This is the typical
entry point for first-time setup: it writes ``api.config.toml`` at the
project root, creates the generated-once client files, and, when the
endpoint is reachable from here (anything but localhost), runs an initial
fetch and generation.

Unlike the other commands it takes every setting as an option and never
prompts, so it can run unattended in CI.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

import typer

from clientforge.output import get_output

_LOCAL_HOSTS = ("localhost", "127.0.0.1")


def is_local_endpoint(endpoint: str) -> bool:
    """Whether *endpoint* points at this machine (dev server not running yet)."""
    return (urlparse(endpoint).hostname or "") in _LOCAL_HOSTS


def init_command(
    ctx: typer.Context,
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", help="Remote OpenAPI spec URL."
    ),
    output_folder: Optional[str] = typer.Option(
        None, "--output-folder", help="Output folder, relative to the project root."
    ),
    force: bool = typer.Option(
        False, "--force", help="Overwrite an existing api.config.toml and client files."
    ),
    skip_client: bool = typer.Option(
        False, "--skip-client", help="Do not create the generated-once client files."
    ),
    base_url_env: Optional[str] = typer.Option(
        None, "--base-url-env", help="Environment variable holding the API base URL."
    ),
    token_env: Optional[str] = typer.Option(
        None, "--token-env", help="Environment variable holding the bearer token."
    ),
    with_credentials: bool = typer.Option(
        True,
        "--with-credentials/--no-with-credentials",
        help="Send cookies with requests.",
    ),
    timeout: Optional[int] = typer.Option(
        None, "--timeout", help="Request timeout in milliseconds."
    ),
    no_fetch: bool = typer.Option(
        False, "--no-fetch", help="Skip the initial fetch and generation."
    ),
) -> None:
    """Initialize clientforge in the current project.

    Example::

        clientforge init --endpoint https://api.example.com/openapi.json
        clientforge init --output-folder src/myapp/api --token-env MYAPP_TOKEN
        clientforge init --force --no-fetch
    """
    from clientforge.commands.common import cli_errors, config_path_option
    from clientforge.commands.fetch import sync_spec
    from clientforge.config import (
        DEFAULT_ENDPOINT,
        DEFAULT_OUTPUT_FOLDER,
        config_exists,
        create_default_config,
        ensure_output_folders,
        find_project_root,
        get_config_path,
        get_output_paths,
        load_config,
        render_config,
    )
    from clientforge.exceptions import ClientforgeError, ConfigError, format_error
    from clientforge.generator import generate, generate_client_files
    from clientforge.models import InstanceConfig

    output = get_output()
    output.separator("clientforge init")

    with cli_errors():
        config_path = config_path_option(ctx) or get_config_path(find_project_root())

        if config_exists(config_path) and not force:
            output.info("Config already exists, keeping it", config_path=str(config_path))
            output.suggest("Use --force to overwrite it")
        else:
            defaults = InstanceConfig()
            instance = InstanceConfig(
                base_url_env=base_url_env or defaults.base_url_env,
                token_env=token_env or defaults.token_env,
                with_credentials=with_credentials,
                timeout=timeout if timeout is not None else defaults.timeout,
            )
            content = render_config(
                endpoint=endpoint or DEFAULT_ENDPOINT,
                output_folder=output_folder or DEFAULT_OUTPUT_FOLDER,
                instance=instance,
            )
            try:
                create_default_config(config_path, content)
            except OSError as exc:
                raise ConfigError(f"Failed to write {config_path}: {exc}") from exc
            output.success("Created config", config_path=str(config_path))

        loaded = load_config(config_path)
        paths = get_output_paths(loaded.config, loaded.project_root)
        ensure_output_folders(paths)

        if not skip_client:
            client_files = generate_client_files(
                paths, loaded.config.instance, output, force=force
            )
            if client_files.any_written:
                output.success("Client files created", folder=str(paths.folder))
            else:
                output.info("Client files already exist", folder=str(paths.folder))

        api_endpoint = loaded.config.api_endpoint
        if no_fetch:
            output.info("Skipping initial fetch")
        elif loaded.config.spec_file is None and is_local_endpoint(api_endpoint):
            output.info("Local endpoint detected, skipping initial fetch", endpoint=api_endpoint)
            output.suggest("Start your API server, then run 'clientforge fetch'")
        else:
            try:
                sync_spec(loaded, paths, output, force=True)
                result = generate(paths, output)
                output.success("Initial generation complete", operations=result.operation_count)
            except ClientforgeError as exc:
                output.warning(f"Initial fetch failed: {format_error(exc)}")
                output.suggest("Run 'clientforge fetch' once the spec is reachable")

        output.separator()
        output.success("clientforge initialized")
        output.suggest("Run 'clientforge status' to check the setup")
