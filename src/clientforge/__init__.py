"""clientforge -- Generate a typed Python HTTP client from an OpenAPI spec.

This package reads an OpenAPI 3.x (or Swagger 2.0) document and writes a
small client package into your project: ``TypedDict`` types for every
request and response, an operation registry, and an ``httpx``-based client
whose calls are type-checked against the spec's paths and methods.

Typical workflow::

    clientforge init --endpoint https://api.example.com/openapi.json
    clientforge fetch        # download the spec and regenerate
    clientforge watch        # regenerate whenever the spec changes

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: ``api.config.toml`` discovery, validation, and output paths.
    cache: Spec hash metadata used for change detection.
    fetcher: Spec download with retries, cache fallback, and hashing.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
