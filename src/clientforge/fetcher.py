"""Fetch, load, and cache the OpenAPI spec.

Remote specs are downloaded with :mod:`httpx` using bounded retry with
exponential backoff. When every attempt fails and a previous spec is cached
in ``_internal/``, that cached copy is used instead so an offline run can
still generate.

Local spec files (JSON or YAML) go through the same change detection as
remote ones: the SHA-256 hash of the spec bytes is compared against
``_internal/.api-cache.json``.

The cached spec is always JSON. A YAML source is converted when it is
loaded, so the stored bytes, the hash, and ``_internal/openapi.json`` all
agree.
"""

from __future__ import annotations

import hashlib
import json
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx

from clientforge.cache import SpecCache
from clientforge.config import _atomic_write
from clientforge.exceptions import ConfigError, NetworkError, SpecNotFoundError, SpecParseError
from clientforge.models import FetchResult, OutputPaths
from clientforge.output import NullReporter, Reporter
from clientforge.parser.loader import hint_for_path, parse_spec

_ENV_VAR_RE = re.compile(r"\$\{?([A-Za-z_][A-Za-z0-9_]*)\}?")

DEFAULT_FETCH_TIMEOUT = 30.0


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy for remote fetches.

    The delay before attempt ``n + 1`` is
    ``base_delay_ms * backoff_multiplier ** (n - 1)``: 1 s, 2 s, 4 s, ...
    """

    max_attempts: int = 3
    base_delay_ms: int = 1000
    backoff_multiplier: float = 2

    def delay_ms(self, attempt: int) -> float:
        return self.base_delay_ms * self.backoff_multiplier ** (attempt - 1)


# --- Helpers ---


def interpolate_env_vars(value: str) -> str:
    """Replace ``$VAR`` and ``${VAR}`` with environment variable values.

    Raises:
        ConfigError: If a referenced variable is not set.
    """

    def _substitute(match: re.Match) -> str:
        name = match.group(1)
        env_value = os.environ.get(name)
        if env_value is None:
            raise ConfigError(
                f"Environment variable {name} is not set (referenced in: {value})",
                f"Export {name} or remove it from [fetch.headers] in api.config.toml.",
            )
        return env_value

    return _ENV_VAR_RE.sub(_substitute, value)


def interpolate_headers(headers: dict[str, str]) -> dict[str, str]:
    """Apply :func:`interpolate_env_vars` to every header value."""
    return {key: interpolate_env_vars(value) for key, value in headers.items()}


def compute_hash(content: bytes) -> str:
    """Return the SHA-256 hex digest of *content*."""
    return hashlib.sha256(content).hexdigest()


def _as_json_bytes(content: bytes, hint: str, source: str) -> tuple[dict[str, Any], bytes]:
    """Decode *content* and return it with its JSON byte form.

    JSON input is returned unchanged; YAML input is re-serialised.
    """
    spec = parse_spec(content, hint=hint, source=source)
    try:
        json.loads(content)
    except ValueError:
        return spec, json.dumps(spec, indent=2, ensure_ascii=False, default=str).encode("utf-8")
    return spec, content


# --- Remote ---


def fetch_openapi_spec(
    endpoint: str,
    paths: OutputPaths,
    reporter: Optional[Reporter] = None,
    force: bool = False,
    retry: Optional[RetryConfig] = None,
    headers: Optional[dict[str, str]] = None,
    transport: Optional[httpx.BaseTransport] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> FetchResult:
    """Download the spec from *endpoint* with retry and cache fallback.

    Args:
        endpoint: URL of the OpenAPI document.
        paths: Output locations; the cached spec and metadata are read from
            ``paths.spec`` and ``paths.cache``.
        reporter: Diagnostics sink; silent when ``None``.
        force: Report the spec as changed even when the hash matches.
        retry: Retry policy; defaults to :class:`RetryConfig`.
        headers: Extra request headers. Values may reference environment
            variables as ``$VAR`` or ``${VAR}``.
        transport: Custom httpx transport (used by tests).
        sleep: Called with the backoff delay in seconds between attempts.

    Returns:
        A :class:`~clientforge.models.FetchResult`. ``from_cache`` is set
        when the network failed and the cached spec was used; such a result
        never reports a change.

    Raises:
        ConfigError: If a header references an unset environment variable.
        NetworkError: If every attempt failed and nothing is cached.
    """
    reporter = reporter or NullReporter()
    retry = retry or RetryConfig()
    cache = SpecCache(paths.cache)

    request_headers = {"Accept": "application/json"}
    if headers:
        request_headers.update(interpolate_headers(headers))

    last_error: Optional[Exception] = None
    with httpx.Client(
        timeout=DEFAULT_FETCH_TIMEOUT, follow_redirects=True, transport=transport
    ) as client:
        for attempt in range(1, retry.max_attempts + 1):
            try:
                reporter.debug("Fetching OpenAPI spec...", attempt=attempt, endpoint=endpoint)
                response = client.get(endpoint, headers=request_headers)
                if not response.is_success:
                    raise NetworkError(
                        endpoint,
                        f"HTTP {response.status_code}: {response.reason_phrase}",
                        status_code=response.status_code,
                        kind="http",
                    )
                _, content = _as_json_bytes(
                    response.content, hint_for_path(httpx.URL(endpoint).path), endpoint
                )
                digest = compute_hash(content)
                has_changed = cache.has_changed(digest, force=force)
                reporter.debug(
                    "Spec fetched successfully",
                    hash=digest[:8],
                    has_changed=has_changed,
                    bytes=len(content),
                )
                return FetchResult(content=content, hash=digest, has_changed=has_changed)
            except httpx.TimeoutException as exc:
                last_error = NetworkError(endpoint, f"Request timed out: {exc}", kind="timeout")
            except httpx.HTTPError as exc:
                last_error = NetworkError(endpoint, str(exc) or type(exc).__name__, kind="connection")
            except (NetworkError, SpecParseError) as exc:
                last_error = exc

            if attempt < retry.max_attempts:
                delay_ms = retry.delay_ms(attempt)
                reporter.warning(
                    "Fetch failed, retrying...",
                    attempt=attempt,
                    max_attempts=retry.max_attempts,
                    delay_ms=int(delay_ms),
                    error=str(last_error),
                )
                sleep(delay_ms / 1000)

    reporter.warning(
        "All fetch attempts failed, checking for cached spec...",
        attempts=retry.max_attempts,
        error=str(last_error),
    )

    metadata = cache.load()
    if metadata is not None and paths.spec.is_file():
        reporter.info("Using cached OpenAPI spec due to network failure")
        return FetchResult(
            content=paths.spec.read_bytes(),
            hash=metadata.hash,
            has_changed=False,
            from_cache=True,
        )

    status_code = getattr(last_error, "status_code", None)
    kind = getattr(last_error, "kind", None)
    raise NetworkError(
        endpoint,
        f"Failed to fetch OpenAPI spec after {retry.max_attempts} attempts: {last_error}",
        status_code=status_code,
        kind=kind,
    )


# --- Local ---


def has_local_spec(path: Union[str, Path]) -> bool:
    """Whether *path* is a readable JSON spec object."""
    try:
        parsed = json.loads(Path(path).read_bytes())
    except (OSError, ValueError):
        return False
    return isinstance(parsed, dict)


def load_local_spec(path: Union[str, Path]) -> tuple[dict[str, Any], bytes]:
    """Load a JSON or YAML spec file.

    Returns:
        The decoded spec and its JSON bytes (the file's own bytes when it is
        JSON).

    Raises:
        SpecNotFoundError: If the file does not exist.
        SpecParseError: If the file cannot be read or is not a spec object.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecNotFoundError(str(file_path))
    try:
        content = file_path.read_bytes()
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file: {exc}", str(file_path)) from exc
    return _as_json_bytes(content, hint_for_path(file_path), str(file_path))


def load_local_spec_file(
    local_path: Union[str, Path],
    paths: OutputPaths,
    reporter: Optional[Reporter] = None,
    force: bool = False,
) -> FetchResult:
    """Load a local spec file with the same change detection as a fetch."""
    reporter = reporter or NullReporter()
    reporter.info("Loading local spec file...", local_path=str(local_path))

    _, content = load_local_spec(local_path)
    digest = compute_hash(content)
    has_changed = SpecCache(paths.cache).has_changed(digest, force=force)
    reporter.debug("Local spec loaded", hash=digest[:8], has_changed=has_changed, bytes=len(content))
    return FetchResult(content=content, hash=digest, has_changed=has_changed)


def save_spec(content: bytes, hash: str, endpoint: str, paths: OutputPaths) -> None:
    """Write the spec bytes to ``paths.spec`` and record its metadata."""
    _atomic_write(paths.spec, content)
    SpecCache(paths.cache).record(hash, endpoint)
