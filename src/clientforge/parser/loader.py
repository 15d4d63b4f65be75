"""Decode OpenAPI documents from bytes or local files.

This module converts raw spec content into Python dictionaries. It supports
both JSON and YAML formats with automatic format detection. Network access
lives in :mod:`clientforge.fetcher`; this module never performs I/O beyond
reading a local file.

The public functions are:

* :func:`parse_spec` -- Decode bytes or text into a spec dict.
* :func:`load_spec_file` -- Read and decode a local JSON/YAML file.
* :func:`spec_version` -- Return the declared ``openapi``/``swagger``
  version, if any.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from clientforge.exceptions import SpecNotFoundError, SpecParseError


def hint_for_path(path: Union[str, Path]) -> str:
    """Return ``"json"``, ``"yaml"`` or ``""`` based on the file extension."""
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return "json"
    if suffix in (".yaml", ".yml"):
        return "yaml"
    return ""


def parse_spec(
    content: Union[bytes, str],
    hint: str = "",
    source: Optional[str] = None,
) -> dict[str, Any]:
    """Decode *content* into a spec dictionary.

    Args:
        content: Raw spec bytes or text.
        hint: Optional format hint (``"json"`` or ``"yaml"``).
        source: Where the content came from, used in error messages.

    Raises:
        SpecParseError: If the content is empty, cannot be decoded, or is
            not an object.
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SpecParseError(f"Spec is not valid UTF-8: {exc}", source) from exc
    else:
        text = content

    if not text.strip():
        raise SpecParseError("Spec is empty", source)

    return _parse_content(text, hint=hint, source=source)


def load_spec_file(path: Union[str, Path]) -> dict[str, Any]:
    """Load a spec from a local file.

    Supports .json, .yaml, and .yml extensions. Falls back to content-based
    detection if the extension is not recognized.

    Raises:
        SpecNotFoundError: If the file does not exist.
        SpecParseError: If the file cannot be read or decoded.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecNotFoundError(str(file_path))

    try:
        content = file_path.read_bytes()
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file: {exc}", str(file_path)) from exc

    return parse_spec(content, hint=hint_for_path(file_path), source=str(file_path))


def _parse_content(
    content: str, hint: str = "", source: Optional[str] = None
) -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    This order is chosen because valid JSON is also valid YAML, but JSON
    parsing is stricter and faster.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    # Try JSON first unless explicitly hinted as YAML
    if hint != "yaml":
        try:
            result = json.loads(content)
            if not isinstance(result, dict):
                raise SpecParseError(
                    f"Spec must be a JSON/YAML object (got {type(result).__name__})",
                    source,
                )
            return result
        except json.JSONDecodeError as exc:
            json_error = exc
            # If the hint was explicitly JSON, don't try YAML
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}", source) from exc

    try:
        result = yaml.safe_load(content)
        if not isinstance(result, dict):
            raise SpecParseError(
                "Spec must be a JSON/YAML object (got "
                f"{type(result).__name__ if result is not None else 'empty document'})",
                source,
            )
        return result
    except yaml.YAMLError as exc:
        yaml_error = exc

    msg = "Failed to parse spec as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise SpecParseError(msg, source)


def spec_version(spec: dict[str, Any]) -> Optional[str]:
    """Return the ``openapi`` (or Swagger 2 ``swagger``) version string, if declared."""
    for key in ("openapi", "swagger"):
        value = spec.get(key)
        if value is not None:
            return str(value)
    return None
