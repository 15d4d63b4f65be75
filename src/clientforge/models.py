"""Canonical Pydantic models shared across all clientforge modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- parsed from ``api.config.toml``:
    :class:`InstanceConfig`, :class:`FetchConfig`, :class:`WatchConfig`,
    :class:`OutputConfig`, :class:`ApiConfig`, and the resolved
    :class:`OutputPaths`.

**Spec models** -- produced by the parser and consumed by the generator,
differ, and validator:
    :class:`HTTPMethod`, :class:`OperationDescriptor`, :class:`Severity`,
    :class:`ValidationIssue`, :class:`ModifiedOperation`, :class:`SpecDiff`,
    and :class:`CacheMetadata`.

**Result models** -- returned by the fetch and generation pipelines:
    :class:`FetchResult`, :class:`DryRunFile`, :class:`DryRunResult`,
    :class:`GenerationResult`, and :class:`ClientFilesResult`.

All models use Pydantic v2. Spec models are frozen because descriptors are
derived fresh from the spec on every run and never mutated afterwards.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# --- Config ---


class InstanceConfig(BaseModel):
    """Settings baked into the generated ``api_instance.py`` module.

    Every field is lenient: a missing, empty, or wrongly typed value falls
    back to its default instead of failing validation, because the instance
    module is hand-editable after generation anyway.
    """

    base_url_env: str = Field(
        default="API_BASE_URL",
        description="Environment variable holding the API base URL",
    )
    token_env: str = Field(
        default="API_AUTH_TOKEN",
        description="Environment variable holding the bearer token",
    )
    with_credentials: bool = Field(
        default=True, description="Keep and send cookies across requests"
    )
    timeout: int = Field(default=30_000, description="Request timeout in milliseconds")

    @model_validator(mode="before")
    @classmethod
    def _drop_invalid(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned: dict[str, Any] = {}
        for key in ("base_url_env", "token_env"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                cleaned[key] = value
        if isinstance(data.get("with_credentials"), bool):
            cleaned["with_credentials"] = data["with_credentials"]
        timeout = data.get("timeout")
        if isinstance(timeout, int) and not isinstance(timeout, bool) and timeout > 0:
            cleaned["timeout"] = timeout
        return cleaned


class FetchConfig(BaseModel):
    """Options for retrieving the remote spec."""

    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Extra request headers; values may reference $ENV_VARS",
    )


class WatchConfig(BaseModel):
    """Options for ``clientforge watch``."""

    debug: bool = Field(default=False, description="Log every poll cycle")

    @model_validator(mode="before")
    @classmethod
    def _drop_invalid(cls, data: Any) -> Any:
        if isinstance(data, dict) and not isinstance(data.get("debug"), bool):
            return {}
        return data


class OutputConfig(BaseModel):
    """Where generated files are written."""

    folder: str = Field(description="Output folder, relative to the project root")

    @field_validator("folder")
    @classmethod
    def _folder_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("output.folder must be a non-empty string path")
        return value


class ApiConfig(BaseModel):
    """Top-level structure of ``api.config.toml``.

    Loaded by :func:`~clientforge.config.load_config`, which converts
    Pydantic validation failures into
    :class:`~clientforge.exceptions.ConfigValidationError` naming the
    offending field.
    """

    api_endpoint: str = Field(description="Remote OpenAPI spec URL")
    spec_file: Optional[str] = Field(
        default=None,
        description="Local spec path; takes priority over api_endpoint",
    )
    poll_interval_ms: int = Field(ge=1000, description="Watch mode polling interval")
    output: OutputConfig
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    instance: InstanceConfig = Field(default_factory=InstanceConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)

    @field_validator("api_endpoint")
    @classmethod
    def _endpoint_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("api_endpoint must be a non-empty string URL")
        return value

    @model_validator(mode="before")
    @classmethod
    def _normalise_optional(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        spec_file = data.get("spec_file")
        if not (isinstance(spec_file, str) and spec_file.strip()):
            data.pop("spec_file", None)
        for section in ("instance", "watch", "fetch"):
            if data.get(section) is None:
                data.pop(section, None)
        return data


class OutputPaths(BaseModel):
    """Absolute locations of every file clientforge reads or writes.

    ``_internal`` and ``_generated`` files are overwritten on every run;
    the root-level client files are generated once and left alone unless
    regeneration is forced.
    """

    folder: Path
    internal: Path
    generated: Path
    spec: Path
    cache: Path
    generated_init: Path
    types: Path
    operations: Path
    package_init: Path
    helpers: Path
    instance: Path
    error: Path
    client: Path


# --- Spec Models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods that produce client operations.

    Declaration order is the per-path iteration order used by the extractor,
    which in turn fixes the order of every generated artifact.
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"
    PATCH = "patch"


class OperationDescriptor(BaseModel):
    """Per-endpoint metadata extracted from one path + method pair."""

    model_config = ConfigDict(frozen=True)

    operation_id: str
    method: HTTPMethod
    path: str = Field(description="Path template, e.g. /users/{id}")
    path_params: list[str] = Field(
        default_factory=list,
        description="Placeholder names in template order, duplicates kept",
    )
    has_request_body: bool = False
    has_query_params: bool = False
    form_body: bool = Field(
        default=False,
        description="Request body is sent as form fields (multipart or urlencoded)",
    )
    summary: str = ""
    description: str = ""


class Severity(str, enum.Enum):
    """Severity of a :class:`ValidationIssue`."""

    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    """One structural problem reported by the spec validator."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    path: str = Field(description="JSON-pointer-like location, e.g. /paths/users/get")
    message: str

    def format(self) -> str:
        """Return ``"<path>: <message>"``."""
        return f"{self.path}: {self.message}"


class ModifiedOperation(BaseModel):
    """Old and new descriptor for an operationId whose endpoint changed."""

    old: OperationDescriptor
    new: OperationDescriptor


class SpecDiff(BaseModel):
    """Classification of operations between two spec versions."""

    added: list[OperationDescriptor] = Field(default_factory=list)
    removed: list[OperationDescriptor] = Field(default_factory=list)
    modified: list[ModifiedOperation] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        """Whether any operation was added, removed, or modified."""
        return bool(self.added or self.removed or self.modified)


class CacheMetadata(BaseModel):
    """Contents of ``_internal/.api-cache.json``."""

    hash: str = Field(description="SHA-256 hex digest of the spec bytes")
    timestamp: int = Field(description="Epoch milliseconds of the last save")
    endpoint: str = Field(description="URL or file path the spec came from")


# --- Results ---


class FetchResult(BaseModel):
    """Outcome of loading a spec from the network or a local file."""

    content: bytes
    hash: str
    has_changed: bool
    from_cache: bool = False


class DryRunFile(BaseModel):
    """A file that a generation run would write."""

    path: Path
    lines: int
    action: str = Field(description="'create' or 'update'")


class DryRunResult(BaseModel):
    """Preview returned by ``generate(dry_run=True)``."""

    files: list[DryRunFile] = Field(default_factory=list)
    operation_count: int = 0


class GenerationResult(BaseModel):
    """Summary of one :func:`~clientforge.generator.pipeline.generate` run."""

    operation_count: int
    duration_ms: int
    types_generated: bool = False
    operations_generated: bool = False
    dry_run: Optional[DryRunResult] = None


class ClientFilesResult(BaseModel):
    """Which generated-once client files were written in this run."""

    package: bool = False
    helpers: bool = False
    instance: bool = False
    error: bool = False
    client: bool = False

    @property
    def any_written(self) -> bool:
        """Whether at least one file was created or regenerated."""
        return any((self.package, self.helpers, self.instance, self.error, self.client))
