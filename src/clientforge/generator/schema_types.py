"""Render OpenAPI schemas as Python type expressions and ``TypedDict`` definitions.

:class:`SchemaRenderer` is the in-process replacement for an external type
generator. It turns ``components.schemas`` (or Swagger 2 ``definitions``)
into ``TypedDict`` classes and aliases, and resolves the per-operation
request body, response, and query parameter types that the generated
client is keyed on.

Mapping rules:

* ``string`` -> ``str`` (``format: binary`` -> ``bytes``), ``integer`` ->
  ``int``, ``number`` -> ``float``, ``boolean`` -> ``bool``, ``null`` ->
  ``None``.
* ``array`` -> ``list[T]``; ``enum``/``const`` -> ``Literal[...]``.
* Objects with ``properties`` -> a named ``TypedDict`` (inline objects get
  a name derived from where they appear); ``additionalProperties`` ->
  ``dict[str, T]``; an object with neither -> ``dict[str, Any]``.
* ``$ref`` to a schema -> the referenced class name as a quoted forward
  reference, so definition order never matters.
* ``nullable`` or a ``"null"`` member of a type list -> ``Optional[T]``.
* ``oneOf``/``anyOf`` -> ``Union[...]``; ``allOf`` -> its first ``$ref``
  member, otherwise ``dict[str, Any]``. Compositions are not merged.
* Anything unrecognised -> ``Any``.

The renderer never raises on odd input: unresolvable references and
malformed nodes degrade to ``Any``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from clientforge.generator.naming import safe_field_name, to_type_name
from clientforge.models import OperationDescriptor
from clientforge.parser.extractor import iter_operations, operation_id_of, query_parameters
from clientforge.parser.probe import probe
from clientforge.parser.resolver import ref_name, try_resolve_node

FILE_FIELD_MARKERS = (
    "image",
    "file",
    "attachment",
    "upload",
    "document",
    "photo",
    "video",
    "media",
)
# camelCase segments ("profileImage") match too; other casings do not
_FILE_FIELD_PATTERNS = FILE_FIELD_MARKERS + tuple(m.capitalize() for m in FILE_FIELD_MARKERS)

FILE_CONTENT = "FileContent"
NEVER = "Never"
ANY = "Any"
EMPTY_OBJECT = "dict[str, Any]"

_JSON = "application/json"
_MULTIPART = "multipart/form-data"
_URLENCODED = "application/x-www-form-urlencoded"
_SCHEMA_REF_PREFIXES = ("#/components/schemas/", "#/definitions/")
_MAX_DEPTH = 32

# fixed per-operation type names; the generated operations module imports them
OPERATION_TYPE_SUFFIXES = ("RequestBody", "ResponseData", "Responses", "QueryParams", "PathParams")


@dataclass
class FieldDef:
    """One key of a generated ``TypedDict``."""

    name: str
    type_expr: str
    required: bool = True

    @property
    def annotation(self) -> str:
        return self.type_expr if self.required else f"NotRequired[{self.type_expr}]"


@dataclass
class TypedDictDef:
    """A generated ``TypedDict`` class.

    ``functional`` is set when there are no keys or any key is not a
    valid identifier, in which case the template emits
    ``Name = TypedDict("Name", {...})``.
    """

    kind = "typeddict"

    name: str
    fields: list[FieldDef] = field(default_factory=list)
    description: str = ""
    total: bool = True

    @property
    def functional(self) -> bool:
        return not self.fields or not all(safe_field_name(f.name) for f in self.fields)


@dataclass
class AliasDef:
    """A generated ``Name: TypeAlias = <expr>`` line."""

    kind = "alias"

    name: str
    type_expr: str
    description: str = ""


@dataclass
class OperationTypes:
    """Resolved types for one operation, named ``<Prefix><Kind>``."""

    prefix: str
    operation_id: str
    method: str
    path: str
    request_body: str
    response_data: str
    responses: TypedDictDef
    query_params: Optional[TypedDictDef]
    status_codes: list[str]
    # multipart bodies render as their own TypedDict
    request_body_def: Optional[TypedDictDef] = None

    @property
    def query_params_name(self) -> str:
        return self.query_params.name if self.query_params else NEVER


def is_file_field(name: str) -> bool:
    """Whether a form field name marks a file upload.

    The match is a case-sensitive substring test against each marker in
    lowercase or capitalised form, so ``profileImage`` and ``avatar_file``
    match while ``IMAGE`` does not.
    """
    return any(pattern in name for pattern in _FILE_FIELD_PATTERNS)


def quote(name: str) -> str:
    return f'"{name}"'


def _literal(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return repr(value)
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return None


def _union(members: list[str]) -> str:
    unique: list[str] = []
    for member in members:
        if member not in unique:
            unique.append(member)
    if ANY in unique:
        return ANY
    if len(unique) == 1:
        return unique[0]
    return f"Union[{', '.join(unique)}]"


def _optional(expr: str) -> str:
    if expr in (ANY, "None") or expr.startswith("Optional["):
        return expr
    return f"Optional[{expr}]"


class SchemaRenderer:
    """Collects type definitions while rendering schemas from one spec.

    Usage::

        renderer = SchemaRenderer(spec)
        renderer.render_components()
        op_types = [renderer.operation_types(op) for op in operations]
        renderer.definitions   # classes and aliases, in discovery order
    """

    def __init__(self, spec: dict[str, Any]):
        self.spec = spec
        self.definitions: list[TypedDictDef | AliasDef] = []
        self.schema_names: dict[str, str] = {}
        self._taken: set[str] = {FILE_CONTENT}
        self._operation_index: dict[tuple[str, str], tuple[Any, Any]] = {}
        for path, path_item, method, operation in iter_operations(spec):
            self._operation_index[(path, method.value)] = (path_item, operation)
            op_id = operation_id_of(operation)
            if op_id is not None:
                self._reserve_operation_names(to_type_name(op_id))

        schemas = probe(spec, "components", "schemas", kind=dict)
        if not schemas.present:
            schemas = probe(spec, "definitions", kind=dict)
        self.components: dict[str, Any] = schemas.or_default({})
        for raw_name in self.components:
            self.schema_names[raw_name] = self._claim(to_type_name(raw_name))

    # ------------------------------------------------------------------ #
    # Naming
    # ------------------------------------------------------------------ #

    def _claim(self, name: str) -> str:
        candidate = name
        counter = 2
        while candidate in self._taken:
            candidate = f"{name}{counter}"
            counter += 1
        self._taken.add(candidate)
        return candidate

    def reserve(self, name: str) -> str:
        """Reserve a top-level name; later duplicates reuse the same name."""
        self._taken.add(name)
        return name

    def _reserve_operation_names(self, prefix: str) -> None:
        # claimed before component names, so a clashing component is numbered
        for suffix in OPERATION_TYPE_SUFFIXES:
            self.reserve(f"{prefix}{suffix}")

    # ------------------------------------------------------------------ #
    # Schemas
    # ------------------------------------------------------------------ #

    def render_components(self) -> None:
        """Emit one class or alias per component schema."""
        for raw_name, schema in self.components.items():
            name = self.schema_names[raw_name]
            description = schema.get("description", "") if isinstance(schema, dict) else ""
            if self._is_object_with_properties(schema):
                self.definitions.append(self._typed_dict(name, schema))
            else:
                self.definitions.append(
                    AliasDef(name, self.type_expr(schema, name), _text(description))
                )

    def type_expr(self, schema: Any, hint: str, depth: int = 0) -> str:
        """Return the Python type expression for *schema*.

        Args:
            schema: A schema node.
            hint: Name to give inline object classes found in *schema*.
            depth: Recursion guard for reference chains.
        """
        if depth > _MAX_DEPTH or not isinstance(schema, dict):
            return ANY

        ref = schema.get("$ref")
        if isinstance(ref, str):
            return self._ref_expr(ref, hint, depth)

        expr = self._base_expr(schema, hint, depth)
        if schema.get("nullable") is True:
            expr = _optional(expr)
        return expr

    def _ref_expr(self, ref: str, hint: str, depth: int) -> str:
        for prefix in _SCHEMA_REF_PREFIXES:
            if ref.startswith(prefix) and "/" not in ref[len(prefix):]:
                raw = ref_name(ref)
                if raw in self.schema_names:
                    return quote(self.schema_names[raw])
                return ANY
        target = try_resolve_node({"$ref": ref}, self.spec)
        if target is None or (isinstance(target, dict) and "$ref" in target):
            return ANY
        return self.type_expr(target, hint, depth + 1)

    def _base_expr(self, schema: dict[str, Any], hint: str, depth: int) -> str:
        if "const" in schema:
            literal = _literal(schema["const"])
            return f"Literal[{literal}]" if literal else ANY

        enum = schema.get("enum")
        if isinstance(enum, list) and enum:
            literals = [lit for lit in (_literal(v) for v in enum if v is not None) if lit]
            if not literals:
                return "None" if None in enum else ANY
            expr = f"Literal[{', '.join(literals)}]"
            return _optional(expr) if None in enum else expr

        for key in ("oneOf", "anyOf"):
            members = schema.get(key)
            if isinstance(members, list) and members:
                return _union(
                    [
                        self.type_expr(m, f"{hint}Option{i + 1}", depth + 1)
                        for i, m in enumerate(members)
                    ]
                )

        all_of = schema.get("allOf")
        if isinstance(all_of, list) and all_of:
            for member in all_of:
                if isinstance(member, dict) and isinstance(member.get("$ref"), str):
                    return self._ref_expr(member["$ref"], hint, depth + 1)
            return EMPTY_OBJECT

        type_value = schema.get("type")
        if isinstance(type_value, list):
            nullable = "null" in type_value
            concrete = [t for t in type_value if t != "null"]
            if not concrete:
                return "None"
            expr = _union([self._typed_expr(schema, t, hint, depth) for t in concrete])
            return _optional(expr) if nullable else expr

        if type_value is None and ("properties" in schema or "additionalProperties" in schema):
            type_value = "object"
        return self._typed_expr(schema, type_value, hint, depth)

    def _typed_expr(
        self, schema: dict[str, Any], type_value: Any, hint: str, depth: int
    ) -> str:
        if type_value == "string":
            return "bytes" if schema.get("format") == "binary" else "str"
        if type_value == "integer":
            return "int"
        if type_value == "number":
            return "float"
        if type_value == "boolean":
            return "bool"
        if type_value == "null":
            return "None"
        if type_value == "file":
            return FILE_CONTENT
        if type_value == "array":
            items = schema.get("items")
            if items is None:
                return "list[Any]"
            return f"list[{self.type_expr(items, f'{hint}Item', depth + 1)}]"
        if type_value == "object":
            if self._is_object_with_properties(schema):
                name = self._claim(hint)
                self.definitions.append(self._typed_dict(name, schema, depth))
                return quote(name)
            extra = schema.get("additionalProperties")
            if isinstance(extra, dict) and extra:
                return f"dict[str, {self.type_expr(extra, f'{hint}Value', depth + 1)}]"
            return EMPTY_OBJECT
        return ANY

    @staticmethod
    def _is_object_with_properties(schema: Any) -> bool:
        if not isinstance(schema, dict) or "$ref" in schema:
            return False
        properties = schema.get("properties")
        if not (isinstance(properties, dict) and properties):
            return False
        type_value = schema.get("type", "object")
        if isinstance(type_value, list):
            return "object" in type_value
        return type_value == "object"

    def _typed_dict(
        self,
        name: str,
        schema: dict[str, Any],
        depth: int = 0,
        remap_files: bool = False,
    ) -> TypedDictDef:
        required = schema.get("required")
        required_names = set(required) if isinstance(required, list) else set()
        fields = []
        for prop, prop_schema in schema["properties"].items():
            prop = str(prop)
            expr = None
            if remap_files and is_file_field(prop):
                expr = self._file_field_expr(prop_schema)
            if expr is None:
                expr = self.type_expr(prop_schema, f"{name}{to_type_name(prop)}", depth + 1)
            fields.append(FieldDef(prop, expr, prop in required_names))
        return TypedDictDef(name, fields, _text(schema.get("description", "")))

    def _file_field_expr(self, schema: Any) -> Optional[str]:
        """``FileContent`` for string fields, ``list[FileContent]`` for string arrays."""
        resolved = try_resolve_node(schema, self.spec)
        if not isinstance(resolved, dict):
            return None
        type_value = resolved.get("type")
        if type_value in ("string", "file"):
            return FILE_CONTENT
        if type_value == "array":
            items = try_resolve_node(resolved.get("items"), self.spec)
            if isinstance(items, dict) and items.get("type") in ("string", "file"):
                return f"list[{FILE_CONTENT}]"
        return None

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def operation_types(self, op: OperationDescriptor) -> OperationTypes:
        """Resolve request body, response, and query types for *op*."""
        prefix = to_type_name(op.operation_id)
        self._reserve_operation_names(prefix)

        path_item, operation = self._operation_index.get(
            (op.path, op.method.value), ({}, {})
        )

        request_body, body_def = self._request_body(operation, prefix)
        responses, status_codes = self._responses(operation, prefix)
        query_params = self._query_params(path_item, operation, prefix)

        return OperationTypes(
            prefix=prefix,
            operation_id=op.operation_id,
            method=op.method.value,
            path=op.path,
            request_body=request_body,
            response_data=self._response_data(operation, prefix),
            responses=responses,
            query_params=query_params,
            status_codes=status_codes,
            request_body_def=body_def,
        )

    def _request_body(
        self, operation: dict[str, Any], prefix: str
    ) -> tuple[str, Optional[TypedDictDef]]:
        name = f"{prefix}RequestBody"
        body = try_resolve_node(operation.get("requestBody"), self.spec)
        content = probe(body, "content", kind=dict).or_default({})

        if _JSON in content:
            schema = probe(content, _JSON, "schema").or_default(None)
            if schema is None:
                return ANY, None
            return self.type_expr(schema, f"{prefix}Body"), None

        for media_type, remap_files in ((_MULTIPART, True), (_URLENCODED, False)):
            if media_type in content:
                schema = probe(content, media_type, "schema").or_default(None)
                resolved = try_resolve_node(schema, self.spec)
                if self._is_object_with_properties(resolved):
                    return name, self._typed_dict(name, resolved, remap_files=remap_files)
                return self.type_expr(schema, f"{prefix}Body"), None

        if isinstance(body, dict):
            # declared, but with no media type we can type
            return ANY, None
        return self._swagger2_body(operation, prefix, name)

    def _swagger2_body(
        self, operation: dict[str, Any], prefix: str, name: str
    ) -> tuple[str, Optional[TypedDictDef]]:
        params = [
            p
            for p in (try_resolve_node(p, self.spec) for p in operation.get("parameters") or [])
            if isinstance(p, dict)
        ]
        for param in params:
            if param.get("in") == "body":
                return self.type_expr(param.get("schema"), f"{prefix}Body"), None
        form = [p for p in params if p.get("in") == "formData" and isinstance(p.get("name"), str)]
        if form:
            schema = {
                "type": "object",
                "properties": {p["name"]: p for p in form},
                "required": [p["name"] for p in form if p.get("required")],
            }
            return name, self._typed_dict(name, schema, remap_files=True)
        return NEVER, None

    def _response_schema(self, response: Any) -> tuple[bool, Any]:
        """Return ``(has_json, schema)`` for a response object."""
        response = try_resolve_node(response, self.spec)
        if not isinstance(response, dict):
            return False, None
        content = response.get("content")
        if isinstance(content, dict):
            if _JSON in content and isinstance(content[_JSON], dict):
                return True, content[_JSON].get("schema")
            return False, None
        if "schema" in response:
            return True, response["schema"]
        return False, None

    def _status_map(self, operation: dict[str, Any]) -> dict[str, Any]:
        responses = operation.get("responses")
        if not isinstance(responses, dict):
            return {}
        return {str(status): response for status, response in responses.items()}

    def _response_data(self, operation: dict[str, Any], prefix: str) -> str:
        statuses = self._status_map(operation)
        for status in ("200", "201"):
            if status in statuses:
                has_json, schema = self._response_schema(statuses[status])
                if has_json:
                    return self.type_expr(schema, f"{prefix}Response")
        return ANY

    def _responses(
        self, operation: dict[str, Any], prefix: str
    ) -> tuple[TypedDictDef, list[str]]:
        statuses = self._status_map(operation)
        fields = []
        for status, response in statuses.items():
            has_json, schema = self._response_schema(response)
            resolved = try_resolve_node(response, self.spec)
            if has_json:
                expr = self.type_expr(schema, f"{prefix}Response{to_type_name(status)}")
            elif isinstance(resolved, dict) and resolved.get("content"):
                expr = ANY
            else:
                expr = "None"
            fields.append(FieldDef(status, expr))
        return TypedDictDef(f"{prefix}Responses", fields, total=False), list(statuses)

    def _query_params(
        self, path_item: dict[str, Any], operation: dict[str, Any], prefix: str
    ) -> Optional[TypedDictDef]:
        params = query_parameters(self.spec, path_item, operation) if operation else []
        if not params:
            return None
        name = f"{prefix}QueryParams"
        fields = []
        for param in params:
            if not isinstance(param.get("name"), str):
                continue
            # Swagger 2 puts the type on the parameter itself
            schema = param.get("schema", param)
            fields.append(
                FieldDef(
                    param["name"],
                    self.type_expr(schema, f"{name}{to_type_name(param['name'])}"),
                    bool(param.get("required")),
                )
            )
        return TypedDictDef(name, fields)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
