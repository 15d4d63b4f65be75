"""Tests for clientforge.generator.schema_types."""

from __future__ import annotations

from typing import Any

import pytest

from clientforge.generator.schema_types import (
    FILE_CONTENT,
    AliasDef,
    SchemaRenderer,
    TypedDictDef,
    is_file_field,
)
from clientforge.parser.extractor import extract_operations, operations_by_id


def _by_name(renderer: SchemaRenderer) -> dict[str, Any]:
    return {d.name: d for d in renderer.definitions}


def _fields(td: TypedDictDef) -> dict[str, tuple[str, bool]]:
    return {f.name: (f.type_expr, f.required) for f in td.fields}


@pytest.fixture()
def renderer() -> SchemaRenderer:
    return SchemaRenderer({"components": {"schemas": {"Pet": {"type": "object", "properties": {"id": {"type": "integer"}}}}}})


# ---------------------------------------------------------------------------
# Type expressions
# ---------------------------------------------------------------------------


class TestTypeExpr:
    @pytest.mark.parametrize(
        ("schema", "expected"),
        [
            ({"type": "string"}, "str"),
            ({"type": "string", "format": "binary"}, "bytes"),
            ({"type": "integer"}, "int"),
            ({"type": "number"}, "float"),
            ({"type": "boolean"}, "bool"),
            ({"type": "null"}, "None"),
            ({"type": "array"}, "list[Any]"),
            ({"type": "array", "items": {"type": "string"}}, "list[str]"),
            ({"type": "object"}, "dict[str, Any]"),
            ({"additionalProperties": {"type": "integer"}}, "dict[str, int]"),
            ({"type": "string", "nullable": True}, "Optional[str]"),
            ({"type": ["string", "null"]}, "Optional[str]"),
            ({"type": ["string", "integer"]}, "Union[str, int]"),
            ({"type": ["null"]}, "None"),
            ({"enum": ["a", "b"]}, 'Literal["a", "b"]'),
            ({"enum": ["a", None]}, 'Optional[Literal["a"]]'),
            ({"enum": [1, 2]}, "Literal[1, 2]"),
            ({"const": True}, "Literal[True]"),
            ({"oneOf": [{"type": "string"}, {"type": "integer"}]}, "Union[str, int]"),
            ({"anyOf": [{"type": "string"}, {"type": "string"}]}, "str"),
            ({"anyOf": [{"type": "string"}, {}]}, "Any"),
            ({"allOf": [{"$ref": "#/components/schemas/Pet"}, {"type": "object"}]}, '"Pet"'),
            ({"allOf": [{"type": "object"}]}, "dict[str, Any]"),
            ({"type": "mystery"}, "Any"),
            ({}, "Any"),
        ],
    )
    def test_mapping(self, renderer: SchemaRenderer, schema: dict[str, Any], expected: str) -> None:
        assert renderer.type_expr(schema, "Hint") == expected

    def test_non_mapping_is_any(self, renderer: SchemaRenderer) -> None:
        assert renderer.type_expr("nope", "Hint") == "Any"

    def test_schema_ref_is_quoted(self, renderer: SchemaRenderer) -> None:
        assert renderer.type_expr({"$ref": "#/components/schemas/Pet"}, "Hint") == '"Pet"'

    def test_unknown_schema_ref_is_any(self, renderer: SchemaRenderer) -> None:
        assert renderer.type_expr({"$ref": "#/components/schemas/Missing"}, "Hint") == "Any"

    def test_inline_object_becomes_class(self, renderer: SchemaRenderer) -> None:
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}
        assert renderer.type_expr(schema, "Inline") == '"Inline"'
        assert renderer.type_expr(schema, "Inline") == '"Inline2"'
        names = [d.name for d in renderer.definitions]
        assert names == ["Inline", "Inline2"]

    def test_array_of_inline_objects(self, renderer: SchemaRenderer) -> None:
        schema = {"type": "array", "items": {"properties": {"a": {"type": "string"}}}}
        assert renderer.type_expr(schema, "Row") == 'list["RowItem"]'


# ---------------------------------------------------------------------------
# Component schemas
# ---------------------------------------------------------------------------


class TestComponents:
    def test_petstore(self, petstore_spec: dict[str, Any]) -> None:
        renderer = SchemaRenderer(petstore_spec)
        renderer.render_components()
        defs = _by_name(renderer)

        assert list(defs) == ["Pet", "NewPet", "Pets", "Error"]
        pet = defs["Pet"]
        assert isinstance(pet, TypedDictDef)
        assert pet.description == "A pet in the store."
        assert not pet.functional
        assert _fields(pet) == {
            "id": ("int", True),
            "name": ("str", True),
            "tag": ("Optional[str]", False),
            "status": ('Literal["available", "pending", "sold"]', False),
        }
        assert pet.fields[2].annotation == "NotRequired[Optional[str]]"

        pets = defs["Pets"]
        assert isinstance(pets, AliasDef)
        assert pets.type_expr == 'list["Pet"]'

    def test_swagger2_definitions(self, swagger2_spec: dict[str, Any]) -> None:
        renderer = SchemaRenderer(swagger2_spec)
        renderer.render_components()
        assert [d.name for d in renderer.definitions] == ["User"]

    def test_awkward_names(self, edge_spec: dict[str, Any]) -> None:
        renderer = SchemaRenderer(edge_spec)
        renderer.render_components()
        defs = _by_name(renderer)

        assert renderer.schema_names == {"2fa-setup": "_2faSetup", "Status": "Status"}
        assert isinstance(defs["_2faSetup"], TypedDictDef)
        assert defs["Status"].type_expr == 'Literal["on", "off"]'

    def test_colliding_names_are_numbered(self) -> None:
        spec = {
            "components": {
                "schemas": {
                    "user-profile": {"type": "string"},
                    "UserProfile": {"type": "integer"},
                }
            }
        }
        renderer = SchemaRenderer(spec)
        assert renderer.schema_names == {"user-profile": "UserProfile", "UserProfile": "UserProfile2"}

    def test_file_content_name_reserved(self) -> None:
        renderer = SchemaRenderer({"components": {"schemas": {"FileContent": {"type": "string"}}}})
        assert renderer.schema_names["FileContent"] == "FileContent2"

    def test_operation_type_names_win_over_components(self) -> None:
        spec = {
            "paths": {
                "/pets": {
                    "get": {
                        "operationId": "listPets",
                        "parameters": [{"name": "limit", "in": "query", "schema": {"type": "integer"}}],
                        "responses": {"200": {"description": "ok"}},
                    }
                }
            },
            "components": {
                "schemas": {
                    "ListPetsQueryParams": {"type": "object", "properties": {"cursor": {"type": "string"}}}
                }
            },
        }
        renderer = SchemaRenderer(spec)
        renderer.render_components()
        types = renderer.operation_types(extract_operations(spec)[0])

        assert renderer.schema_names == {"ListPetsQueryParams": "ListPetsQueryParams2"}
        assert _fields(_by_name(renderer)["ListPetsQueryParams2"]) == {"cursor": ("str", False)}
        assert types.query_params_name == "ListPetsQueryParams"
        assert _fields(types.query_params) == {"limit": ("int", False)}

    def test_functional_when_keys_not_identifiers(self) -> None:
        td = TypedDictDef("Headers", [])
        assert td.functional
        renderer = SchemaRenderer({})
        renderer.type_expr({"properties": {"content-type": {"type": "string"}}}, "Headers")
        assert renderer.definitions[0].functional


# ---------------------------------------------------------------------------
# Per-operation types
# ---------------------------------------------------------------------------


class TestOperationTypes:
    @pytest.fixture()
    def petstore(self, petstore_spec: dict[str, Any]):
        renderer = SchemaRenderer(petstore_spec)
        renderer.render_components()
        ops = operations_by_id(extract_operations(petstore_spec))
        return renderer, ops

    def test_list_pets(self, petstore) -> None:
        renderer, ops = petstore
        types = renderer.operation_types(ops["listPets"])

        assert types.prefix == "ListPets"
        assert types.request_body == "Never"
        assert types.response_data == '"Pets"'
        assert types.status_codes == ["200"]
        assert types.query_params is not None
        assert types.query_params_name == "ListPetsQueryParams"
        assert _fields(types.query_params) == {
            "limit": ("int", False),
            "status": ('Literal["available", "sold"]', False),
        }

    def test_create_pet(self, petstore) -> None:
        renderer, ops = petstore
        types = renderer.operation_types(ops["createPet"])

        assert types.request_body == '"NewPet"'
        assert types.response_data == '"Pet"'
        assert _fields(types.responses) == {"201": ('"Pet"', True), "422": ('"Error"', True)}
        assert types.responses.total is False
        assert types.responses.functional
        assert types.query_params_name == "Never"

    def test_no_content_response(self, petstore) -> None:
        renderer, ops = petstore
        types = renderer.operation_types(ops["deletePet"])

        assert types.response_data == "Any"
        assert _fields(types.responses) == {"204": ("None", True)}

    def test_multipart_body(self, petstore) -> None:
        renderer, ops = petstore
        types = renderer.operation_types(ops["uploadPetImage"])

        assert types.request_body == "UploadPetImageRequestBody"
        assert types.request_body_def is not None
        assert _fields(types.request_body_def) == {
            "image": (FILE_CONTENT, True),
            "caption": ("str", False),
        }
        assert types.response_data == '"UploadPetImageResponse"'
        assert "UploadPetImageResponse" in _by_name(renderer)

    def test_camel_case_file_fields(self) -> None:
        spec = {
            "paths": {
                "/profile/upload": {
                    "post": {
                        "operationId": "uploadProfile",
                        "requestBody": {
                            "content": {
                                "multipart/form-data": {
                                    "schema": {
                                        "type": "object",
                                        "properties": {
                                            "profileImage": {"type": "string"},
                                            "galleryPhotos": {"type": "array", "items": {"type": "string"}},
                                            "title": {"type": "string"},
                                            "imageCount": {"type": "integer"},
                                        },
                                    }
                                }
                            }
                        },
                        "responses": {"204": {"description": "done"}},
                    }
                }
            }
        }
        renderer = SchemaRenderer(spec)
        op = extract_operations(spec)[0]
        types = renderer.operation_types(op)

        assert _fields(types.request_body_def) == {
            "profileImage": (FILE_CONTENT, False),
            "galleryPhotos": (f"list[{FILE_CONTENT}]", False),
            "title": ("str", False),
            "imageCount": ("int", False),
        }

    @pytest.mark.parametrize(
        ("request_body", "expected"),
        [
            ({}, "Any"),
            ({"content": {"application/octet-stream": {"schema": {"type": "string"}}}}, "Any"),
            (None, "Never"),
        ],
    )
    def test_untyped_request_bodies(self, request_body: Any, expected: str) -> None:
        spec = {"paths": {"/a": {"post": {"operationId": "send", "requestBody": request_body}}}}
        types = SchemaRenderer(spec).operation_types(extract_operations(spec)[0])
        assert types.request_body == expected

    def test_urlencoded_body(self) -> None:
        schema = {
            "type": "object",
            "required": ["username"],
            "properties": {"username": {"type": "string"}, "profileImage": {"type": "string"}},
        }
        spec = {
            "paths": {
                "/login": {
                    "post": {
                        "operationId": "login",
                        "requestBody": {"content": {"application/x-www-form-urlencoded": {"schema": schema}}},
                    }
                }
            }
        }
        types = SchemaRenderer(spec).operation_types(extract_operations(spec)[0])

        assert types.request_body == "LoginRequestBody"
        # only multipart bodies carry files
        assert _fields(types.request_body_def) == {
            "username": ("str", True),
            "profileImage": ("str", False),
        }

    def test_swagger2_operations(self, swagger2_spec: dict[str, Any]) -> None:
        renderer = SchemaRenderer(swagger2_spec)
        ops = operations_by_id(extract_operations(swagger2_spec))

        list_users = renderer.operation_types(ops["listUsers"])
        assert list_users.response_data == 'list["User"]'
        assert _fields(list_users.query_params) == {"page": ("int", False)}

        create_user = renderer.operation_types(ops["createUser"])
        assert create_user.request_body == '"User"'
        assert create_user.response_data == '"User"'

        upload = renderer.operation_types(ops["uploadAvatar"])
        assert _fields(upload.request_body_def) == {
            "file": (FILE_CONTENT, True),
            "note": ("str", False),
        }
        assert _fields(upload.responses) == {"200": ("None", True)}

    def test_nullable_inline_response(self, edge_spec: dict[str, Any]) -> None:
        renderer = SchemaRenderer(edge_spec)
        op = extract_operations(edge_spec)[0]
        types = renderer.operation_types(op)

        assert types.response_data == 'Optional["GetItemResponse"]'
        assert _fields(types.query_params) == {"verbose": ("bool", False)}

    def test_empty_responses(self, edge_spec: dict[str, Any]) -> None:
        renderer = SchemaRenderer(edge_spec)
        op = operations_by_id(extract_operations(edge_spec))["class"]
        types = renderer.operation_types(op)

        assert types.request_body == '"ClassBody"'
        assert types.responses.fields == []
        assert types.status_codes == []
        assert _by_name(renderer)["ClassBody"].functional


class TestIsFileField:
    @pytest.mark.parametrize("name", ["image", "profileImage", "profile_image", "avatarFile", "attachments", "upload_id", "video"])
    def test_file_names(self, name: str) -> None:
        assert is_file_field(name)

    @pytest.mark.parametrize("name", ["caption", "IMAGE", "FILE", "title", "Avatar"])
    def test_other_names(self, name: str) -> None:
        assert not is_file_field(name)
