"""Tests for clientforge.parser.resolver and clientforge.parser.probe."""

from __future__ import annotations

import pytest

from clientforge.exceptions import SpecParseError
from clientforge.parser.probe import ProbeState, probe
from clientforge.parser.resolver import ref_name, resolve_node, resolve_ref, try_resolve_node


SPEC = {
    "components": {
        "schemas": {
            "Pet": {"type": "object"},
            "a/b": {"type": "string"},
            "Alias": {"$ref": "#/components/schemas/Pet"},
            "LoopA": {"$ref": "#/components/schemas/LoopB"},
            "LoopB": {"$ref": "#/components/schemas/LoopA"},
        },
        "parameters": {"Limit": {"name": "limit", "in": "query"}},
    },
    "tags": [{"name": "first"}, {"name": "second"}],
}


class TestResolveRef:
    def test_simple(self) -> None:
        assert resolve_ref("#/components/schemas/Pet", SPEC) == {"type": "object"}

    def test_escaped_segment(self) -> None:
        assert resolve_ref("#/components/schemas/a~1b", SPEC) == {"type": "string"}

    def test_array_index(self) -> None:
        assert resolve_ref("#/tags/1", SPEC) == {"name": "second"}

    def test_bad_array_index(self) -> None:
        with pytest.raises(SpecParseError, match="invalid array index"):
            resolve_ref("#/tags/9", SPEC)

    def test_missing_key(self) -> None:
        with pytest.raises(SpecParseError, match="key 'Dog' not found"):
            resolve_ref("#/components/schemas/Dog", SPEC)

    def test_external_ref(self) -> None:
        with pytest.raises(SpecParseError, match="External \\$ref not supported"):
            resolve_ref("other.yaml#/Pet", SPEC)

    def test_cannot_navigate_scalar(self) -> None:
        with pytest.raises(SpecParseError, match="cannot navigate into str"):
            resolve_ref("#/components/schemas/Pet/type/deeper", SPEC)


class TestResolveNode:
    def test_non_ref_unchanged(self) -> None:
        node = {"type": "integer"}
        assert resolve_node(node, SPEC) is node

    def test_follows_chain(self) -> None:
        assert resolve_node({"$ref": "#/components/schemas/Alias"}, SPEC) == {"type": "object"}

    def test_cycle_stops(self) -> None:
        result = resolve_node({"$ref": "#/components/schemas/LoopA"}, SPEC)
        assert result == {"$ref": "#/components/schemas/LoopA"}

    def test_try_resolve_dangling(self) -> None:
        assert try_resolve_node({"$ref": "#/components/schemas/Nope"}, SPEC) is None

    def test_try_resolve_parameter(self) -> None:
        node = {"$ref": "#/components/parameters/Limit"}
        assert try_resolve_node(node, SPEC) == {"name": "limit", "in": "query"}


class TestRefName:
    def test_last_segment(self) -> None:
        assert ref_name("#/components/schemas/Pet") == "Pet"

    def test_unescapes(self) -> None:
        assert ref_name("#/definitions/a~1b~0c") == "a/b~c"


class TestProbe:
    def test_present(self) -> None:
        result = probe(SPEC, "components", "schemas", kind=dict)
        assert result.present
        assert "Pet" in result.value

    def test_absent(self) -> None:
        result = probe(SPEC, "paths")
        assert result.state is ProbeState.ABSENT
        assert result.at == "paths"
        assert result.or_default({}) == {}

    def test_none_is_absent(self) -> None:
        assert probe({"paths": None}, "paths").absent

    def test_wrong_kind_is_malformed(self) -> None:
        result = probe(SPEC, "tags", kind=dict)
        assert result.malformed
        assert result.value is None

    def test_intermediate_not_mapping(self) -> None:
        result = probe(SPEC, "tags", "name")
        assert result.malformed
        assert result.at == "name"

    def test_root_not_mapping(self) -> None:
        assert probe("not a spec", "paths").malformed

    def test_tuple_kind(self) -> None:
        assert probe({"v": 1}, "v", kind=(int, float)).present
