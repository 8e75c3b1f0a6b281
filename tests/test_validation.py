"""Tests for jsonrpc_client.validation: pydantic-backed, direction-aware validators."""

from typing import Annotated, Literal, Optional, Union

import pytest
from pydantic import Field, TypeAdapter
from typing_extensions import NotRequired, TypedDict

from jsonrpc_client.errors import Issue, ValidationError
from jsonrpc_client.shapes import Base64
from jsonrpc_client.validation import Direction, KeyMap, Validator

FROM_WIRE = Direction.FROM_WIRE
TO_WIRE = Direction.TO_WIRE

_WIRE_KEYS = {"nodeId": "node_id", "parentId": "parent_id", "yValue": "y_value", "blockId": "block_id"}
KEYS = KeyMap(_WIRE_KEYS, {ident: wire for wire, ident in _WIRE_KEYS.items()})


class Node(TypedDict):
    node_id: Annotated[int, Field(alias="nodeId")]
    children: NotRequired[list["Node"]]
    parent_id: NotRequired[Annotated[Optional[int], Field(alias="parentId")]]


class A(TypedDict):
    kind: Literal["A"]
    x: int


class B(TypedDict):
    kind: Literal["B"]
    y_value: Annotated[str, Field(alias="yValue")]


class Lookup(TypedDict):
    block_id: Annotated[int, Field(alias="blockId")]


Shape = Annotated[Union[A, B], Field(discriminator="kind")]
BlockId = Annotated[Union[int, str], Field(union_mode="left_to_right")]
Target = Annotated[Union[Lookup, int], Field(union_mode="left_to_right")]


def _validator(name, tp):
    return Validator(name, TypeAdapter(tp), KEYS)


class TestScalars:
    def test_integer_rejects_bool(self):
        integer = _validator("Height", int)
        assert integer.accepts(3)
        assert not integer.accepts(True)

    def test_number_accepts_int(self):
        number = _validator("Amount", float)
        assert number.accepts(3)
        assert number.accepts(2.5)

    def test_no_string_coercion(self):
        assert not _validator("Height", int).accepts("3")

    def test_bytes_is_base64_text(self):
        data = _validator("Data", Base64)
        assert data.accepts("eyJhIjoxfQ==")
        assert not data.accepts("not base64!")
        assert not data.accepts(b"raw")

    def test_literal(self):
        finality = _validator("Finality", Literal[1, "final"])
        assert finality.accepts(1)
        assert finality.accepts("final")
        assert not finality.accepts("1")
        assert not finality.accepts(2)

    def test_error_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            _validator("Name", str).validate(5)
        err = exc_info.value
        assert (err.path, err.expected, err.actual) == ("/", "a valid string", "integer 5")

    def test_pydantic_error_is_chained(self):
        with pytest.raises(ValidationError) as exc_info:
            _validator("Name", str).validate(5)
        assert type(exc_info.value.__cause__).__name__ == "ValidationError"
        assert exc_info.value.__cause__ is not exc_info.value


class TestNullable:
    def test_or_none(self):
        node = _validator("Node", Node)
        assert not node.accepts(None)
        assert node.or_none().accepts(None)
        assert node.or_none().validate(None) is None

    def test_or_none_still_checks(self):
        assert not _validator("Node", Node).or_none().accepts({"nodeId": "x"})


class TestObject:
    """Test field renaming and checking in both directions."""

    def test_from_wire_renames(self):
        node = _validator("Node", Node)
        assert node.validate({"nodeId": 1, "parentId": None}) == {"node_id": 1, "parent_id": None}

    def test_to_wire_renames(self):
        node = _validator("Node", Node)
        assert node.validate({"node_id": 1}, TO_WIRE) == {"nodeId": 1}

    def test_direction_matters(self):
        node = _validator("Node", Node)
        assert not node.accepts({"node_id": 1}, FROM_WIRE)
        assert not node.accepts({"nodeId": 1}, TO_WIRE)

    def test_missing_required(self):
        with pytest.raises(ValidationError) as exc_info:
            _validator("Node", Node).validate({})
        assert exc_info.value.path == "/nodeId"
        assert exc_info.value.expected == "a value"
        assert exc_info.value.actual == "missing"

    def test_missing_required_to_wire_uses_idiomatic_path(self):
        with pytest.raises(ValidationError) as exc_info:
            _validator("Node", Node).validate({}, TO_WIRE)
        assert exc_info.value.path == "/node_id"

    def test_unknown_keys_dropped(self):
        assert _validator("Node", Node).validate({"nodeId": 1, "extra": "x"}) == {"node_id": 1}

    def test_nested_path(self):
        payload = {"nodeId": 1, "children": [{"nodeId": 2}, {"nodeId": "three"}]}
        with pytest.raises(ValidationError) as exc_info:
            _validator("Node", Node).validate(payload)
        assert exc_info.value.path == "/children/1/nodeId"
        assert exc_info.value.expected == "a valid integer"
        assert exc_info.value.actual == "string 'three'"

    def test_recursive_type(self):
        payload = {"nodeId": 1, "children": [{"nodeId": 2, "children": [{"nodeId": 3}]}]}
        result = _validator("Node", Node).validate(payload)
        assert result["children"][0]["children"][0] == {"node_id": 3}

    def test_collect_all(self):
        with pytest.raises(ValidationError) as exc_info:
            _validator("Node", Node).validate({"nodeId": "x", "parentId": "y"}, collect_all=True)
        assert [issue.path for issue in exc_info.value.issues] == ["/nodeId", "/parentId"]

    def test_first_failure_by_default(self):
        with pytest.raises(ValidationError) as exc_info:
            _validator("Node", Node).validate({"nodeId": "x", "parentId": "y"})
        assert len(exc_info.value.issues) == 1
        assert exc_info.value.path == "/nodeId"

    def test_check_returns_outcome(self):
        outcome = _validator("Node", Node).check({"nodeId": None})
        assert not outcome.ok
        assert outcome.value is None
        assert outcome.error.path == "/nodeId"


class TestTranslate:
    """Key renaming without checking."""

    def test_translate_does_not_check(self):
        result = _validator("Node", Node).translate({"nodeId": "not an int", "parentId": 3})
        assert result == {"node_id": "not an int", "parent_id": 3}

    def test_translate_nested(self):
        result = _validator("Node", Node).translate({"node_id": 1, "children": [{"parent_id": 2}]}, TO_WIRE)
        assert result == {"nodeId": 1, "children": [{"parentId": 2}]}

    def test_translate_untagged_union_with_invalid_member(self):
        target = _validator("Target", Target)
        assert not target.accepts({"block_id": "1"}, TO_WIRE)
        assert target.translate({"block_id": "1"}, TO_WIRE) == {"blockId": "1"}
        assert target.translate({"blockId": "1"}, FROM_WIRE) == {"block_id": "1"}

    def test_translate_scalars_untouched(self):
        assert _validator("BlockId", BlockId).translate("hash") == "hash"

    def test_key_map_input_key(self):
        assert KEYS.input_key("node_id", FROM_WIRE) == "nodeId"
        assert KEYS.input_key("nodeId", TO_WIRE) == "node_id"
        assert KEYS.input_key("kind", TO_WIRE) == "kind"


class TestUnions:
    def test_tagged_selects_variant(self):
        shape = _validator("Shape", Shape)
        assert shape.validate({"kind": "B", "yValue": "s"}) == {"kind": "B", "y_value": "s"}

    def test_tagged_to_wire(self):
        shape = _validator("Shape", Shape)
        assert shape.validate({"kind": "B", "y_value": "s"}, TO_WIRE) == {"kind": "B", "yValue": "s"}

    def test_tagged_checks_only_selected_variant(self):
        with pytest.raises(ValidationError) as exc_info:
            _validator("Shape", Shape).validate({"kind": "A", "yValue": "s"})
        assert exc_info.value.path == "/x"
        assert len(exc_info.value.issues) == 1

    def test_unknown_tag(self):
        with pytest.raises(ValidationError) as exc_info:
            _validator("Shape", Shape).validate({"kind": "C"})
        assert exc_info.value.path == "/kind"
        assert exc_info.value.expected == "one of 'A', 'B'"
        assert exc_info.value.actual == "string 'C'"

    def test_missing_tag(self):
        with pytest.raises(ValidationError) as exc_info:
            _validator("Shape", Shape).validate({"x": 1})
        assert exc_info.value.path == "/kind"
        assert exc_info.value.actual == "missing"

    def test_untagged_first_match(self):
        block_id = _validator("BlockId", BlockId)
        assert block_id.validate(5) == 5
        assert block_id.validate("hash") == "hash"

    def test_untagged_reports_last_failure(self):
        with pytest.raises(ValidationError) as exc_info:
            _validator("BlockId", BlockId).validate(1.5)
        assert exc_info.value.path == "/"
        assert exc_info.value.expected == "a valid string"
        assert exc_info.value.actual == "number 1.5"

    def test_untagged_collect_all_reports_every_member(self):
        with pytest.raises(ValidationError) as exc_info:
            _validator("BlockId", BlockId).validate(1.5, collect_all=True)
        assert [issue.expected for issue in exc_info.value.issues] == ["a valid integer", "a valid string"]


class TestValidationError:
    def test_message(self):
        err = ValidationError([Issue("/a", "integer", "string 'x'")])
        assert str(err) == "at /a: expected integer, got string 'x'"

    def test_to_dict(self):
        err = ValidationError([Issue("/a", "integer", "null")])
        assert err.to_dict() == {"issues": [{"path": "/a", "expected": "integer", "actual": "null"}]}

    def test_needs_an_issue(self):
        with pytest.raises(ValueError):
            ValidationError([])
