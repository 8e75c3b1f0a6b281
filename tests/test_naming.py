"""Tests for the naming module."""

import pytest

from jsonrpc_codegen.errors import FieldNameCollision
from jsonrpc_codegen.model import OBJECT, SchemaModel, SchemaNode, Field, primitive
from jsonrpc_codegen.naming import (
    build_name_mapping,
    build_name_table,
    to_identifier,
    to_type_name,
    unique_identifiers,
)


class TestToIdentifier:
    """Test wire name -> snake_case identifier conversion."""

    def test_snake_case_unchanged(self):
        assert to_identifier("block_hash") == "block_hash"

    def test_camel_case(self):
        assert to_identifier("latestBlockHeight") == "latest_block_height"

    def test_upper_prefix(self):
        assert to_identifier("EXPERIMENTAL_validators_ordered") == "experimental_validators_ordered"

    def test_acronym(self):
        assert to_identifier("HTTPStatus") == "http_status"

    def test_separators(self):
        assert to_identifier("near-final") == "near_final"
        assert to_identifier("a.b c") == "a_b_c"

    def test_digits(self):
        assert to_identifier("V1") == "v1"
        assert to_identifier("shard2Id") == "shard2_id"

    def test_leading_digit(self):
        assert to_identifier("0x") == "_0x"

    def test_keyword(self):
        assert to_identifier("from") == "from_"
        assert to_identifier("None") == "none"

    def test_empty(self):
        assert to_identifier("") == "_"
        assert to_identifier("--") == "_"

    def test_always_identifier(self):
        for wire in ("block_hash", "class", "3d", "HANDLER_ERROR", "x-y-z", "ümlaut"):
            assert to_identifier(wire).isidentifier(), wire

    def test_pure(self):
        """Same input, same output; normalizing twice changes nothing."""
        for wire in ("latestBlockHeight", "EXPERIMENTAL_tx_status", "near-final"):
            ident = to_identifier(wire)
            assert to_identifier(wire) == ident
            assert to_identifier(ident) == ident


class TestToTypeName:
    def test_pascal_case(self):
        assert to_type_name("HANDLER_ERROR") == "HandlerError"
        assert to_type_name("view_account") == "ViewAccount"
        assert to_type_name("sync_info") == "SyncInfo"

    def test_already_pascal(self):
        assert to_type_name("AccountView") == "AccountView"

    def test_empty(self):
        assert to_type_name("") == "Anonymous"


class TestUniqueIdentifiers:
    def test_mapping(self):
        assert unique_identifiers("T", ["fooBar", "baz"]) == {"fooBar": "foo_bar", "baz": "baz"}

    def test_collision(self):
        with pytest.raises(FieldNameCollision) as exc_info:
            unique_identifiers("Thing", ["foo_bar", "fooBar"])
        err = exc_info.value
        assert err.owner == "Thing"
        assert err.wire_names == ("foo_bar", "fooBar")
        assert err.identifier == "foo_bar"
        assert "both normalize to 'foo_bar'" in str(err)


class TestNameMapping:
    def test_round_trip(self):
        mapping = build_name_mapping("T", ["latestBlockHash", "syncing", "from"])
        for wire in ("latestBlockHash", "syncing", "from"):
            assert mapping.wire(mapping.idiomatic(wire)) == wire
        for ident in ("latest_block_hash", "syncing", "from_"):
            assert mapping.idiomatic(mapping.wire(ident)) == ident

    def test_read_only(self):
        mapping = build_name_mapping("T", ["a"])
        with pytest.raises(TypeError):
            mapping.wire_to_idiomatic["b"] = "b"


class TestBuildNameTable:
    """Test the name table for the sample document."""

    def test_every_object_has_a_mapping(self, near_model):
        table = build_name_table(near_model)
        objects = {name for name, _ in near_model.objects()}
        assert set(table) == objects

    def test_camel_case_fields(self, near_model):
        table = build_name_table(near_model)
        status = table["RpcStatusResponse"]
        assert status.idiomatic("latestProtocolVersion") == "latest_protocol_version"
        assert status.idiomatic("rpcAddr") == "rpc_addr"
        assert table["RpcStatusResponseSyncInfo"].wire("latest_block_height") == "latestBlockHeight"

    def test_bijection(self, near_model):
        for mapping in build_name_table(near_model).mappings.values():
            assert len(set(mapping.wire_to_idiomatic.values())) == len(mapping.wire_to_idiomatic)
            assert dict(mapping.idiomatic_to_wire) == {
                ident: wire for wire, ident in mapping.wire_to_idiomatic.items()
            }

    def test_collision_names_the_owner(self):
        node = SchemaNode(kind=OBJECT, fields=(
            Field("foo_bar", primitive("string")),
            Field("fooBar", primitive("string")),
        ))
        model = SchemaModel(title="t", version="1", schemas={"Thing": node}, operations=())
        with pytest.raises(FieldNameCollision, match="Thing: fields 'foo_bar' and 'fooBar'"):
            build_name_table(model)

    def test_package_keys(self, near_model):
        table = build_name_table(near_model)
        assert table.keys["latest_block_height"] == "latestBlockHeight"
        assert table.keys["chain_id"] == "chain_id"
        renamed = table.renamed_keys()
        assert renamed["rpcAddr"] == "rpc_addr"
        assert "chain_id" not in renamed

    def test_collision_across_objects(self):
        schemas = {
            "Block": SchemaNode(kind=OBJECT, fields=(Field("blockId", primitive("string")),)),
            "Chunk": SchemaNode(kind=OBJECT, fields=(Field("block_id", primitive("string")),)),
        }
        model = SchemaModel(title="t", version="1", schemas=schemas, operations=())
        with pytest.raises(FieldNameCollision, match="Block/Chunk: fields 'blockId' and 'block_id'"):
            build_name_table(model)

    def test_same_wire_name_in_many_objects(self):
        schemas = {
            name: SchemaNode(kind=OBJECT, fields=(Field("blockId", primitive("string")),))
            for name in ("Block", "Chunk")
        }
        model = SchemaModel(title="t", version="1", schemas=schemas, operations=())
        assert build_name_table(model).renamed_keys() == {"blockId": "block_id"}
