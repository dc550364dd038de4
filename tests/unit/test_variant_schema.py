"""Tests for VariantSchema construction, promotion and queries."""

import itertools

import pytest

from variant_shredding.core.exceptions import (
    InvalidSchemaError,
    MetadataEncodingError,
    MetadataNotComputedError,
)
from variant_shredding.core.metadata import encode_metadata
from variant_shredding.core.scalar_types import (
    BooleanType,
    DecimalType,
    IntegralType,
    StringType,
)
from variant_shredding.core.schema import ObjectField, ShreddingState, VariantSchema


def _leaf(scalar=None):
    """Nested node with value=0, typed_value=1."""
    return VariantSchema(1, 0, None, 2, scalar_type=scalar or StringType())


def _slot_layout(*present):
    """Assign contiguous indices to the present slots, in the given order."""
    return {name: index for index, name in enumerate(present)}


class TestConstruction:
    """Tests for the construction contract."""

    def test_unshredded_root(self):
        """Test a root node storing the whole value in the fallback encoding."""
        schema = VariantSchema(None, 1, 0, 2)
        assert schema.typed_slot_index is None
        assert schema.value_slot_index == 1
        assert schema.top_level_metadata_index == 0
        assert schema.field_count == 2
        assert schema.scalar_type is None
        assert schema.object_fields is None
        assert schema.object_field_index is None
        assert schema.array_child is None
        assert schema.metadata_bytes is None

    def test_scalar_node(self):
        """Test a fully shredded scalar node."""
        schema = VariantSchema(0, None, None, 1, scalar_type=BooleanType())
        assert schema.scalar_type == BooleanType()
        assert schema.object_fields is None
        assert schema.array_child is None
        assert schema.state == ShreddingState.TYPED

    def test_scalar_and_object_fields_rejected(self):
        """Test that a node cannot be both scalar and object typed."""
        with pytest.raises(InvalidSchemaError) as exc_info:
            VariantSchema(
                0,
                None,
                None,
                1,
                scalar_type=StringType(),
                object_fields=[ObjectField("x", _leaf())],
            )
        assert "only one" in str(exc_info.value)

    def test_object_fields_and_array_child_rejected(self):
        """Test that a node cannot be both object and array typed."""
        with pytest.raises(InvalidSchemaError):
            VariantSchema(
                0,
                None,
                None,
                1,
                object_fields=[ObjectField("x", _leaf())],
                array_child=_leaf(),
            )

    def test_all_payloads_without_typed_slot_rejected(self):
        """Test that several payloads without a typed slot are rejected."""
        with pytest.raises(InvalidSchemaError):
            VariantSchema(
                None, 0, None, 1, scalar_type=StringType(), array_child=_leaf()
            )

    @pytest.mark.parametrize("payload", ["scalar_type", "object_fields", "array_child"])
    def test_payload_requires_typed_slot(self, payload):
        """Test that a typed kind cannot be given without a typed slot."""
        values = {
            "scalar_type": StringType(),
            "object_fields": [ObjectField("x", _leaf())],
            "array_child": _leaf(),
        }
        with pytest.raises(InvalidSchemaError) as exc_info:
            VariantSchema(None, 0, None, 1, **{payload: values[payload]})
        assert "requires a typed_value slot" in str(exc_info.value)

    def test_field_count_mismatch_rejected(self):
        """Test that field_count must equal the number of present slots."""
        with pytest.raises(InvalidSchemaError) as exc_info:
            VariantSchema(None, 1, 0, 3)
        assert exc_info.value.context == {"field_count": 3, "present_slots": 2}

    def test_no_slots_rejected(self):
        """Test that a node needs at least one slot."""
        with pytest.raises(InvalidSchemaError):
            VariantSchema(None, None, None, 0)

    def test_non_contiguous_indices_rejected(self):
        """Test that present slot indices must be 0..field_count-1."""
        with pytest.raises(InvalidSchemaError) as exc_info:
            VariantSchema(None, 2, 0, 2)
        assert "contiguous" in str(exc_info.value)

    def test_repeated_index_rejected(self):
        """Test that two slots cannot share a position."""
        with pytest.raises(InvalidSchemaError):
            VariantSchema(0, 0, None, 2, scalar_type=StringType())

    def test_non_integer_index_rejected(self):
        """Test that slot indices must be integers."""
        with pytest.raises(InvalidSchemaError):
            VariantSchema(None, "0", None, 1)
        with pytest.raises(InvalidSchemaError):
            VariantSchema(None, True, None, 1)

    def test_duplicate_field_name_rejected(self):
        """Test that duplicate object field names surface as an error."""
        fields = [ObjectField("x", _leaf()), ObjectField("x", _leaf())]
        with pytest.raises(InvalidSchemaError) as exc_info:
            VariantSchema(0, None, None, 1, object_fields=fields)
        assert exc_info.value.context["field_name"] == "x"

    def test_invalid_scalar_type_rejected(self):
        """Test that scalar_type must be one of the scalar types."""
        with pytest.raises(InvalidSchemaError):
            VariantSchema(0, None, None, 1, scalar_type="string")

    def test_invalid_object_field_entry_rejected(self):
        """Test that object_fields entries must be ObjectField instances."""
        with pytest.raises(InvalidSchemaError):
            VariantSchema(0, None, None, 1, object_fields=[("x", _leaf())])

    def test_invalid_array_child_rejected(self):
        """Test that array_child must be a schema node."""
        with pytest.raises(InvalidSchemaError):
            VariantSchema(0, None, None, 1, array_child=StringType())

    def test_nested_metadata_rejected(self):
        """Test that metadata exists only at the root."""
        child = VariantSchema(None, 1, 0, 2)
        with pytest.raises(InvalidSchemaError) as exc_info:
            VariantSchema(0, None, None, 1, array_child=child)
        assert "metadata" in str(exc_info.value)

        child = VariantSchema(None, 1, 0, 2)
        with pytest.raises(InvalidSchemaError):
            VariantSchema(0, None, None, 1, object_fields=[ObjectField("x", child)])

    def test_child_cannot_be_shared(self):
        """Test that a node can belong to a single parent only."""
        child = _leaf()
        VariantSchema(0, None, None, 1, array_child=child)
        with pytest.raises(InvalidSchemaError) as exc_info:
            VariantSchema(0, None, None, 1, array_child=child)
        assert "another parent" in str(exc_info.value)

    def test_child_cannot_appear_twice(self):
        """Test that one node cannot back two fields of the same object."""
        child = _leaf()
        with pytest.raises(InvalidSchemaError):
            VariantSchema(
                0,
                None,
                None,
                1,
                object_fields=[ObjectField("x", child), ObjectField("y", child)],
            )

    def test_failed_construction_does_not_claim_children(self):
        """Test that a rejected parent leaves its children reusable."""
        child = _leaf()
        with pytest.raises(InvalidSchemaError):
            VariantSchema(0, None, None, 2, array_child=child)
        parent = VariantSchema(0, None, None, 1, array_child=child)
        assert parent.array_child is child

    def test_object_fields_are_immutable(self, object_schema):
        """Test that the field list and index cannot be modified."""
        assert isinstance(object_schema.object_fields, tuple)
        with pytest.raises(TypeError):
            object_schema.object_field_index["c"] = 2
        with pytest.raises(AttributeError):
            object_schema.typed_slot_index = 0


class TestInvariants:
    """Structural invariants over a range of valid nodes."""

    def _valid_nodes(self):
        nodes = [
            VariantSchema(None, 1, 0, 2),
            VariantSchema(None, 0, None, 1),
            VariantSchema(0, None, None, 1, scalar_type=StringType()),
            VariantSchema(1, 0, None, 2, scalar_type=IntegralType(size=32)),
            VariantSchema(0, 2, 1, 3, scalar_type=DecimalType(precision=10, scale=2)),
            VariantSchema(0, None, None, 1, array_child=_leaf()),
            VariantSchema(
                1, None, 0, 2, object_fields=[ObjectField("k", _leaf())]
            ),
        ]
        return nodes

    def test_field_count_matches_present_slots(self):
        for node in self._valid_nodes():
            present = [
                index
                for index in (
                    node.typed_slot_index,
                    node.value_slot_index,
                    node.top_level_metadata_index,
                )
                if index is not None
            ]
            assert node.field_count == len(present)
            assert 1 <= node.field_count <= 3

    def test_at_most_one_payload_and_implies_typed_slot(self):
        for node in self._valid_nodes():
            payloads = [
                p
                for p in (node.scalar_type, node.object_fields, node.array_child)
                if p is not None
            ]
            assert len(payloads) <= 1
            if payloads:
                assert node.typed_slot_index is not None

    def test_metadata_only_at_root(self, object_schema):
        assert object_schema.is_root
        for field in object_schema.object_fields:
            assert field.schema.top_level_metadata_index is None
            assert not field.schema.is_root
        array_node = object_schema.object_fields[1].schema
        assert array_node.array_child.top_level_metadata_index is None


class TestIsUnshredded:
    """Tests for is_unshredded."""

    @pytest.mark.parametrize(
        "root,has_value,has_typed", list(itertools.product([True, False], repeat=3))
    )
    def test_combinations(self, root, has_value, has_typed):
        """Test every combination of root, value slot and typed slot."""
        present = [
            name
            for name, flag in (
                ("metadata", root),
                ("value", has_value),
                ("typed", has_typed),
            )
            if flag
        ]
        if not present:
            with pytest.raises(InvalidSchemaError):
                VariantSchema(None, None, None, 0)
            return

        layout = _slot_layout(*present)
        schema = VariantSchema(
            layout.get("typed"),
            layout.get("value"),
            layout.get("metadata"),
            len(present),
            scalar_type=StringType() if has_typed else None,
        )
        assert schema.is_unshredded() is (root and has_value and not has_typed)

    def test_nested_node_is_never_unshredded(self, object_schema):
        """Test that non-root nodes report False regardless of their slots."""
        generic_child = VariantSchema(None, 0, None, 1)
        parent = VariantSchema(
            0, None, None, 1, object_fields=[ObjectField("x", generic_child)]
        )
        assert not generic_child.is_unshredded()
        assert not parent.is_unshredded()
        for field in object_schema.object_fields:
            assert not field.schema.is_unshredded()

    def test_root_becomes_shredded_after_promotion(self):
        schema = VariantSchema(None, 1, 0, 2)
        assert schema.is_unshredded()
        schema.promote_to_typed(1)
        assert not schema.is_unshredded()


class TestFieldPosition:
    """Tests for field_position lookups."""

    def test_empty_object(self):
        schema = VariantSchema(0, None, None, 1, object_fields=[])
        assert schema.object_fields == ()
        assert dict(schema.object_field_index) == {}
        assert schema.field_position("a") is None

    def test_single_field(self):
        schema = VariantSchema(0, None, None, 1, object_fields=[ObjectField("a", _leaf())])
        assert schema.field_position("a") == 0
        assert schema.field_position("b") is None

    def test_many_fields(self):
        names = [f"f{i}" for i in range(50)]
        schema = VariantSchema(
            0,
            None,
            None,
            1,
            object_fields=[ObjectField(name, _leaf()) for name in names],
        )
        for position, name in enumerate(names):
            assert schema.field_position(name) == position
            assert schema.object_fields[schema.field_position(name)].field_name == name
        assert schema.field_position("f50") is None
        assert schema.field_position("") is None

    def test_non_object_node(self):
        assert _leaf().field_position("a") is None
        assert VariantSchema(None, 1, 0, 2).field_position("a") is None


class TestPromoteToTyped:
    """Tests for the generic-only to typed transition."""

    def test_drops_value_slot(self):
        """Test promoting a node whose value slot sits at index 2."""
        schema = VariantSchema(1, 2, 0, 3, scalar_type=StringType())
        schema.promote_to_typed(1)
        assert schema.typed_slot_index == 1
        assert schema.top_level_metadata_index == 0
        assert schema.value_slot_index is None
        assert schema.field_count == 2
        assert schema.state == ShreddingState.TYPED

    def test_generic_only_to_typed(self):
        schema = VariantSchema(None, 1, 0, 2)
        assert schema.state == ShreddingState.GENERIC_ONLY
        schema.promote_to_typed(1)
        assert schema.state == ShreddingState.TYPED
        assert schema.typed_slot_index == 1
        assert schema.value_slot_index is None

    def test_metadata_for_node_without_object_fields(self):
        """Test that an empty field-name set still yields metadata."""
        schema = VariantSchema(None, 1, 0, 2)
        schema.promote_to_typed(1)
        assert schema.metadata() == encode_metadata([])
        assert schema.metadata() == b"\x11\x00\x00"
        assert schema.metadata_bytes == schema.metadata()

    def test_metadata_for_object_node(self, object_schema):
        object_schema.promote_to_typed(1)
        assert object_schema.metadata() == encode_metadata(["a", "b"])

    def test_metadata_is_independent_of_field_order(self):
        first = VariantSchema(
            0,
            1,
            None,
            2,
            object_fields=[ObjectField("b", _leaf()), ObjectField("a", _leaf())],
        )
        second = VariantSchema(
            0,
            1,
            None,
            2,
            object_fields=[ObjectField("a", _leaf()), ObjectField("b", _leaf())],
        )
        first.promote_to_typed(0)
        second.promote_to_typed(0)
        assert first.metadata() == second.metadata()

    def test_repeated_promotion_is_deterministic(self, object_schema):
        object_schema.promote_to_typed(1)
        first = object_schema.metadata()
        object_schema.promote_to_typed(1)
        assert object_schema.metadata() == first

    def test_index_colliding_with_metadata_rejected(self):
        schema = VariantSchema(None, 1, 0, 2)
        with pytest.raises(InvalidSchemaError):
            schema.promote_to_typed(0)
        assert schema.typed_slot_index is None
        assert schema.value_slot_index == 1
        assert schema.metadata_bytes is None

    def test_non_contiguous_index_rejected(self):
        schema = VariantSchema(None, 1, 0, 2)
        with pytest.raises(InvalidSchemaError) as exc_info:
            schema.promote_to_typed(2)
        assert "contiguous" in str(exc_info.value)
        assert schema.is_unshredded()

    @pytest.mark.parametrize("index", ["1", True, -1, 1.0])
    def test_non_integer_or_negative_index_rejected(self, index):
        schema = VariantSchema(None, 1, 0, 2)
        with pytest.raises(InvalidSchemaError):
            schema.promote_to_typed(index)
        assert schema.typed_slot_index is None

    def test_invalid_index_skips_encoding(self, recording_encoder):
        schema = VariantSchema(None, 0, None, 1, metadata_encoder=recording_encoder)
        with pytest.raises(InvalidSchemaError):
            schema.promote_to_typed(1)
        assert recording_encoder.calls == []

    def test_metadata_before_promotion(self):
        schema = VariantSchema(None, 1, 0, 2)
        with pytest.raises(MetadataNotComputedError):
            schema.metadata()

    def test_uses_injected_encoder(self, recording_encoder):
        schema = VariantSchema(
            0,
            None,
            None,
            1,
            object_fields=[ObjectField("x", _leaf()), ObjectField("y", _leaf())],
            metadata_encoder=recording_encoder,
        )
        schema.promote_to_typed(0)
        assert recording_encoder.calls == [["x", "y"]]
        assert schema.metadata() == recording_encoder.result

    def test_encoder_failure_is_wrapped(self):
        class FailingEncoder:
            def encode(self, field_names):
                raise ValueError("boom")

        schema = VariantSchema(None, 0, None, 1, metadata_encoder=FailingEncoder())
        with pytest.raises(MetadataEncodingError) as exc_info:
            schema.promote_to_typed(0)
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_failed_encoding_leaves_node_unchanged(self):
        schema = VariantSchema(
            0,
            1,
            None,
            2,
            object_fields=[ObjectField("\ud800", _leaf())],
        )
        with pytest.raises(MetadataEncodingError):
            schema.promote_to_typed(0)
        assert schema.metadata_bytes is None
        assert schema.typed_slot_index == 0
        assert schema.value_slot_index == 1


class TestTwoLevelTree:
    """Root object {a: int64, b: [string]}."""

    def test_root_layout(self, object_schema):
        assert object_schema.field_count == 3
        assert object_schema.top_level_metadata_index == 0
        assert object_schema.value_slot_index == 1
        assert object_schema.typed_slot_index == 2
        assert object_schema.field_position("a") == 0
        assert object_schema.field_position("b") == 1

    def test_children(self, object_schema):
        a = object_schema.object_fields[object_schema.field_position("a")].schema
        assert a.scalar_type == IntegralType(size=64)
        assert a.scalar_type.width == 64

        b = object_schema.object_fields[object_schema.field_position("b")].schema
        assert b.scalar_type is None
        assert b.object_fields is None
        element = b.array_child
        assert element.scalar_type == StringType()
        assert element.object_fields is None
        assert element.array_child is None

    def test_to_dict(self, object_schema):
        data = object_schema.to_dict()
        assert data["field_count"] == 3
        assert data["scalar_type"] is None
        assert [f["field_name"] for f in data["object_fields"]] == ["a", "b"]
        a = data["object_fields"][0]["schema"]
        assert a["scalar_type"] == {"kind": "integral", "size": 64}
        element = data["object_fields"][1]["schema"]["array_child"]
        assert element["scalar_type"] == {"kind": "string"}

    def test_repr(self, object_schema):
        text = repr(object_schema)
        assert text.startswith("VariantSchema(typed_slot_index=2")
        assert "field_name='a'" in text
