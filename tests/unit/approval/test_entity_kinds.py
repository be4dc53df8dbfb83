"""Tests for entity kind definitions and overrides."""

import pytest

from backoffice.common.config import EntityConfig
from backoffice.core.approval.errors import RecordValidationError
from backoffice.core.approval.kinds import (
    DEFAULT_KINDS,
    EntityKind,
    build_kinds,
    get_kind,
    overlay_fields,
    replace_fields,
)
from backoffice.core.approval.states import RecordStatus


class TestDefaultKinds:
    """Test the built-in entity kinds."""

    def test_all_kinds_registered(self):
        """Test the seven approvable entity kinds."""
        assert set(DEFAULT_KINDS) == {
            "customer_classification",
            "stock_type",
            "stock",
            "product_category",
            "product_class",
            "product_deal",
            "product_unit",
        }

    def test_pending_statuses(self):
        """Test which kinds start new and which start for approval."""
        new_record = {k for k, v in DEFAULT_KINDS.items() if v.pending_status == RecordStatus.NEW_RECORD}
        assert new_record == {"customer_classification", "stock_type", "stock"}

    def test_resources_unique(self):
        """Test each kind mounts on its own path."""
        resources = [kind.resource for kind in DEFAULT_KINDS.values()]
        assert len(resources) == len(set(resources))

    def test_stock_has_no_name(self):
        """Test stock records are not looked up by name."""
        assert DEFAULT_KINDS["stock"].name_field is None
        assert DEFAULT_KINDS["stock"].name_of({"lot_no": "L1"}) is None


class TestEntityKind:
    """Test payload handling on a kind."""

    def test_clean_accepts_known_fields(self):
        """Test known fields pass through as a copy."""
        kind = DEFAULT_KINDS["product_deal"]
        payload = {"product_deal_name": "Promo", "min_qty": 10}

        cleaned = kind.clean(payload)

        assert cleaned == payload
        assert cleaned is not payload

    def test_clean_rejects_unknown_fields(self):
        """Test unknown fields are named in the error."""
        with pytest.raises(RecordValidationError, match="Unknown fields for Product deal: colour"):
            DEFAULT_KINDS["product_deal"].clean({"product_deal_name": "Promo", "colour": "red"})

    def test_validation_error_is_value_error(self):
        """Test validation errors can be handled as ValueError."""
        with pytest.raises(ValueError):
            DEFAULT_KINDS["stock_type"].clean({"bogus": 1})

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_require_name(self, value):
        """Test a blank name is refused."""
        payload = {} if value is None else {"stock_type_name": value}
        with pytest.raises(RecordValidationError, match="stock_type_name is required"):
            DEFAULT_KINDS["stock_type"].require_name(payload)

    def test_require_name_without_name_field(self):
        """Test kinds without a name field accept any payload."""
        DEFAULT_KINDS["stock"].require_name({})

    def test_name_of(self):
        """Test the name is read from the name field."""
        assert DEFAULT_KINDS["stock_type"].name_of({"stock_type_name": "Raw"}) == "Raw"
        assert DEFAULT_KINDS["stock_type"].name_of({}) is None

    def test_invalid_pending_status(self):
        """Test a kind cannot start records as active."""
        with pytest.raises(ValueError, match="Invalid pending status"):
            EntityKind(key="x", label="X", resource="xs", fields=("a",),
                       pending_status=RecordStatus.ACTIVE)

    def test_name_field_must_be_a_field(self):
        """Test the name field is validated."""
        with pytest.raises(ValueError, match="not a field"):
            EntityKind(key="x", label="X", resource="xs", fields=("a",), name_field="b")


class TestMergeFunctions:
    """Test staged change merging."""

    def test_overlay(self):
        assert overlay_fields({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}
        assert overlay_fields(None, {"b": 3}) == {"b": 3}

    def test_replace(self):
        assert replace_fields({"a": 1, "b": 2}, {"b": 3}) == {"b": 3}


class TestBuildKinds:
    """Test configuration overrides."""

    def test_no_overrides(self):
        """Test defaults are returned unchanged."""
        assert build_kinds() == DEFAULT_KINDS
        assert build_kinds() is not DEFAULT_KINDS

    def test_override_applied(self):
        """Test label, pending status and merge overrides."""
        kinds = build_kinds({
            "product_class": EntityConfig(pending_status="NEW_RECORD"),
            "stock": EntityConfig(label="Inventory stock", merge="replace"),
        })

        assert kinds["product_class"].pending_status == RecordStatus.NEW_RECORD
        assert kinds["stock"].label == "Inventory stock"
        assert kinds["stock"].merge is replace_fields
        assert DEFAULT_KINDS["stock"].label == "Stock"

    def test_unknown_kind(self):
        """Test overriding an unknown kind fails."""
        with pytest.raises(ValueError, match="Unknown entity kind: widget"):
            build_kinds({"widget": EntityConfig(label="W")})

    def test_unknown_merge(self):
        """Test an unknown merge strategy fails."""
        with pytest.raises(ValueError, match="Unknown merge strategy"):
            build_kinds({"stock": EntityConfig(merge="deep")})

    def test_get_kind(self):
        """Test lookup by key."""
        assert get_kind("stock").resource == "stocks"
        custom = build_kinds({"stock": EntityConfig(label="Inventory")})
        assert get_kind("stock", custom).label == "Inventory"
        with pytest.raises(ValueError):
            get_kind("widget")
