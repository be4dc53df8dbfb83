"""Entity kinds that share the approval workflow.

Each kind only differs by its field set, its unique name field, the status a
permissionless create starts in and how staged fields are merged.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .errors import RecordValidationError
from .states import RecordStatus, PENDING_CREATE_STATES


MergeFunction = Callable[[Mapping[str, Any], Mapping[str, Any]], Dict[str, Any]]


def overlay_fields(base: Mapping[str, Any], changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Apply ``changes`` on top of ``base``."""
    merged = dict(base or {})
    merged.update(changes or {})
    return merged


def replace_fields(base: Mapping[str, Any], changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Discard ``base`` and keep only ``changes``."""
    return dict(changes or {})


MERGE_FUNCTIONS: Dict[str, MergeFunction] = {
    "overlay": overlay_fields,
    "replace": replace_fields,
}


@dataclass(frozen=True)
class EntityKind:
    """Describes one approvable entity type."""

    key: str
    label: str
    resource: str
    fields: Tuple[str, ...]
    name_field: Optional[str] = None
    pending_status: RecordStatus = RecordStatus.NEW_RECORD
    merge: MergeFunction = overlay_fields

    def __post_init__(self):
        if self.pending_status not in PENDING_CREATE_STATES:
            raise ValueError(
                f"Invalid pending status for {self.key}: {self.pending_status.value}"
            )
        if self.name_field and self.name_field not in self.fields:
            raise ValueError(f"Name field {self.name_field} is not a field of {self.key}")

    def clean(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``payload`` restricted to known fields."""
        unknown = sorted(set(payload or {}) - set(self.fields))
        if unknown:
            raise RecordValidationError(
                f"Unknown fields for {self.label}: {', '.join(unknown)}"
            )
        return dict(payload or {})

    def require_name(self, payload: Mapping[str, Any]) -> None:
        """Ensure the unique name field is present and non-empty."""
        if not self.name_field:
            return
        value = payload.get(self.name_field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise RecordValidationError(f"{self.name_field} is required")

    def name_of(self, fields: Mapping[str, Any]) -> Optional[str]:
        """Return the unique name carried by ``fields``, if the kind has one."""
        if not self.name_field:
            return None
        value = (fields or {}).get(self.name_field)
        return str(value) if value is not None else None


DEFAULT_KINDS: Dict[str, EntityKind] = {
    kind.key: kind
    for kind in [
        EntityKind(
            key="customer_classification",
            label="Customer classification",
            resource="customer-classifications",
            fields=("customer_classification_name",),
            name_field="customer_classification_name",
        ),
        EntityKind(
            key="stock_type",
            label="Stock type",
            resource="stock-types",
            fields=("stock_type_name",),
            name_field="stock_type_name",
        ),
        EntityKind(
            key="stock",
            label="Stock",
            resource="stocks",
            fields=(
                "product_id",
                "product_name",
                "lot_no",
                "quantity",
                "product_unit_id",
                "product_unit_name",
                "expiration_date",
            ),
        ),
        EntityKind(
            key="product_category",
            label="Product category",
            resource="product-categories",
            fields=("product_category_name",),
            name_field="product_category_name",
            pending_status=RecordStatus.FOR_APPROVAL,
        ),
        EntityKind(
            key="product_class",
            label="Product class",
            resource="product-classes",
            fields=("product_class_name",),
            name_field="product_class_name",
            pending_status=RecordStatus.FOR_APPROVAL,
        ),
        EntityKind(
            key="product_deal",
            label="Product deal",
            resource="product-deals",
            fields=("product_deal_name", "min_qty", "additional_qty"),
            name_field="product_deal_name",
            pending_status=RecordStatus.FOR_APPROVAL,
        ),
        EntityKind(
            key="product_unit",
            label="Product unit",
            resource="product-units",
            fields=("product_unit_name",),
            name_field="product_unit_name",
            pending_status=RecordStatus.FOR_APPROVAL,
        ),
    ]
}


def build_kinds(overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, EntityKind]:
    """Build the kind registry, applying per-kind overrides.

    Args:
        overrides: Mapping of kind key to an object with optional ``label``,
            ``pending_status`` and ``merge`` attributes (see
            :class:`backoffice.common.config.EntityConfig`).

    Returns:
        Dictionary of kind key to EntityKind
    """
    kinds = dict(DEFAULT_KINDS)
    for key, override in (overrides or {}).items():
        if key not in kinds:
            raise ValueError(f"Unknown entity kind: {key}")
        changes: Dict[str, Any] = {}
        if override.label:
            changes["label"] = override.label
        if override.pending_status:
            changes["pending_status"] = RecordStatus(override.pending_status)
        if override.merge:
            if override.merge not in MERGE_FUNCTIONS:
                raise ValueError(f"Unknown merge strategy for {key}: {override.merge}")
            changes["merge"] = MERGE_FUNCTIONS[override.merge]
        kinds[key] = replace(kinds[key], **changes)
    return kinds


def get_kind(key: str, kinds: Optional[Mapping[str, EntityKind]] = None) -> EntityKind:
    """Look up an entity kind by key."""
    registry = kinds if kinds is not None else DEFAULT_KINDS
    kind = registry.get(key)
    if not kind:
        raise ValueError(f"Unknown entity kind: {key}")
    return kind
