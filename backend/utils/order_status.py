"""
Order status workflows.

Each order type is described by one ``OrderWorkflow`` table: which statuses
may follow which, which fields may change in each status, and which audit
columns a transition stamps. Crud code asks the table instead of carrying its
own status conditionals, so the rules can be tested without a request.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from utils.exceptions import InvalidTransition, ValidationFailed

CANCELLED = "cancelled"
CLOSED = "closed"
DRAFT = "draft"

PRIORITIES = {
    "low": "Low",
    "normal": "Normal",
    "high": "High",
    "urgent": "Urgent",
}

PRIORITY_COLORS = {
    "low": "gray",
    "normal": "blue",
    "high": "orange",
    "urgent": "red",
}


def _frozen(mapping: Mapping[str, Iterable[str]]) -> Dict[str, FrozenSet[str]]:
    return {key: frozenset(values) for key, values in mapping.items()}


@dataclass(frozen=True)
class OrderWorkflow:
    name: str
    labels: Dict[str, str]
    colors: Dict[str, str]
    transitions: Dict[str, FrozenSet[str]]
    field_groups: Dict[str, FrozenSet[str]]
    editable_groups: Dict[str, FrozenSet[str]]
    stamps: Dict[str, Tuple[str, str]]
    terminal: FrozenSet[str]
    # statuses that can no longer be overdue
    inactive: FrozenSet[str] = field(default_factory=frozenset)
    # how error messages name a record of this kind
    subject: str = "an order"

    @property
    def statuses(self) -> List[str]:
        return list(self.labels)

    def label(self, status: Optional[str]) -> str:
        return self.labels.get(status, "Unknown")

    def color(self, status: Optional[str]) -> str:
        return self.colors.get(status, "gray")

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.transitions.get(current, frozenset())

    def can_cancel(self, current: str) -> bool:
        return self.can_transition(current, CANCELLED)

    def is_terminal(self, status: str) -> bool:
        return status in self.terminal

    def assert_transition(self, current: str, target: str, action: Optional[str] = None):
        if not self.can_transition(current, target):
            raise InvalidTransition(action or f"move to '{target}'", current, subject=self.subject)

    def editable_fields(self, status: str) -> FrozenSet[str]:
        groups = self.editable_groups.get(status, frozenset())
        fields = set()
        for group in groups:
            fields |= self.field_groups[group]
        return frozenset(fields)

    def can_edit_items(self, status: str) -> bool:
        return "items" in self.editable_groups.get(status, frozenset())

    def rejected_fields(self, status: str, fields: Iterable[str]) -> List[str]:
        allowed = self.editable_fields(status)
        return sorted(f for f in fields if f not in allowed)

    def assert_editable(self, status: str, fields: Iterable[str]):
        """Raise one validation error naming every field the status forbids."""
        rejected = self.rejected_fields(status, fields)
        if rejected:
            label = self.label(status)
            raise ValidationFailed(
                {name: [f"{name} cannot be changed for orders with status '{label}'."] for name in rejected}
            )

    def assert_items_editable(self, status: str):
        if not self.can_edit_items(status):
            raise ValidationFailed(
                {"items": [f"Items cannot be modified for orders with status '{self.label(status)}'."]}
            )


# Fields shared by both order types
GENERAL_FIELDS = {"notes", "priority", "terms_and_conditions"}
FINANCIAL_FIELDS = {"tax_rate", "shipping_cost", "discount_amount", "currency"}


PURCHASE_ORDER_WORKFLOW = OrderWorkflow(
    name="purchase_order",
    labels={
        "draft": "Draft",
        "pending_approval": "Pending Approval",
        "approved": "Approved",
        "sent_to_supplier": "Sent to Supplier",
        "partially_received": "Partially Received",
        "fully_received": "Fully Received",
        "cancelled": "Cancelled",
        "closed": "Closed",
    },
    colors={
        "draft": "gray",
        "pending_approval": "yellow",
        "approved": "blue",
        "sent_to_supplier": "purple",
        "partially_received": "orange",
        "fully_received": "green",
        "cancelled": "red",
        "closed": "slate",
    },
    transitions=_frozen({
        "draft": {"pending_approval", CANCELLED},
        "pending_approval": {"approved", CANCELLED},
        "approved": {"sent_to_supplier", CANCELLED},
        "sent_to_supplier": {"partially_received", "fully_received", CANCELLED},
        "partially_received": {"fully_received", CLOSED, CANCELLED},
        "fully_received": {CLOSED},
    }),
    field_groups=_frozen({
        "party": {
            "supplier_reference", "supplier_name", "supplier_email", "supplier_phone",
            "supplier_address", "supplier_contact_person", "warehouse_id",
        },
        "items": {"items"},
        "financial": FINANCIAL_FIELDS,
        "general": GENERAL_FIELDS | {"expected_delivery_date"},
    }),
    editable_groups=_frozen({
        "draft": {"party", "items", "financial", "general"},
        "pending_approval": {"party", "items", "general"},
        "approved": {"general"},
        "sent_to_supplier": {"general"},
        "partially_received": {"general"},
    }),
    stamps={
        "pending_approval": ("submitted_at", "submitted_by"),
        "approved": ("approved_at", "approved_by"),
        "sent_to_supplier": ("sent_at", "sent_by"),
        "partially_received": ("received_at", "received_by"),
        "fully_received": ("received_at", "received_by"),
        CLOSED: ("closed_at", "closed_by"),
        CANCELLED: ("cancelled_at", "cancelled_by"),
    },
    terminal=frozenset({"fully_received", CANCELLED, CLOSED}),
    inactive=frozenset({"fully_received", CANCELLED, CLOSED}),
)


SALES_ORDER_WORKFLOW = OrderWorkflow(
    name="sales_order",
    labels={
        "draft": "Draft",
        "pending_approval": "Pending Approval",
        "approved": "Approved",
        "confirmed": "Confirmed",
        "partially_fulfilled": "Partially Fulfilled",
        "fully_fulfilled": "Fully Fulfilled",
        "shipped": "Shipped",
        "delivered": "Delivered",
        "cancelled": "Cancelled",
        "closed": "Closed",
    },
    colors={
        "draft": "gray",
        "pending_approval": "yellow",
        "approved": "blue",
        "confirmed": "indigo",
        "partially_fulfilled": "orange",
        "fully_fulfilled": "purple",
        "shipped": "cyan",
        "delivered": "green",
        "cancelled": "red",
        "closed": "slate",
    },
    transitions=_frozen({
        "draft": {"pending_approval", "confirmed", CANCELLED},
        "pending_approval": {"approved", CANCELLED},
        "approved": {"confirmed", CANCELLED},
        "confirmed": {"partially_fulfilled", "fully_fulfilled", CANCELLED},
        "partially_fulfilled": {"fully_fulfilled", CLOSED, CANCELLED},
        "fully_fulfilled": {"shipped"},
        "shipped": {"delivered", CANCELLED},
    }),
    field_groups=_frozen({
        "party": {
            "customer_reference", "customer_name", "customer_email", "customer_phone",
            "customer_address", "customer_contact_person", "warehouse_id",
        },
        "items": {"items"},
        "financial": FINANCIAL_FIELDS | {"payment_terms"},
        "general": GENERAL_FIELDS | {
            "requested_delivery_date", "promised_delivery_date", "payment_status",
            "shipping_address", "shipping_method", "tracking_number", "carrier", "customer_notes",
        },
    }),
    editable_groups=_frozen({
        "draft": {"party", "items", "financial", "general"},
        "pending_approval": {"party", "items", "general"},
        "approved": {"general"},
        "confirmed": {"general"},
        "partially_fulfilled": {"general"},
        "shipped": {"general"},
    }),
    stamps={
        "pending_approval": ("submitted_at", "submitted_by"),
        "approved": ("approved_at", "approved_by"),
        "confirmed": ("confirmed_at", "confirmed_by"),
        "partially_fulfilled": ("fulfilled_at", "fulfilled_by"),
        "fully_fulfilled": ("fulfilled_at", "fulfilled_by"),
        "shipped": ("shipped_at", "shipped_by"),
        "delivered": ("delivered_at", "delivered_by"),
        CLOSED: ("closed_at", "closed_by"),
        CANCELLED: ("cancelled_at", "cancelled_by"),
    },
    terminal=frozenset({"fully_fulfilled", "delivered", CANCELLED, CLOSED}),
    inactive=frozenset({"delivered", CANCELLED, CLOSED}),
)


# Transfers take stock out of the source on dispatch and into the destination
# on completion; once dispatched they can only be completed.
STOCK_TRANSFER_WORKFLOW = OrderWorkflow(
    name="stock_transfer",
    labels={
        "pending": "Pending Approval",
        "approved": "Approved",
        "in_transit": "In Transit",
        "completed": "Completed",
        "cancelled": "Cancelled",
    },
    colors={
        "pending": "yellow",
        "approved": "blue",
        "in_transit": "purple",
        "completed": "green",
        "cancelled": "red",
    },
    transitions=_frozen({
        "pending": {"approved", CANCELLED},
        "approved": {"in_transit", CANCELLED},
        "in_transit": {"completed"},
    }),
    field_groups=_frozen({"general": {"notes"}}),
    editable_groups=_frozen({
        "pending": {"general"},
        "approved": {"general"},
        "in_transit": {"general"},
    }),
    stamps={
        "approved": ("approved_at", "approved_by"),
        "in_transit": ("dispatched_at", "dispatched_by"),
        "completed": ("completed_at", "completed_by"),
        CANCELLED: ("cancelled_at", "cancelled_by"),
    },
    terminal=frozenset({"completed", CANCELLED}),
    inactive=frozenset({"completed", CANCELLED}),
    subject="a transfer",
)


# Manual adjustments are either applied straight away or held for review.
STOCK_MOVEMENT_WORKFLOW = OrderWorkflow(
    name="stock_movement",
    labels={
        "pending": "Pending Approval",
        "approved": "Approved",
        "rejected": "Rejected",
        "applied": "Applied",
    },
    colors={
        "pending": "yellow",
        "approved": "green",
        "rejected": "red",
        "applied": "blue",
    },
    transitions=_frozen({
        "pending": {"approved", "rejected"},
    }),
    field_groups={},
    editable_groups={},
    stamps={
        "approved": ("approved_at", "approved_by"),
        "rejected": ("rejected_at", "rejected_by"),
    },
    terminal=frozenset({"approved", "rejected", "applied"}),
    subject="a stock movement",
)


PURCHASE_ORDER_ITEM_STATUSES = {
    "pending": ("Pending", "yellow"),
    "partially_received": ("Partially Received", "orange"),
    "fully_received": ("Fully Received", "green"),
    "cancelled": ("Cancelled", "red"),
    "backordered": ("Backordered", "purple"),
}

SALES_ORDER_ITEM_STATUSES = {
    "pending": ("Pending", "gray"),
    "partially_fulfilled": ("Partially Fulfilled", "orange"),
    "fully_fulfilled": ("Fully Fulfilled", "purple"),
    "shipped": ("Shipped", "cyan"),
    "delivered": ("Delivered", "green"),
    "cancelled": ("Cancelled", "red"),
    "backordered": ("Backordered", "yellow"),
}


def derive_progress_status(done: int, ordered: int, partial: str, full: str, none: str) -> str:
    """Pick the progress status for a quantity counter against its ordered total."""
    if ordered and done >= ordered:
        return full
    if done > 0:
        return partial
    return none
