from datetime import date
from typing import Optional

from utils.calculations import (
    calculate_line,
    calculate_order_totals,
    progress_percentage,
    tax_rate_percentage,
)
from utils.clock import now
from utils.order_status import OrderWorkflow, PRIORITIES, PRIORITY_COLORS


class LineItemMixin:
    """Derived money fields for an order line.

    Concrete item classes name their price column and the quantity that
    counts against ``quantity_ordered``; everything else is shared.
    """
    unit_cost_field = "unit_cost"
    progress_quantity_field = "quantity_received"
    item_statuses = {}

    @property
    def unit_amount(self):
        return getattr(self, self.unit_cost_field)

    @property
    def progressed_quantity(self) -> int:
        return getattr(self, self.progress_quantity_field) or 0

    def recalculate(self):
        totals = calculate_line(
            self.quantity_ordered,
            self.unit_amount,
            self.discount_percentage,
            self.progressed_quantity,
        )
        self.line_total = totals.line_total
        self.discount_amount = totals.discount_amount
        self.final_line_total = totals.final_line_total
        self.quantity_pending = totals.quantity_pending
        return totals

    @property
    def remaining_quantity(self) -> int:
        return max((self.quantity_ordered or 0) - self.progressed_quantity, 0)

    @property
    def progress(self) -> float:
        return progress_percentage(self.progressed_quantity, self.quantity_ordered or 0)

    @property
    def status_label(self) -> str:
        return self.item_statuses.get(self.item_status, ("Unknown", "gray"))[0]

    @property
    def status_color(self) -> str:
        return self.item_statuses.get(self.item_status, ("Unknown", "gray"))[1]


class WorkflowMixin:
    """Status presentation and transition stamping driven by a workflow table."""
    workflow: OrderWorkflow = None
    reference_prefix = ""
    reference_field = ""

    @property
    def reference(self) -> Optional[str]:
        return getattr(self, self.reference_field) if self.reference_field else None

    def stamp(self, status: str, user_id: str):
        """Set the audit columns for entering ``status``; never overwrites."""
        columns = self.workflow.stamps.get(status)
        if not columns:
            return
        at_field, by_field = columns
        if getattr(self, at_field) is None:
            setattr(self, at_field, now())
        if getattr(self, by_field) is None:
            setattr(self, by_field, user_id)

    def transition_to(self, status: str, user_id: str, action: Optional[str] = None):
        self.workflow.assert_transition(self.status, status, action)
        self.status = status
        self.stamp(status, user_id)

    @property
    def status_label(self) -> str:
        return self.workflow.label(self.status)

    @property
    def status_color(self) -> str:
        return self.workflow.color(self.status)

    @property
    def can_be_cancelled(self) -> bool:
        return self.workflow.can_cancel(self.status)


class OrderTotalsMixin(WorkflowMixin):
    """Order-level totals, progress and delivery dates."""
    progress_quantity_field = "quantity_received"
    delivery_date_fields = ()

    def recalculate_totals(self):
        totals = calculate_order_totals(
            (item.final_line_total for item in self.items),
            self.tax_rate,
            self.shipping_cost,
            self.discount_amount,
        )
        self.subtotal, self.tax_amount, self.total_amount = totals
        return totals

    @property
    def priority_label(self) -> str:
        return PRIORITIES.get(self.priority, "Unknown")

    @property
    def priority_color(self) -> str:
        return PRIORITY_COLORS.get(self.priority, "gray")

    @property
    def can_be_edited(self) -> bool:
        return self.workflow.can_edit_items(self.status)

    @property
    def tax_rate_percentage(self):
        return tax_rate_percentage(self.tax_rate)

    @property
    def total_quantity_ordered(self) -> int:
        return sum(item.quantity_ordered or 0 for item in self.items)

    @property
    def total_quantity_progressed(self) -> int:
        return sum(getattr(item, self.progress_quantity_field) or 0 for item in self.items)

    @property
    def progress(self) -> float:
        return progress_percentage(self.total_quantity_progressed, self.total_quantity_ordered)

    @property
    def delivery_date(self) -> Optional[date]:
        for field in self.delivery_date_fields:
            value = getattr(self, field)
            if value:
                return value
        return None

    @property
    def days_until_delivery(self) -> Optional[int]:
        if not self.delivery_date:
            return None
        return (self.delivery_date - now().date()).days

    @property
    def is_overdue(self) -> bool:
        if not self.delivery_date:
            return False
        return self.delivery_date < now().date() and self.status not in self.workflow.inactive
