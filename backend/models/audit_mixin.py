from sqlalchemy import Column, DateTime, String
from utils.clock import now


class TimestampMixin:
    """Mixin that provides created/updated timestamps and user info.

    This is the minimal mixin used for catalogue models. It does NOT include
    soft-delete columns so rows such as inventory balances can be removed
    outright.
    """
    # DateTime(timezone=True) ensures the timezone info is persisted in the database.
    created_at = Column(DateTime(timezone=True), default=now)
    updated_at = Column(DateTime(timezone=True), onupdate=now)
    created_by = Column(String, nullable=True, index=True)
    updated_by = Column(String, nullable=True)


class SoftDeleteMixin:
    """Mixin for soft-delete columns (deleted_at, deleted_by).

    Apply this only to models where history must survive deletion: orders
    and products. The session-level filter in ``database.py`` hides these rows.
    """
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by = Column(String, nullable=True)

    def soft_delete(self, user_id: str):
        self.deleted_at = now()
        self.deleted_by = user_id


class AuditMixin(TimestampMixin, SoftDeleteMixin):
    """Timestamps + soft-delete, used by orders and products."""
    pass
