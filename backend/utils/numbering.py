"""
Human-readable order references: ``<PREFIX>-<YYYY><MM>-<NNN>``.

The sequence restarts every calendar month. It is derived from the highest
reference already issued in the month's bucket, which is a read-then-compute
step; the reference columns carry a unique constraint and creators retry on
conflict (see ``crud.orders.create_with_reference``).
"""
import re
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from utils.clock import now as clock_now

REFERENCE_PATTERN = re.compile(r"^[A-Z]+-\d{6}-\d{3,}$")


def bucket_prefix(prefix: str, moment: datetime) -> str:
    return f"{prefix.upper()}-{moment.year:04d}{moment.month:02d}-"


def format_reference(prefix: str, moment: datetime, sequence: int) -> str:
    return f"{bucket_prefix(prefix, moment)}{sequence:03d}"


def parse_sequence(reference: Optional[str]) -> int:
    """Trailing numeric segment of a reference, 0 when it has none."""
    if not reference:
        return 0
    tail = reference.rsplit("-", 1)[-1]
    return int(tail) if tail.isdigit() else 0


def next_reference(db: Session, column, prefix: str, moment: Optional[datetime] = None) -> str:
    """Next free reference for ``prefix`` in the month of ``moment``.

    ``column`` is the mapped reference attribute (e.g. ``PurchaseOrder.po_number``).
    Soft-deleted orders are included so their numbers are never reused.
    """
    moment = moment or clock_now()
    bucket = bucket_prefix(prefix, moment)
    references = db.execute(
        select(column)
        .where(column.like(f"{bucket}%"))
        .execution_options(include_deleted=True)
    ).scalars().all()
    # Compared numerically so sequences past 999 keep increasing
    highest = max((parse_sequence(ref) for ref in references), default=0)
    return format_reference(prefix, moment, highest + 1)
