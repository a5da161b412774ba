"""
Advanced search: flat filter objects -> SQLAlchemy predicates.

A ``FilterTranslator`` is a fixed mapping table for one collection. Every key
maps to exactly one kind of predicate:

* text keys             -> case-insensitive substring match on one column
* ``<key>Min/<key>Max`` -> inclusive range on a numeric or date column
* plural keys           -> ``IN (...)`` membership
* quick filters         -> a hard-coded predicate (``myOrders`` etc.)
* ``search``            -> substring match across a fixed column list

All provided keys are AND-ed together. Absent, empty and unknown keys add
nothing, so an empty filter object selects the whole collection. Keys are the
client's camelCase names; each table maps them to snake_case columns.
"""
import os
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from dotenv import load_dotenv
from sqlalchemy import or_, func

from utils.clock import APP_TIMEZONE, now as clock_now
from utils.exceptions import ValidationFailed

load_dotenv()

HIGH_VALUE_THRESHOLD = Decimal(os.getenv("HIGH_VALUE_THRESHOLD", "1000"))

MIN_SUFFIX = "Min"
MAX_SUFFIX = "Max"
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}

# Range value kinds
INTEGER = "integer"
NUMBER = "number"
DATE = "date"
DATETIME = "datetime"


@dataclass(frozen=True)
class FilterContext:
    """Who is asking and when; quick filters are built from this only."""
    user_id: Optional[str] = None
    now: Optional[datetime] = None

    @property
    def moment(self) -> datetime:
        return self.now or clock_now()


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (list, tuple, set)) and not value)


def _coerce_number(key: str, value: Any, kind: str):
    if isinstance(value, bool):
        raise ValidationFailed({key: [f"{key} must be a number."]})
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationFailed({key: [f"{key} must be a number."]})
    if not number.is_finite():
        raise ValidationFailed({key: [f"{key} must be a number."]})
    if kind == INTEGER:
        if number != number.to_integral_value():
            raise ValidationFailed({key: [f"{key} must be an integer."]})
        return int(number)
    return number


def _coerce_date(key: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValidationFailed({key: [f"{key} must be a date (YYYY-MM-DD)."]})


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return False


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple, set)):
        values = list(value)
    else:
        values = [value]
    flattened = []
    for item in values:
        # comma separated values are accepted alongside repeated parameters
        if isinstance(item, str):
            flattened.extend(part.strip() for part in item.split(",") if part.strip())
        elif item is not None:
            flattened.append(item)
    return flattened


class FilterTranslator:
    """Mapping table from filter keys to predicates for one collection.

    ``ranges`` maps a base key to ``(column, kind)``; the table then accepts
    ``<base>Min`` and ``<base>Max``. ``memberships`` maps a plural key to
    ``(column, item_kind)`` where ``item_kind`` is ``"int"`` or ``"str"``.
    ``quick`` maps a boolean key to ``callable(FilterContext) -> predicate``.
    """

    def __init__(
        self,
        name: str,
        text: Optional[Mapping[str, Any]] = None,
        ranges: Optional[Mapping[str, Tuple[Any, str]]] = None,
        memberships: Optional[Mapping[str, Tuple[Any, str]]] = None,
        quick: Optional[Mapping[str, Callable[[FilterContext], Any]]] = None,
        search: Iterable[Any] = (),
    ):
        self.name = name
        self.text = dict(text or {})
        self.ranges = dict(ranges or {})
        self.memberships = dict(memberships or {})
        self.quick = dict(quick or {})
        self.search = list(search)

    @property
    def keys(self) -> List[str]:
        keys = list(self.text)
        for base in self.ranges:
            keys += [base + MIN_SUFFIX, base + MAX_SUFFIX]
        keys += list(self.memberships) + list(self.quick)
        if self.search:
            keys.append("search")
        return keys

    def vocabulary(self) -> Dict[str, Any]:
        return {
            "text": sorted(self.text),
            "ranges": {base + suffix: kind for base, (_, kind) in self.ranges.items() for suffix in (MIN_SUFFIX, MAX_SUFFIX)},
            "memberships": sorted(self.memberships),
            "quick": sorted(self.quick),
            "search": bool(self.search),
        }

    def parse(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Coerce raw values (query-string or JSON) into typed filter values.

        ``params`` may be a plain dict or a Starlette ``QueryParams``/multi-dict;
        multi-valued keys are read with ``getlist`` when available. Unknown keys
        are dropped here and therefore never reach the translator.
        """
        getlist = getattr(params, "getlist", None)
        errors: Dict[str, List[str]] = {}
        parsed: Dict[str, Any] = {}

        def raw(key):
            if getlist is not None and key in self.memberships:
                return getlist(key) or getlist(key + "[]")
            if key in params:
                return params[key]
            if getlist is not None:
                return getlist(key + "[]") or None
            return None

        for key in self.keys:
            value = raw(key)
            if _is_empty(value):
                continue
            try:
                parsed_value = self._parse_value(key, value)
            except ValidationFailed as exc:
                for field, messages in exc.errors.items():
                    errors.setdefault(field, []).extend(messages)
                continue
            if not _is_empty(parsed_value):
                parsed[key] = parsed_value

        for base, (_, kind) in self.ranges.items():
            low, high = parsed.get(base + MIN_SUFFIX), parsed.get(base + MAX_SUFFIX)
            if low is not None and high is not None and low > high:
                errors.setdefault(base + MAX_SUFFIX, []).append(
                    f"{base + MAX_SUFFIX} must be greater than or equal to {base + MIN_SUFFIX}."
                )

        if errors:
            raise ValidationFailed(errors)
        return parsed

    def _parse_value(self, key: str, value: Any):
        if key in self.text or key == "search":
            return str(value[0] if isinstance(value, (list, tuple)) else value).strip()
        if key in self.memberships:
            _, item_kind = self.memberships[key]
            items = _as_list(value)
            if item_kind == "int":
                return [_coerce_number(key, item, INTEGER) for item in items]
            return [str(item) for item in items]
        if key in self.quick:
            return _coerce_bool(value[0] if isinstance(value, (list, tuple)) else value)
        base = key[:-len(MIN_SUFFIX)]
        _, kind = self.ranges[base]
        single = value[0] if isinstance(value, (list, tuple)) else value
        if kind in (DATE, DATETIME):
            return _coerce_date(key, single)
        return _coerce_number(key, single, kind)

    def predicates(self, filters: Mapping[str, Any], context: Optional[FilterContext] = None) -> List[Any]:
        """Translate an already-parsed filter object. Never raises on content."""
        context = context or FilterContext()
        clauses = []
        for key, value in filters.items():
            if _is_empty(value):
                continue
            if key == "search" and self.search:
                needle = str(value).lower()
                clauses.append(or_(*(_contains(column, needle) for column in self.search)))
            elif key in self.text:
                clauses.append(_contains(self.text[key], str(value).lower()))
            elif key in self.memberships:
                column, _ = self.memberships[key]
                clauses.append(column.in_(list(value)))
            elif key in self.quick:
                if value is True:
                    clauses.append(self.quick[key](context))
            elif key.endswith(MIN_SUFFIX) and key[:-len(MIN_SUFFIX)] in self.ranges:
                column, kind = self.ranges[key[:-len(MIN_SUFFIX)]]
                clauses.append(column >= _range_bound(value, kind, upper=False))
            elif key.endswith(MAX_SUFFIX) and key[:-len(MAX_SUFFIX)] in self.ranges:
                column, kind = self.ranges[key[:-len(MAX_SUFFIX)]]
                clauses.append(column <= _range_bound(value, kind, upper=True))
        return clauses

    def apply(self, query, filters: Mapping[str, Any], context: Optional[FilterContext] = None):
        clauses = self.predicates(filters, context)
        if clauses:
            query = query.filter(*clauses)
        return query


def _contains(column, needle: str):
    if isinstance(column, RelatedText):
        return column(needle)
    return func.lower(column).contains(needle, autoescape=True)


def _range_bound(value, kind: str, upper: bool):
    if kind == DATETIME and isinstance(value, date) and not isinstance(value, datetime):
        bound = datetime.combine(value, time.max if upper else time.min)
        return APP_TIMEZONE.localize(bound)
    return value


class RelatedText:
    """Text filter on a related row, e.g. ``StockMovement.product`` -> ``Product.name``."""

    def __init__(self, relationship, column):
        self.relationship = relationship
        self.column = column

    def __call__(self, needle: str):
        return self.relationship.has(func.lower(self.column).contains(needle, autoescape=True))
