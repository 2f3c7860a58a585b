from __future__ import annotations

import logging
import operator
import re
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable

from fastapi import HTTPException
from sqlalchemy import asc, desc, inspect
from sqlalchemy.orm import Query, Session, load_only, selectinload

from bootcamp_api.schemas.advanced import Predicate, SortKey
from bootcamp_api.services.advanced_results import DEFAULT_SORT
from bootcamp_api.services.geo import GEO_WITHIN_OP, GeoCap

logger = logging.getLogger(__name__)

RowCheck = Callable[[Any], bool]

_COMPARISONS = {
    "eq": operator.eq,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

_TRUE_WORDS = frozenset({"1", "true", "yes", "y"})
_FALSE_WORDS = frozenset({"0", "false", "no", "n"})
_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_bool(text: str) -> bool:
    word = text.lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(text)


def _parse_datetime(text: str) -> datetime:
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _parse_date(text: str) -> date:
    if _DAY_RE.match(text):
        return date.fromisoformat(text)
    return _parse_datetime(text).date()


# Column python type -> (parser for the query string text, label used in 400 responses).
_PARSERS: dict[type, tuple[Callable[[str], Any], str]] = {
    bool: (_parse_bool, "boolean"),
    int: (int, "number"),
    float: (float, "number"),
    Decimal: (Decimal, "number"),
    date: (_parse_date, "date"),
    datetime: (_parse_datetime, "datetime"),
    uuid.UUID: (uuid.UUID, "uuid"),
}


def column_python_type(column) -> type | None:
    try:
        return column.type.python_type
    except NotImplementedError:
        return None


def is_day_literal(raw) -> bool:
    return isinstance(raw, str) and bool(_DAY_RE.match(raw.strip()))


def coerce_filter_value(column, value):
    """Convert a query string value to the column's python type.

    Values already of that type pass through; text columns keep the raw
    string. Anything unparseable is a 400 naming the field.
    """
    python_type = column_python_type(column)
    entry = _PARSERS.get(python_type)
    if entry is None or type(value) is python_type:
        return value
    parse, label = entry
    text = "" if value is None else str(value).strip()
    try:
        if not text:
            raise ValueError("empty filter value")
        return parse(text)
    except (ValueError, TypeError, InvalidOperation):
        raise HTTPException(status_code=400, detail=f'Invalid filter value for field "{column.key}" ({label})')


def _as_list(value) -> list:
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _json_ready(value):
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def serialize_row(row, fields: Iterable[str] | None = None, hidden: Iterable[str] = ()) -> dict[str, Any]:
    mapper = inspect(type(row))
    hidden_set = set(hidden)
    keys = [c.key for c in mapper.column_attrs if c.key not in hidden_set]
    if fields is not None:
        wanted = set(fields) | {"id"}
        keys = [k for k in keys if k in wanted]
    return {k: _json_ready(getattr(row, k)) for k in keys}


class ModelStore:
    """Count/find access to one mapped model, driven by predicates.

    Filterable, sortable and selectable fields are the model's mapped columns minus ``hidden``.
    Unknown fields are skipped rather than rejected.
    """

    def __init__(self, db: Session, model, *, hidden: Iterable[str] = (), geo_point: tuple[str, str] | None = None):
        self.db = db
        self.model = model
        self.hidden = frozenset(hidden)
        self.geo_point = geo_point
        mapper = inspect(model)
        self.columns = {
            attr.key: attr.columns[0] for attr in mapper.column_attrs if attr.key not in self.hidden
        }
        self.relations = {rel.key: rel for rel in mapper.relationships}

    def is_array(self, key: str) -> bool:
        return bool(self.columns[key].info.get("array"))

    def compile(self, predicate: Predicate) -> tuple[list, list[RowCheck]]:
        criteria: list = []
        checks: list[RowCheck] = []
        for field, ops in (predicate or {}).items():
            for op, raw in ops.items():
                if op == GEO_WITHIN_OP:
                    self._compile_geo(raw, criteria, checks)
                    continue
                if field not in self.columns:
                    logger.debug("skipping filter on unknown field %s", field)
                    continue
                if self.is_array(field):
                    check = self._array_check(field, op, raw)
                    if check is not None:
                        checks.append(check)
                    continue
                clause = self._column_clause(field, op, raw)
                if clause is not None:
                    criteria.append(clause)
        return criteria, checks

    def coerce(self, field: str, raw):
        """Filter value for ``field`` converted to its column type (400 on bad input)."""
        return coerce_filter_value(self.columns[field], raw)

    def _column_clause(self, field: str, op: str, raw):
        col = getattr(self.model, field)
        if op == "in":
            return col.in_([self.coerce(field, v) for v in _as_list(raw)])
        if isinstance(raw, (list, tuple)):
            raw = raw[-1] if raw else ""
        compare = _COMPARISONS.get(op)
        if compare is None:
            logger.debug("skipping unsupported operator %s on %s", op, field)
            return None
        value = self.coerce(field, raw)
        if op == "eq" and column_python_type(self.columns[field]) is datetime and is_day_literal(raw):
            # whole calendar day
            return (col >= value) & (col < value + timedelta(days=1))
        return compare(col, value)

    def _array_check(self, field: str, op: str, raw) -> RowCheck | None:
        if op == "in":
            wanted = {str(v) for v in _as_list(raw)}
            return lambda row: bool(wanted.intersection(str(v) for v in (getattr(row, field) or [])))
        if op == "eq":
            needle = str(raw[-1] if isinstance(raw, (list, tuple)) and raw else raw)
            return lambda row: needle in [str(v) for v in (getattr(row, field) or [])]
        logger.debug("skipping operator %s on list field %s", op, field)
        return None

    def _compile_geo(self, cap: GeoCap, criteria: list, checks: list[RowCheck]) -> None:
        if self.geo_point is None or not isinstance(cap, GeoCap):
            return
        lng_key, lat_key = self.geo_point
        lng_col = getattr(self.model, lng_key)
        lat_col = getattr(self.model, lat_key)
        min_lat, max_lat, min_lng, max_lng = cap.bounding_box()
        criteria.append(lng_col.isnot(None))
        criteria.append(lat_col.between(min_lat, max_lat))
        if min_lng is not None:
            criteria.append(lng_col.between(min_lng, max_lng))
        checks.append(lambda row: cap.contains(getattr(row, lng_key), getattr(row, lat_key)))

    def base_query(self, criteria: list) -> Query:
        q = self.db.query(self.model)
        if criteria:
            q = q.filter(*criteria)
        return q

    def count(self, predicate: Predicate) -> int:
        criteria, checks = self.compile(predicate)
        q = self.base_query(criteria)
        if not checks:
            return q.count()
        return sum(1 for row in q.all() if all(check(row) for check in checks))

    def find(self, predicate: Predicate) -> "Cursor":
        return Cursor(self, predicate)


class Cursor:
    """Chainable query builder; nothing touches the database until ``all()``."""

    def __init__(self, store: ModelStore, predicate: Predicate):
        self.store = store
        self.predicate = predicate
        self._fields: list[str] | None = None
        self._sort: list[SortKey] = []
        self._skip = 0
        self._limit: int | None = None
        self._populate: list[tuple[str, list[str] | None]] = []

    def select(self, fields: Iterable[str] | None) -> "Cursor":
        if fields:
            self._fields = [f for f in fields if f in self.store.columns]
        return self

    def sort(self, keys: Iterable[SortKey]) -> "Cursor":
        keys = list(keys)
        self._sort = [k for k in keys if k.field in self.store.columns and not self.store.is_array(k.field)]
        if keys and not self._sort and all(k.field in self.store.columns for k in DEFAULT_SORT):
            logger.debug("no sortable keys in %s, ordering newest first", [k.field for k in keys])
            self._sort = list(DEFAULT_SORT)
        return self

    def skip(self, n: int) -> "Cursor":
        self._skip = max(0, int(n))
        return self

    def limit(self, n: int | None) -> "Cursor":
        self._limit = None if n is None else max(0, int(n))
        return self

    def populate(self, relation: str, fields: Iterable[str] | None = None) -> "Cursor":
        if relation in self.store.relations:
            self._populate.append((relation, list(fields) if fields else None))
        return self

    def _query(self, criteria: list, checks: list[RowCheck]) -> Query:
        store = self.store
        q = store.base_query(criteria)
        if self._fields:
            needed = set(self._fields) | {"id"}
            if checks and store.geo_point:
                needed.update(store.geo_point)
            needed.update(k for k in store.columns if store.is_array(k))
            needed.update(k.field for k in self._sort)
            q = q.options(load_only(*[getattr(store.model, k) for k in store.columns if k in needed]))
        for relation, _ in self._populate:
            q = q.options(selectinload(getattr(store.model, relation)))
        for key in self._sort:
            col = getattr(store.model, key.field)
            q = q.order_by(asc(col) if key.dir == "asc" else desc(col))
        return q.order_by(asc(store.model.id))

    def all(self) -> list[dict[str, Any]]:
        criteria, checks = self.store.compile(self.predicate)
        q = self._query(criteria, checks)
        if checks:
            rows = [row for row in q.all() if all(check(row) for check in checks)]
            end = None if self._limit is None else self._skip + self._limit
            rows = rows[self._skip:end]
        else:
            if self._skip:
                q = q.offset(self._skip)
            if self._limit is not None:
                q = q.limit(self._limit)
            rows = q.all()
        return [self._serialize(row) for row in rows]

    def _serialize(self, row) -> dict[str, Any]:
        out = serialize_row(row, self._fields, self.store.hidden)
        for relation, fields in self._populate:
            related = getattr(row, relation)
            if related is None:
                out[relation] = None
            elif isinstance(related, (list, tuple)):
                out[relation] = [serialize_row(item, fields) for item in related]
            else:
                out[relation] = serialize_row(related, fields)
        return out
