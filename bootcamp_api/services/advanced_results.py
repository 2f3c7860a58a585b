"""Translate client query strings into bounded, paginated store queries.

A request such as ``?price[gte]=100&careers[in]=Business&select=name&sort=-name&page=2``
becomes a ``QuerySpec``; ``advanced_results`` runs it as one count and one fetch.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from fastapi import Request

from bootcamp_api.schemas.advanced import FilterParameter, PageLink, PageResult, Pagination, QuerySpec, SortKey

logger = logging.getLogger(__name__)

RESERVED_KEYS = frozenset({"select", "sort", "page", "limit"})
FILTER_OPERATORS = frozenset({"gt", "gte", "lt", "lte", "in"})
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25
MAX_LIMIT = 100
# Largest OFFSET a signed 64-bit SQL integer can carry.
MAX_OFFSET = 2**63 - 1
DEFAULT_SORT = (SortKey(field="created_at", dir="desc"),)

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_FILTER_KEY_RE = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*)(?:\[(?P<op>[^\[\]]*)\])?$")


def _iter_params(params) -> Iterator[tuple[str, str]]:
    if hasattr(params, "multi_items"):
        yield from params.multi_items()
        return
    items = params.items() if isinstance(params, Mapping) else params
    for key, value in items:
        if isinstance(value, (list, tuple)):
            for item in value:
                yield str(key), str(item)
        else:
            yield str(key), "" if value is None else str(value)


def parse_filter_key(key: str) -> tuple[str, str] | None:
    """Split ``price[gte]`` into ``("price", "gte")``; plain keys mean ``eq``.

    Returns None for malformed keys and for operators outside the supported set.
    """
    match = _FILTER_KEY_RE.match(str(key or "").strip())
    if match is None:
        return None
    op = match.group("op")
    if op is None:
        return match.group("field"), "eq"
    op = op.strip().lower()
    if op not in FILTER_OPERATORS:
        return None
    return match.group("field"), op


def parse_positive_int(raw: Any, default: int) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def _split_csv(raw: str | None) -> list[str]:
    return [part.strip() for part in str(raw or "").split(",") if part.strip()]


def parse_select(raw: str | None) -> list[str] | None:
    fields = [f for f in _split_csv(raw) if _FIELD_RE.match(f)]
    return fields or None


def parse_sort(raw: str | None) -> list[SortKey]:
    keys: list[SortKey] = []
    for token in _split_csv(raw):
        direction = "asc"
        if token.startswith("-"):
            direction = "desc"
            token = token[1:]
        elif token.startswith("+"):
            token = token[1:]
        if _FIELD_RE.match(token):
            keys.append(SortKey(field=token, dir=direction))
    return keys or list(DEFAULT_SORT)


def build_query_spec(params: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> QuerySpec:
    control: dict[str, str] = {}
    filters: dict[tuple[str, str], FilterParameter] = {}

    for key, value in _iter_params(params):
        if key in RESERVED_KEYS:
            control[key] = value
            continue
        parsed = parse_filter_key(key)
        if parsed is None:
            logger.debug("ignoring query parameter %r", key)
            continue
        field, op = parsed
        if op == "in":
            values = _split_csv(value)
            existing = filters.get((field, op))
            if existing is not None:
                values = list(existing.value) + values
            filters[(field, op)] = FilterParameter(field=field, op=op, value=values)
        else:
            # Repeated scalar filters: the last value wins.
            filters.pop((field, op), None)
            filters[(field, op)] = FilterParameter(field=field, op=op, value=value)

    limit = min(parse_positive_int(control.get("limit"), DEFAULT_LIMIT), MAX_LIMIT)
    page = parse_positive_int(control.get("page"), DEFAULT_PAGE)
    if (page - 1) * limit > MAX_OFFSET:
        logger.debug("page %s is out of range, using %s", page, DEFAULT_PAGE)
        page = DEFAULT_PAGE

    return QuerySpec(
        filters=list(filters.values()),
        select=parse_select(control.get("select")),
        sort=parse_sort(control.get("sort")),
        page=page,
        limit=limit,
    )


def query_spec_from_request(request: Request) -> QuerySpec:
    return build_query_spec(request.query_params)


def paginate(spec: QuerySpec, total: int) -> Pagination:
    pagination = Pagination()
    if spec.end_index < total:
        pagination.next = PageLink(page=spec.page + 1, limit=spec.limit)
    if spec.start_index > 0:
        pagination.previous = PageLink(page=spec.page - 1, limit=spec.limit)
    return pagination


def advanced_results(store, spec: QuerySpec, populate: Iterable[tuple[str, Iterable[str] | None]] = ()) -> PageResult:
    """Run ``spec`` against ``store``: one count over the predicate, then one windowed fetch.

    Store errors propagate unchanged.
    """
    predicate = spec.predicate()
    total = store.count(predicate)

    cursor = store.find(predicate).select(spec.select).sort(spec.sort).skip(spec.start_index).limit(spec.limit)
    for relation, fields in populate:
        cursor = cursor.populate(relation, fields)
    data = cursor.all()

    return PageResult(total=total, data=data, pagination=paginate(spec, total))
