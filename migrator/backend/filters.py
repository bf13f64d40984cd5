#!/usr/bin/env python3
# CUI // SP-CTI
"""Typed filter operators for backend data reads.

Each ``DataFilter`` carries one ``FilterOp`` and an operand whose shape is
checked against the operator at construction time. ``apply_filter`` maps a
filter onto a PostgREST-style query builder (``eq``, ``in_``, ``contains``
and friends) through an explicit branch per operator.
"""

import collections.abc
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Union

DEFAULT_PAGE_SIZE = 1000


class FilterOp(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    ILIKE = "ilike"
    IN = "in"
    CONTAINS = "contains"
    CONTAINED_BY = "contained_by"
    IS = "is"


_COLLECTION_OPS = (FilterOp.IN, FilterOp.CONTAINS, FilterOp.CONTAINED_BY)
_PATTERN_OPS = (FilterOp.LIKE, FilterOp.ILIKE)


@dataclass(frozen=True)
class DataFilter:
    """One ``field <op> value`` condition."""

    field: str
    op: FilterOp
    value: Any = None

    def __post_init__(self):
        op = FilterOp(self.op)
        object.__setattr__(self, "op", op)
        if not self.field:
            raise ValueError("DataFilter.field must be a non-empty column name")
        value = self.value
        if op in _COLLECTION_OPS:
            if isinstance(value, (str, bytes)) or not isinstance(
                value, (collections.abc.Sequence, collections.abc.Mapping, collections.abc.Set)
            ):
                raise TypeError(f"{op.value} filter needs a sequence or mapping, got {value!r}")
        elif op in _PATTERN_OPS:
            if not isinstance(value, str):
                raise TypeError(f"{op.value} filter needs a string pattern, got {value!r}")
        elif op is FilterOp.IS:
            if value is not None and not isinstance(value, bool):
                raise TypeError(f"is filter needs None or a bool, got {value!r}")


@dataclass(frozen=True)
class OrderBy:
    field: str
    ascending: bool = True


@dataclass
class DataReadOptions:
    """Options accepted by ``BackendData.read``."""

    id: Optional[str] = None
    filter: Optional[dict] = None
    filters: List[DataFilter] = field(default_factory=list)
    select: Union[str, Sequence[str], None] = None
    order_by: Union[OrderBy, Sequence[OrderBy], None] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


def apply_filter(query, data_filter: DataFilter):
    """Apply one filter to *query* and return the narrowed query."""
    op = data_filter.op
    name = data_filter.field
    value = data_filter.value
    if op is FilterOp.EQ:
        return query.eq(name, value)
    elif op is FilterOp.NEQ:
        return query.neq(name, value)
    elif op is FilterOp.GT:
        return query.gt(name, value)
    elif op is FilterOp.GTE:
        return query.gte(name, value)
    elif op is FilterOp.LT:
        return query.lt(name, value)
    elif op is FilterOp.LTE:
        return query.lte(name, value)
    elif op is FilterOp.LIKE:
        return query.like(name, value)
    elif op is FilterOp.ILIKE:
        return query.ilike(name, value)
    elif op is FilterOp.IN:
        return query.in_(name, list(value))
    elif op is FilterOp.CONTAINS:
        return query.contains(name, value)
    elif op is FilterOp.CONTAINED_BY:
        return query.contained_by(name, value)
    elif op is FilterOp.IS:
        return query.is_(name, value)
    raise ValueError(f"Unsupported filter operator: {op!r}")


def normalize_select(select) -> str:
    if not select:
        return "*"
    if isinstance(select, str):
        return select
    return ",".join(select)


def normalize_order_by(order_by) -> List[OrderBy]:
    if not order_by:
        return []
    if isinstance(order_by, OrderBy):
        return [order_by]
    return list(order_by)


def apply_read_options(query, options: Optional[DataReadOptions] = None):
    """Narrow a query built with ``select`` by id, filters, ordering and paging.

    *query* must already be a select query; the select list itself is taken
    from ``normalize_select(options.select)`` by the caller.
    """
    if options is None:
        return query
    if options.id:
        query = query.eq("id", options.id).limit(1)
    for key, value in (options.filter or {}).items():
        query = query.eq(key, value)
    for data_filter in options.filters:
        query = apply_filter(query, data_filter)
    for order in normalize_order_by(options.order_by):
        query = query.order(order.field, desc=not order.ascending)
    if options.limit:
        query = query.limit(options.limit)
    if options.offset is not None:
        end = options.offset + (options.limit or DEFAULT_PAGE_SIZE) - 1
        query = query.range(options.offset, end)
    return query
