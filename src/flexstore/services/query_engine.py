"""
Record query pipeline.

`list_records` composes one SELECT over records from fixed stages, always in
this order:

1. match     database id, caller's tenant, not soft-deleted (never skipped)
2. search    case-insensitive substring over every text field, OR-ed
3. filter    per-key conditions from a closed operator set, AND-ed
4. sort      one field, typed from the schema; insertion order breaks ties
5. paginate  offset/limit after sort

Filter keys and values are bound parameters under the `values` JSON column;
no caller text is ever spliced into SQL.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union
from uuid import UUID

from sqlalchemy import Select, and_, cast, false, func, not_, or_, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session

from flexstore.auth.permissions import Permission
from flexstore.auth.rbac import Principal, requires
from flexstore.config import Settings, get_settings
from flexstore.errors import InvalidInput
from flexstore.metrics import record_queries_total
from flexstore.models.database_definition import Database, FieldType
from flexstore.models.record import Record
from flexstore.repositories.database_repository import DatabaseRepository
from flexstore.repositories.record_repository import RecordRepository
from flexstore.services.field_values import normalize_value, validate_key
from flexstore.services.pagination import resolve_page

logger = logging.getLogger(__name__)

COMPARISON_OPERATORS = {"$eq", "$ne", "$gt", "$gte", "$lt", "$lte"}
SET_OPERATORS = {"$in", "$nin"}
OPERATORS = COMPARISON_OPERATORS | SET_OPERATORS
# Operators that compare against the members of a multi-select list
MEMBERSHIP_OPERATORS = {"$eq", "$ne", "$in", "$nin"}

LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class SortSpec:
    field: str
    order: str = "asc"

    @property
    def descending(self) -> bool:
        return isinstance(self.order, str) and self.order.lower() == "desc"

    @classmethod
    def coerce(cls, sort: Union["SortSpec", Mapping[str, Any], None]) -> Optional["SortSpec"]:
        if sort is None or isinstance(sort, SortSpec):
            return sort
        if isinstance(sort, Mapping):
            return cls(field=sort.get("field"), order=sort.get("order") or "asc")
        raise InvalidInput("Sort must be an object with a field and an order", field="sort")


@dataclass
class RecordPage:
    items: list[dict[str, Any]] = field(default_factory=list)
    page: int = 1
    limit: int = 20


def format_record(record: Record) -> dict[str, Any]:
    """Flatten the value mapping into {field, value} pairs, in stored key order."""
    return {
        "id": record.id,
        "database_id": record.database_id,
        "values": [{"field": key, "value": value} for key, value in (record.values or {}).items()],
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


# -----------------------------------------------------------------------------
# Operand helpers
# -----------------------------------------------------------------------------
def _operand_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def _element(key: str, kind: str):
    element = Record.values[key]
    if kind == "boolean":
        return element.as_boolean()
    if kind == "number":
        return element.as_float()
    return element.as_string()


def _scalar_operand(key: str, op: str, value: Any) -> Any:
    if isinstance(value, (list, tuple, dict)):
        raise InvalidInput(f"Operator {op} on {key!r} expects a single value", field=key)
    return normalize_value(value, key)


def _set_operand(key: str, op: str, value: Any) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        raise InvalidInput(f"Operator {op} on {key!r} expects a list", field=key)
    items = [_scalar_operand(key, op, item) for item in value]
    if any(item is None for item in items):
        raise InvalidInput(f"Operator {op} on {key!r} does not accept null", field=key)
    if len({_operand_kind(item) for item in items}) > 1:
        raise InvalidInput(f"Operator {op} on {key!r} mixes value types", field=key)
    return items


def _contains_any(key: str, items: list[str], dialect: Optional[str]):
    """True when the list stored under `key` holds at least one of `items`."""
    if dialect == "postgresql":
        document = cast(Record.values[key], JSONB)
        return or_(*(document.contains([item]) for item in items))

    members = func.json_each(Record.values, f'$."{key}"').table_valued("value")
    return select(members.c.value).where(members.c.value.in_(items)).exists()


def _membership_predicate(key: str, op: str, operand: Any, dialect: Optional[str]):
    if op not in MEMBERSHIP_OPERATORS:
        raise InvalidInput(f"Operator {op} is not supported on multi-select {key!r}", field=key)

    if op in SET_OPERATORS:
        items = _set_operand(key, op, operand)
    else:
        value = _scalar_operand(key, op, operand)
        if value is None:
            return _predicate(key, op, None)
        items = [value]

    if any(not isinstance(item, str) for item in items):
        raise InvalidInput(f"Multi-select {key!r} only holds strings", field=key)
    if not items:
        return false() if op == "$in" else None

    contained = _contains_any(key, items, dialect)
    return not_(contained) if op in {"$ne", "$nin"} else contained


def _predicate(key: str, op: str, operand: Any):
    if op in SET_OPERATORS:
        items = _set_operand(key, op, operand)
        if not items:
            return false() if op == "$in" else None
        expr = _element(key, _operand_kind(items[0]))
        if op == "$in":
            return expr.in_(items)
        return or_(expr.not_in(items), expr.is_(None))

    value = _scalar_operand(key, op, operand)
    if value is None:
        if op == "$eq":
            return _element(key, "string").is_(None)
        if op == "$ne":
            return _element(key, "string").is_not(None)
        raise InvalidInput(f"Operator {op} on {key!r} does not accept null", field=key)

    expr = _element(key, _operand_kind(value))
    if op == "$eq":
        return expr == value
    if op == "$ne":
        return or_(expr != value, expr.is_(None))
    if op == "$gt":
        return expr > value
    if op == "$gte":
        return expr >= value
    if op == "$lt":
        return expr < value
    return expr <= value


def condition_to_predicates(
    key: str,
    condition: Any,
    *,
    multi_select: bool = False,
    dialect: Optional[str] = None,
) -> list:
    """
    Translate one `key: condition` filter entry into SQL predicates.

    On a multi-select field, `$eq`/`$in` match lists containing the operand(s)
    and `$ne`/`$nin` match lists containing none of them.
    """
    validate_key(key, "filter key")

    def build(op: str, operand: Any):
        if multi_select:
            return _membership_predicate(key, op, operand, dialect)
        return _predicate(key, op, operand)

    if not isinstance(condition, Mapping):
        if isinstance(condition, (list, tuple)):
            raise InvalidInput(f"Use $in to match {key!r} against a list", field=key)
        return [build("$eq", condition)]

    if not condition:
        raise InvalidInput(f"Condition for {key!r} has no operators", field=key)

    predicates = []
    for op, operand in condition.items():
        if op not in OPERATORS:
            raise InvalidInput(f"Unsupported operator {op!r} on {key!r}", field=key)
        predicate = build(op, operand)
        if predicate is not None:
            predicates.append(predicate)
    return predicates


def escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


# -----------------------------------------------------------------------------
# Pipeline stages
# -----------------------------------------------------------------------------
def match_stage(tenant_id: UUID, database_id: UUID) -> Select:
    return select(Record).where(
        Record.database_id == database_id,
        Record.tenant_id == tenant_id,
        Record.is_deleted.is_(False),
    )


def search_stage(statement: Select, database: Optional[Database], search: Optional[str]) -> Select:
    if search is None or not str(search).strip() or database is None:
        return statement

    text_fields = [f.name for f in database.fields if f.type == FieldType.TEXT.value]
    if not text_fields:
        return statement

    # Blank terms are skipped above; others are matched exactly as given
    pattern = f"%{escape_like(str(search))}%"
    return statement.where(
        or_(*(Record.values[name].as_string().ilike(pattern, escape=LIKE_ESCAPE) for name in text_fields))
    )


def filter_stage(
    statement: Select,
    filters: Optional[Mapping[str, Any]],
    database: Optional[Database] = None,
    dialect: Optional[str] = None,
) -> Select:
    if not filters:
        return statement
    if not isinstance(filters, Mapping):
        raise InvalidInput("Filter must be an object", field="filter")

    multi_select = set()
    if database is not None:
        multi_select = {f.name for f in database.fields if f.type == FieldType.MULTI_SELECT.value}

    predicates = []
    for key, condition in filters.items():
        predicates.extend(
            condition_to_predicates(
                key, condition, multi_select=key in multi_select, dialect=dialect
            )
        )
    if not predicates:
        return statement
    return statement.where(and_(*predicates))


def sort_stage(statement: Select, database: Optional[Database], sort: Optional[SortSpec]) -> Select:
    tie_breakers = (Record.created_at.asc(), Record.id.asc())
    if sort is None:
        return statement.order_by(*tie_breakers)

    key = validate_key(sort.field, "sort field")
    field_type = None
    if database is not None:
        for definition in database.fields:
            if definition.name == key:
                field_type = definition.type
                break

    if field_type == FieldType.NUMBER.value:
        expr = Record.values[key].as_float()
    elif field_type == FieldType.BOOLEAN.value:
        expr = Record.values[key].as_boolean()
    else:
        expr = Record.values[key].as_string()

    return statement.order_by(expr.desc() if sort.descending else expr.asc(), *tie_breakers)


def paginate_stage(statement: Select, page: int, limit: int) -> Select:
    return statement.offset((page - 1) * limit).limit(limit)


class QueryEngine:
    """Builds and runs the record query pipeline for one caller."""

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    def build_statement(
        self,
        tenant_id: UUID,
        database_id: UUID,
        *,
        database: Optional[Database] = None,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Union[SortSpec, Mapping[str, Any], None] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Select:
        dialect = self.db.get_bind().dialect.name
        statement = match_stage(tenant_id, database_id)
        statement = search_stage(statement, database, search)
        statement = filter_stage(statement, filter, database, dialect)
        statement = sort_stage(statement, database, SortSpec.coerce(sort))
        return paginate_stage(statement, page, limit)

    @requires(Permission.READ_RECORDS)
    def list_records(
        self,
        principal: Principal,
        database_id: UUID,
        *,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Union[SortSpec, Mapping[str, Any], None] = None,
        search: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> RecordPage:
        """
        Query the live records of one database in the caller's tenant.

        A database outside the tenant (or soft-deleted) yields an empty page.
        """
        page, limit = resolve_page(
            page,
            limit,
            default_limit=self.settings.records_default_limit,
            max_limit=self.settings.records_max_limit,
        )
        database = DatabaseRepository.get_by_id(
            self.db, tenant_id=principal.tenant_id, database_id=database_id
        )

        statement = self.build_statement(
            principal.tenant_id,
            database_id,
            database=database,
            filter=filter,
            sort=sort,
            search=search,
            page=page,
            limit=limit,
        )
        if database is None:
            logger.debug(
                "No live database=%s in tenant=%s, returning empty page",
                database_id,
                principal.tenant_id,
            )
            return RecordPage(items=[], page=page, limit=limit)

        records = RecordRepository.run_query(
            self.db, tenant_id=principal.tenant_id, statement=statement
        )
        record_queries_total.inc()

        logger.debug(
            "Listed %d records database=%s tenant=%s page=%s limit=%s",
            len(records),
            database_id,
            principal.tenant_id,
            page,
            limit,
        )
        return RecordPage(items=[format_record(r) for r in records], page=page, limit=limit)
