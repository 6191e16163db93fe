"""SQLAlchemy 컬렉션 — PostgreSQL JSONB 기반 문서 저장소 엔진.

SQLAlchemy collection — A document storage engine on top of PostgreSQL JSONB.
Every collection shares the ``documents`` table; MongoDB-style filters are
compiled into SQLAlchemy expressions and sort/skip/limit are pushed into
the SELECT, so each operation is one statement in its own session.

Filter compilation:
    {"name": "a"}                → data @> '{"name": "a"}'
    {"age": {"$gte": 18}}        → jsonb_typeof(data->'age') = 'number' AND data->'age' >= '18'
    {"id": {"$in": [...]}}       → documents.id IN (...)
"""

from collections.abc import Mapping
from typing import Any, Callable

from sqlalchemy import ColumnElement, Delete, Select, and_, delete, false, func, literal, not_, or_, select, true
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docrepo.collections.base import Collection, Cursor
from docrepo.models.document import DocumentRecord, generate_document_id
from docrepo.utils.query import (
    ID_FIELD,
    Document,
    Filter,
    Projection,
    Sort,
    apply_projection,
    is_canonical_uuid,
)

# JSON 값 타입 이름 — jsonb_typeof() result for each Python operand type
_JSON_TYPES: tuple[tuple[type | tuple[type, ...], str], ...] = (
    (bool, "boolean"),
    ((int, float), "number"),
    (str, "string"),
)

_RANGE_OPERATORS: dict[str, Callable[[Any, Any], ColumnElement[bool]]] = {
    "$gt": lambda column, value: column > value,
    "$gte": lambda column, value: column >= value,
    "$lt": lambda column, value: column < value,
    "$lte": lambda column, value: column <= value,
}


def _json_type(operand: Any) -> str:
    for python_type, json_type in _JSON_TYPES:
        if isinstance(operand, python_type):
            return json_type
    raise ValueError(f"Unsupported range operand type: {type(operand).__name__}")


def _equals(field: str, value: Any) -> ColumnElement[bool]:
    if field == ID_FIELD:
        return DocumentRecord.id == value if value is not None else false()
    if value is None:
        # null은 누락된 필드와도 일치 — null also matches a missing field
        return or_(DocumentRecord.data.contains({field: None}), not_(DocumentRecord.data.has_key(field)))
    return DocumentRecord.data.contains({field: value})


def _in(field: str, values: Any) -> ColumnElement[bool]:
    if not isinstance(values, (list, tuple, set, frozenset)):
        raise ValueError("$in/$nin operand must be a list")
    if not values:
        return false()
    if field == ID_FIELD:
        return DocumentRecord.id.in_([v for v in values if v is not None])
    return or_(*(_equals(field, value) for value in values))


def _operator(field: str, op: str, operand: Any) -> ColumnElement[bool]:
    if op == "$eq":
        return _equals(field, operand)
    if op == "$ne":
        return not_(_equals(field, operand))
    if op == "$in":
        return _in(field, operand)
    if op == "$nin":
        return not_(_in(field, operand))
    if op == "$exists":
        if field == ID_FIELD:
            return true() if operand else false()
        present = DocumentRecord.data.has_key(field)
        return present if operand else not_(present)
    if op in _RANGE_OPERATORS:
        compare = _RANGE_OPERATORS[op]
        if field == ID_FIELD:
            return compare(DocumentRecord.id, operand)
        element = DocumentRecord.data[field]
        return and_(
            func.jsonb_typeof(element) == _json_type(operand),
            compare(element, literal(operand, JSONB)),
        )
    raise ValueError(f"Unsupported filter operator: {op}")


def compile_filter(filter: Filter) -> list[ColumnElement[bool]]:
    """MongoDB 스타일 필터를 SQLAlchemy 조건 목록으로 변환합니다.

    Compile a MongoDB-style filter into a list of SQLAlchemy conditions
    that must all hold.

    Raises:
        ValueError: 지원하지 않는 연산자 또는 피연산자 (Unsupported operator or operand)
    """
    conditions: list[ColumnElement[bool]] = []
    for field, condition in (filter or {}).items():
        if field == "$and":
            conditions.append(and_(true(), *(and_(true(), *compile_filter(sub)) for sub in condition)))
        elif field == "$or":
            conditions.append(or_(false(), *(and_(true(), *compile_filter(sub)) for sub in condition)))
        elif field.startswith("$"):
            raise ValueError(f"Unsupported top-level operator: {field}")
        elif isinstance(condition, Mapping) and condition and all(
            str(key).startswith("$") for key in condition
        ):
            conditions.extend(_operator(field, op, operand) for op, operand in condition.items())
        else:
            conditions.append(_equals(field, condition))
    return conditions


def _order_by(sort: Sort) -> list[Any]:
    clauses: list[Any] = []
    for field, direction in sort.items():
        column = DocumentRecord.id if field == ID_FIELD else DocumentRecord.data[field]
        # null/누락 값이 가장 낮게 정렬 — Missing and null values sort lowest
        clauses.append(column.asc().nulls_first() if direction > 0 else column.desc().nulls_last())
    return clauses


def to_document(record: DocumentRecord, projection: Projection | None = None) -> Document:
    """ORM 레코드를 일반 문서로 변환합니다 (엔진 메타데이터 제거).

    Convert an ORM record into a plain document, stripping engine metadata.
    """
    document: Document = dict(record.data or {})
    document[ID_FIELD] = record.id
    return apply_projection(document, projection)


class SQLAlchemyCursor(Cursor):
    """SQLAlchemy SELECT 문을 감싸는 커서 (Cursor wrapping a SQLAlchemy SELECT)."""

    def __init__(self, collection: "SQLAlchemyCollection", filter: Filter, projection: Projection) -> None:
        self._collection = collection
        self._conditions: list[ColumnElement[bool]] = collection.where(filter)
        self._projection: Projection = projection
        self._order_by: list[Any] = []
        self._offset: int = 0
        self._limit: int | None = None

    def sort(self, sort: Sort) -> "SQLAlchemyCursor":
        self._order_by = _order_by(sort)
        return self

    def skip(self, count: int) -> "SQLAlchemyCursor":
        self._offset = count
        return self

    def limit(self, count: int) -> "SQLAlchemyCursor":
        self._limit = count
        return self

    @property
    def statement(self) -> Select:
        """실행될 SELECT 문 (The SELECT statement this cursor executes)."""
        query: Select = select(DocumentRecord).where(*self._conditions)
        if self._order_by:
            query = query.order_by(*self._order_by, DocumentRecord.id)
        else:
            # 기본 정렬: 생성 순서 — Stable insertion order keeps OFFSET/LIMIT pages disjoint
            query = query.order_by(DocumentRecord.created_at, DocumentRecord.id)
        if self._offset:
            query = query.offset(self._offset)
        if self._limit:
            query = query.limit(self._limit)
        return query

    async def to_list(self) -> list[Document]:
        async with self._collection.session_factory() as session:
            result = await session.execute(self.statement)
            records = result.scalars().all()
        return [to_document(record, self._projection) for record in records]


class SQLAlchemyCollection(Collection[DocumentRecord]):
    """PostgreSQL 문서 테이블의 한 컬렉션.

    One named collection inside the PostgreSQL documents table.
    Each operation opens its own session from ``session_factory`` and
    commits before returning. Database errors propagate unmodified.

    Attributes:
        name: 컬렉션 이름 (Collection name)
        session_factory: 비동기 세션 팩토리 (Async session factory)
    """

    def __init__(
        self,
        name: str,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        super().__init__(name)
        if session_factory is None:
            from docrepo.database import async_session

            session_factory = async_session
        self.session_factory: async_sessionmaker[AsyncSession] = session_factory

    def where(self, filter: Filter) -> list[ColumnElement[bool]]:
        """컬렉션 범위 조건과 필터 조건을 합칩니다.

        Collection scope plus the compiled filter conditions.
        """
        return [DocumentRecord.collection == self.name, *compile_filter(filter)]

    def is_valid_id(self, record_id: object) -> bool:
        return is_canonical_uuid(record_id)

    async def find_by_id(self, record_id: str, projection: Projection) -> Document | None:
        query: Select = select(DocumentRecord).where(
            DocumentRecord.collection == self.name, DocumentRecord.id == record_id
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            record: DocumentRecord | None = result.scalar_one_or_none()
        if record is None:
            return None
        return to_document(record, projection)

    def find(self, filter: Filter, projection: Projection) -> SQLAlchemyCursor:
        return SQLAlchemyCursor(self, filter, projection)

    async def insert_one(self, data: Document) -> Document:
        payload: Document = dict(data)
        record_id = payload.pop(ID_FIELD, None) or generate_document_id()
        if not self.is_valid_id(record_id):
            raise ValueError(f"Invalid document id: {record_id!r}")

        record = DocumentRecord(id=record_id, collection=self.name, data=payload)
        async with self.session_factory() as session:
            session.add(record)
            await session.flush()
            await session.refresh(record)
            # 커밋 전에 변환 — commit may expire the instance's attributes
            document = to_document(record)
            await session.commit()
        return document

    async def delete_by_id(self, record_id: str) -> None:
        statement: Delete = delete(DocumentRecord).where(
            DocumentRecord.collection == self.name, DocumentRecord.id == record_id
        )
        await self._execute(statement)

    async def delete_many(self, filter: Filter) -> None:
        statement: Delete = delete(DocumentRecord).where(*self.where(filter))
        await self._execute(statement)

    async def count(self, filter: Filter) -> int:
        query: Select = select(func.count()).select_from(DocumentRecord).where(*self.where(filter))
        async with self.session_factory() as session:
            return (await session.execute(query)).scalar() or 0

    async def _execute(self, statement: Delete) -> None:
        async with self.session_factory() as session:
            await session.execute(statement)
            await session.commit()
