"""인메모리 컬렉션 — 프로세스 내부 문서 저장소 엔진.

In-memory collection — A process-local document storage engine.
Matches MongoDB-style filters on top-level fields and assigns UUID v4
identifiers. Documents are deep-copied on the way in and out so callers
never share mutable state with the store.

Supported filter operators:
    $eq, $ne, $gt, $gte, $lt, $lte, $in, $nin, $exists, and top-level $and / $or
"""

import copy
import json
import uuid
from collections.abc import Mapping
from typing import Any, Callable

from docrepo.collections.base import Collection, Cursor
from docrepo.utils.query import (
    ID_FIELD,
    Document,
    Filter,
    Projection,
    Sort,
    apply_projection,
    is_canonical_uuid,
)


class DuplicateKeyError(Exception):
    """중복 식별자 삽입 시 발생하는 저장소 엔진 오류.

    Storage engine error raised when inserting a document whose id already exists.
    """

    pass


def _compare(op: Callable[[Any, Any], bool]) -> Callable[[Mapping[str, Any], str, Any], bool]:
    def _check(document: Mapping[str, Any], field: str, operand: Any) -> bool:
        value = document.get(field)
        if value is None or operand is None:
            return False
        try:
            return op(value, operand)
        except TypeError:
            # 타입이 다른 값끼리는 비교 불가 — Values of different types never match
            return False

    return _check


def _equals(document: Mapping[str, Any], field: str, operand: Any) -> bool:
    if field not in document:
        return operand is None
    value = document[field]
    if isinstance(value, list) and not isinstance(operand, list):
        return operand in value
    return value == operand


def _in(document: Mapping[str, Any], field: str, operand: Any) -> bool:
    if not isinstance(operand, (list, tuple, set, frozenset)):
        raise ValueError("$in/$nin operand must be a list")
    return any(_equals(document, field, candidate) for candidate in operand)


_OPERATORS: dict[str, Callable[[Mapping[str, Any], str, Any], bool]] = {
    "$eq": _equals,
    "$ne": lambda doc, field, operand: not _equals(doc, field, operand),
    "$gt": _compare(lambda a, b: a > b),
    "$gte": _compare(lambda a, b: a >= b),
    "$lt": _compare(lambda a, b: a < b),
    "$lte": _compare(lambda a, b: a <= b),
    "$in": _in,
    "$nin": lambda doc, field, operand: not _in(doc, field, operand),
    "$exists": lambda doc, field, operand: (field in doc) == bool(operand),
}


def matches(document: Mapping[str, Any], filter: Filter) -> bool:
    """문서가 필터 조건을 모두 만족하는지 확인합니다.

    Check whether ``document`` satisfies every condition in ``filter``.

    Raises:
        ValueError: 지원하지 않는 연산자 (Unsupported operator)
    """
    for field, condition in filter.items():
        if field == "$and":
            if not all(matches(document, sub) for sub in condition):
                return False
        elif field == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
        elif field.startswith("$"):
            raise ValueError(f"Unsupported top-level operator: {field}")
        elif isinstance(condition, Mapping) and condition and all(
            str(key).startswith("$") for key in condition
        ):
            for op, operand in condition.items():
                check = _OPERATORS.get(op)
                if check is None:
                    raise ValueError(f"Unsupported filter operator: {op}")
                if not check(document, field, operand):
                    return False
        elif not _equals(document, field, condition):
            return False
    return True


def _type_rank(value: Any) -> int:
    # jsonb 타입 순서: null < string < number < boolean < array < object
    if isinstance(value, str):
        return 1
    if isinstance(value, bool):
        return 3
    if isinstance(value, (int, float)):
        return 2
    if isinstance(value, (list, tuple)):
        return 4
    if isinstance(value, Mapping):
        return 5
    return 6


def _sort_key(field: str) -> Callable[[Document], tuple]:
    # None/누락 값은 가장 앞에 정렬 — Missing and null values sort lowest
    def _key(document: Document) -> tuple:
        value = document.get(field)
        if value is None:
            return (0,)
        rank = _type_rank(value)
        if rank in (4, 5):
            # 배열/객체는 직렬화 문자열로 비교 — compared by their canonical JSON text
            return (1, rank, json.dumps(value, sort_keys=True, default=str))
        return (1, rank, value)

    return _key


class MemoryCursor(Cursor):
    """인메모리 컬렉션 커서 (Cursor over a MemoryCollection snapshot)."""

    def __init__(self, collection: "MemoryCollection", filter: Filter, projection: Projection) -> None:
        self._collection = collection
        self._filter: Filter = filter
        self._projection: Projection = projection
        self._sort: Sort | None = None
        self._skip: int = 0
        self._limit: int | None = None

    def sort(self, sort: Sort) -> "MemoryCursor":
        self._sort = sort
        return self

    def skip(self, count: int) -> "MemoryCursor":
        self._skip = count
        return self

    def limit(self, count: int) -> "MemoryCursor":
        self._limit = count
        return self

    async def to_list(self) -> list[Document]:
        documents = [doc for doc in self._collection._documents.values() if matches(doc, self._filter)]

        if self._sort:
            # 마지막 키부터 안정 정렬 — Stable sort applied from the last key backwards
            for field, direction in reversed(list(self._sort.items())):
                documents.sort(key=_sort_key(field), reverse=direction < 0)

        end = self._skip + self._limit if self._limit else None
        return [
            apply_projection(copy.deepcopy(doc), self._projection)
            for doc in documents[self._skip:end]
        ]


class MemoryCollection(Collection[Document]):
    """프로세스 메모리에 문서를 보관하는 컬렉션.

    Collection keeping documents in process memory, in insertion order.
    """

    def __init__(self, name: str, documents: list[Document] | None = None) -> None:
        super().__init__(name)
        self._documents: dict[str, Document] = {}
        for document in documents or []:
            self._store(document)

    def _store(self, data: Mapping[str, Any]) -> Document:
        document: Document = copy.deepcopy(dict(data))
        record_id = document.get(ID_FIELD) or str(uuid.uuid4())
        if not self.is_valid_id(record_id):
            raise ValueError(f"Invalid document id: {record_id!r}")
        if record_id in self._documents:
            raise DuplicateKeyError(f"Document {record_id} already exists in {self.name}")
        document[ID_FIELD] = record_id
        self._documents[record_id] = document
        return document

    def is_valid_id(self, record_id: object) -> bool:
        return is_canonical_uuid(record_id)

    async def find_by_id(self, record_id: str, projection: Projection) -> Document | None:
        document = self._documents.get(record_id)
        if document is None:
            return None
        return apply_projection(copy.deepcopy(document), projection)

    def find(self, filter: Filter, projection: Projection) -> MemoryCursor:
        return MemoryCursor(self, filter or {}, projection)

    async def insert_one(self, data: Document) -> Document:
        return copy.deepcopy(self._store(data))

    async def delete_by_id(self, record_id: str) -> None:
        self._documents.pop(record_id, None)

    async def delete_many(self, filter: Filter) -> None:
        doomed = [record_id for record_id, doc in self._documents.items() if matches(doc, filter or {})]
        for record_id in doomed:
            del self._documents[record_id]

    async def count(self, filter: Filter) -> int:
        return sum(1 for doc in self._documents.values() if matches(doc, filter or {}))

    def __len__(self) -> int:
        return len(self._documents)
