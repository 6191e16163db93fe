"""컬렉션 핸들 인터페이스 — 저장소 엔진이 제공해야 하는 최소 기능.

Collection handle interface — The capability set a storage engine must offer
so that a Repository can sit on top of it.

All methods return plain ("lean") dict documents exposing their identifier
under ``id``; the engine strips its own metadata before returning.
Storage errors are raised as-is and never translated here.

Usage:
    class MyCollection(Collection[MyEntity]):
        ...
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from docrepo.utils.query import Document, Filter, Projection, Sort

# 제네릭 타입 변수 — 엔진이 저장하는 엔티티 타입
# Generic type variable representing the entity type the engine persists
EntityType = TypeVar("EntityType")


class Cursor(ABC):
    """정렬/건너뛰기/제한이 가능한 쿼리 커서.

    Ordered, skippable, limitable query over a collection.
    ``sort``, ``skip`` and ``limit`` return the cursor for chaining;
    nothing touches storage until ``to_list`` is awaited.
    """

    @abstractmethod
    def sort(self, sort: Sort) -> "Cursor":
        """정렬 명세를 적용합니다 (Apply a sort specification)."""

    @abstractmethod
    def skip(self, count: int) -> "Cursor":
        """앞에서부터 count개를 건너뜁니다 (Skip the first ``count`` matches)."""

    @abstractmethod
    def limit(self, count: int) -> "Cursor":
        """최대 count개로 결과를 제한합니다 (Bound the result size)."""

    @abstractmethod
    async def to_list(self) -> list[Document]:
        """쿼리를 실행하고 결과를 리스트로 반환합니다.

        Execute the query in a single storage request and materialize the results.
        """


class Collection(ABC, Generic[EntityType]):
    """단일 레코드 타입에 대한 저장소 컬렉션 핸들.

    Storage collection handle for one record type.

    Attributes:
        name: 컬렉션 이름 (Collection name)
    """

    def __init__(self, name: str) -> None:
        self.name: str = name

    @abstractmethod
    def is_valid_id(self, record_id: object) -> bool:
        """식별자가 엔진의 ID 형식에 맞는지 확인합니다.

        Check whether ``record_id`` matches the engine's identifier format.
        """

    @abstractmethod
    async def find_by_id(self, record_id: str, projection: Projection) -> Document | None:
        """ID로 단일 문서를 조회합니다. 없으면 None.

        Fetch one document by identifier, or None when it does not exist.
        """

    @abstractmethod
    def find(self, filter: Filter, projection: Projection) -> Cursor:
        """필터에 일치하는 문서에 대한 커서를 생성합니다.

        Build a cursor over documents matching ``filter``.
        """

    @abstractmethod
    async def insert_one(self, data: Document) -> Document:
        """문서 하나를 삽입하고 저장된 문서를 반환합니다.

        Insert one document and return it as stored, engine-assigned fields included.
        """

    @abstractmethod
    async def delete_by_id(self, record_id: str) -> None:
        """ID로 문서를 삭제합니다. 없는 ID는 무시합니다.

        Delete one document by identifier; a missing identifier is a no-op.
        """

    @abstractmethod
    async def delete_many(self, filter: Filter) -> None:
        """필터에 일치하는 모든 문서를 삭제합니다.

        Delete every document matching ``filter``; ``{}`` matches everything.
        """

    @abstractmethod
    async def count(self, filter: Filter) -> int:
        """필터에 일치하는 문서 수를 반환합니다 (Count matching documents)."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
