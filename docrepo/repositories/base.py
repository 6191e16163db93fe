"""기본 문서 레포지토리 — 모든 레포지토리의 부모 클래스.

Base Document Repository — Parent class for all collection repositories.
Provides identifier validation, paginated/sorted/projected queries, and
single/bulk create and delete on top of one collection handle.

Usage:
    class NoteRepository(Repository[Document, Note]):
        def __init__(self, collection: Collection[Document]) -> None:
            super().__init__(collection, Note)

        async def create_many(self, data: list[Note]) -> list[Note]:
            ...
"""

from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from docrepo.collections.base import Collection, EntityType
from docrepo.config import settings
from docrepo.schemas.query import QueryOptions
from docrepo.utils.axiom_logging import AxiomOperationLogger
from docrepo.utils.exceptions import InvalidArgumentError, MethodNotImplementedError
from docrepo.utils.pagination import Page, build_page
from docrepo.utils.query import ID_FIELD, Document, Filter, Projection, Sort, validate_projection

# 제네릭 타입 변수 — 호출자에게 반환되는 결과 레코드 타입
# Generic type variable representing the plain-data result record
ResultType = TypeVar("ResultType")


class Repository(Generic[EntityType, ResultType]):
    """제네릭 문서 레포지토리.

    Generic document repository over a single collection handle.
    Holds no entity state; the collection binding is fixed at construction.

    Results are plain dicts unless ``result_type`` is given, in which case
    each stored document is mapped onto that type (pydantic models are
    validated with ``model_validate``). Result types used with projections
    should give every projected-away field a default.

    Storage errors raised by the collection propagate unmodified. A missing
    record is never an error: ``get`` returns None and ``remove`` is a no-op.

    Attributes:
        collection: 바인딩된 컬렉션 핸들 (The bound collection handle, read-only)
    """

    def __init__(
        self,
        collection: Collection[EntityType],
        result_type: type[ResultType] | None = None,
        logger: AxiomOperationLogger | None = None,
    ) -> None:
        """레포지토리를 초기화합니다.

        Initialize the repository with its collection handle.

        Args:
            collection: 이 레포지토리가 관리할 컬렉션 (Collection this repository manages)
            result_type: 결과 레코드 타입, None이면 dict (Result record type; None returns dicts)
            logger: 연산 로거 (Operation logger; defaults to the settings-configured Axiom logger)
        """
        self._collection: Collection[EntityType] = collection
        self._result_type: type[ResultType] | None = result_type
        self._logger: AxiomOperationLogger = logger or AxiomOperationLogger()

    @property
    def collection(self) -> Collection[EntityType]:
        return self._collection

    # ---------- Reads ----------
    async def get(self, record_id: str, projection: Projection | None = None) -> ResultType | None:
        """ID로 단일 레코드를 조회합니다.

        Retrieve a single record by its identifier.

        Args:
            record_id: 조회할 레코드 ID (Identifier of the record)
            projection: 필드 프로젝션 (Field projection, optional)

        Returns:
            ResultType | None: 조회된 레코드 또는 None (Found record or None)

        Raises:
            InvalidArgumentError: ID가 비었거나 형식이 잘못된 경우 (Empty or malformed id)
        """
        with self._logger.operation("get", self._collection.name, record_id=record_id) as event:
            self._validate_id(record_id)
            fields = validate_projection(projection)
            document = await self._collection.find_by_id(record_id, fields)
            event["found"] = document is not None

        if document is None:
            return None
        return self._to_result(document)

    async def get_all(
        self,
        limit: int = 20,
        page: int = 1,
        sort: Sort | None = None,
        projection: Projection | None = None,
    ) -> list[ResultType]:
        """모든 레코드를 페이지 단위로 조회합니다.

        Retrieve one page of all records.

        Args:
            limit: 최대 반환 수 (Maximum records returned, default 20)
            page: 페이지 번호, 1부터 시작 (1-based page, default 1; page <= 0 skips nothing)
            sort: 정렬 명세 (Sort specification, optional)
            projection: 필드 프로젝션 (Field projection, optional)

        Returns:
            list[ResultType]: 조회된 레코드 목록 (Matching records)
        """
        options = QueryOptions.build(limit=limit, page=page, sort=sort, projection=projection)
        return await self._query("get_all", {}, options)

    async def find(
        self,
        filter: Filter,
        limit: int = 10,
        page: int | Projection = 0,
        sort: Sort | None = None,
        projection: Projection | None = None,
    ) -> list[ResultType]:
        """필터에 일치하는 레코드를 조회합니다.

        Retrieve records matching ``filter``. The filter is passed to the
        collection unmodified.

        The third positional argument may be either the page number or a
        projection, so ``find(filter, 5, {"name": 1})`` reads the first five
        matches with only ``name`` populated.

        Args:
            filter: 검색 조건 (Filter expression)
            limit: 최대 반환 수 (Maximum records returned, default 10)
            page: 페이지 번호 또는 프로젝션 (1-based page, default 0 = no skip; or a projection)
            sort: 정렬 명세 (Sort specification, optional)
            projection: 필드 프로젝션 (Field projection, optional)

        Returns:
            list[ResultType]: 조회된 레코드 목록 (Matching records)
        """
        if isinstance(page, Mapping):
            if projection is not None:
                raise InvalidArgumentError("Projection given both positionally and by keyword")
            page, projection = 0, page

        options = QueryOptions.build(limit=limit, page=page, sort=sort, projection=projection)
        return await self._query("find", filter or {}, options)

    async def find_page(
        self,
        filter: Filter | None = None,
        page: int = 1,
        per_page: int | None = None,
        sort: Sort | None = None,
        projection: Projection | None = None,
    ) -> Page[ResultType]:
        """페이지네이션 메타데이터와 함께 레코드를 조회합니다.

        Retrieve one page of matching records together with the total count.
        Issues a count and a query, so the two may observe different states
        under concurrent writes.

        Args:
            filter: 검색 조건, None이면 전체 (Filter expression; None matches all)
            page: 현재 페이지 번호, 1부터 시작 (Current page number, 1-based)
            per_page: 페이지당 레코드 수 (Records per page, default from settings)

        Returns:
            Page[ResultType]: 항목과 페이지 정보 (Items plus pagination metadata)

        Raises:
            InvalidArgumentError: page < 1 또는 per_page > MAX_PAGE_SIZE
                (Page below 1 or per_page above the configured maximum)
        """
        if page < 1:
            raise InvalidArgumentError("page must be >= 1")
        per_page = per_page or settings.DEFAULT_PAGE_SIZE
        if per_page > settings.MAX_PAGE_SIZE:
            raise InvalidArgumentError(f"per_page must not exceed {settings.MAX_PAGE_SIZE}")
        options = QueryOptions.build(limit=per_page, page=page, sort=sort, projection=projection)

        total: int = await self._collection.count(filter or {})
        items = await self._query("find_page", filter or {}, options)
        return build_page(items, total, page, per_page)

    # ---------- Writes ----------
    async def create(self, data: ResultType | Mapping[str, Any]) -> ResultType:
        """새 레코드를 생성합니다.

        Create a new record and return it as stored, including any
        engine-assigned fields such as the generated id.

        Raises:
            InvalidArgumentError: 빈 데이터인 경우 (Empty or missing payload)
        """
        payload = self._to_payload(data)
        with self._logger.operation("create", self._collection.name, data=payload):
            document = await self._collection.insert_one(payload)
        return self._to_result(document)

    async def create_many(self, data: Sequence[ResultType]) -> list[ResultType]:
        """여러 레코드를 생성합니다 — 하위 클래스에서 반드시 재정의.

        Bulk creation extension point. The base repository does not
        implement it; concrete repositories must override it.

        Raises:
            MethodNotImplementedError: 항상 발생 (Always, on the base class)
        """
        raise MethodNotImplementedError()

    async def remove(self, record_id: str) -> None:
        """ID로 레코드를 삭제합니다. 존재하지 않는 ID는 무시됩니다.

        Delete a record by its identifier; a missing record is a no-op.

        Raises:
            InvalidArgumentError: ID가 비었거나 형식이 잘못된 경우 (Empty or malformed id)
        """
        with self._logger.operation("remove", self._collection.name, record_id=record_id):
            self._validate_id(record_id)
            await self._collection.delete_by_id(record_id)

    async def remove_many(self, ids: Sequence[str] | None = None) -> None:
        """여러 레코드를 삭제합니다.

        Delete several records in one storage request.

        Contract:
            - ``ids`` non-empty: only the records whose id is in ``ids`` are deleted.
            - ``ids`` empty or None: EVERY record in the collection is deleted.

        The blanket delete is irreversible; pass an explicit list to target records.

        Raises:
            InvalidArgumentError: ID 형식이 잘못된 경우 (Malformed id in ``ids``)
        """
        if isinstance(ids, (str, bytes)):
            raise InvalidArgumentError("ids must be a sequence of identifiers, not a string")

        targets: list[str] = list(ids or [])
        with self._logger.operation("remove_many", self._collection.name, ids=targets) as event:
            if targets:
                for record_id in targets:
                    self._validate_id(record_id)
                await self._collection.delete_many({ID_FIELD: {"$in": targets}})
            else:
                event["wipe"] = True
                await self._collection.delete_many({})

    # ---------- Helpers ----------
    async def _query(self, name: str, filter: Filter, options: QueryOptions) -> list[ResultType]:
        with self._logger.operation(
            name,
            self._collection.name,
            filter=dict(filter),
            limit=options.limit,
            page=options.page,
            sort=options.sort,
        ) as event:
            query = self._collection.find(filter, options.projection)

            if options.sort:
                query = query.sort(options.sort)

            if options.page > 0:
                query = query.skip(options.skip)

            query = query.limit(options.limit)

            documents = await query.to_list()
            event["count"] = len(documents)

        return [self._to_result(document) for document in documents]

    def _validate_id(self, record_id: Any) -> None:
        if not record_id or not self._collection.is_valid_id(record_id):
            raise InvalidArgumentError("Invalid Id")

    def _to_payload(self, data: Any) -> Document:
        if isinstance(data, BaseModel):
            if not data.model_fields_set:
                raise InvalidArgumentError("Empty object provided")
            payload: Document = data.model_dump()
            if payload.get(ID_FIELD) is None:
                payload.pop(ID_FIELD, None)
            return payload
        if not data:
            raise InvalidArgumentError("Empty object provided")
        if not isinstance(data, Mapping):
            raise InvalidArgumentError(f"Unsupported payload type: {type(data).__name__}")
        return dict(data)

    def _to_result(self, document: Document) -> ResultType:
        """저장 문서를 결과 레코드로 변환합니다.

        Map a plain stored document onto the result record type.
        """
        if self._result_type is None:
            return document  # type: ignore[return-value]
        if isinstance(self._result_type, type) and issubclass(self._result_type, BaseModel):
            return self._result_type.model_validate(document)
        return self._result_type(**document)
