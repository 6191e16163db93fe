"""쿼리 옵션 Pydantic 스키마.

Query option schema — the single configuration structure that carries
pagination, sort and projection into one query execution.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from docrepo.utils.exceptions import InvalidArgumentError
from docrepo.utils.query import validate_projection, validate_sort


class QueryOptions(BaseModel):
    """목록 조회 옵션 — 각 필드는 독립적으로 생략 가능.

    List query options; every field is independently optional.

    Attributes:
        limit: 최대 반환 레코드 수 (Maximum number of records returned)
        page: 페이지 번호, 1부터 시작. 0 이하면 건너뛰기 없음
              (1-based page number; page <= 0 disables skipping)
        sort: 정렬 명세 {필드: 1|-1} (Sort specification, None = engine order)
        projection: 필드 프로젝션 {필드: 0|1} (Field projection, empty = all fields)
    """

    model_config = ConfigDict(frozen=True)

    limit: int = 20  # 최대 반환 수 (Result size bound)
    page: int = 1  # 1부터 시작하는 페이지 (1-based page)
    sort: dict[str, int] | None = None  # 정렬 명세 (Sort specification)
    projection: dict[str, int] = {}  # 필드 프로젝션 (Field projection)

    @field_validator("limit")
    @classmethod
    def _check_limit(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("limit must be a positive integer")
        return value

    @field_validator("sort", mode="before")
    @classmethod
    def _check_sort(cls, value: Any) -> dict[str, int] | None:
        return validate_sort(value)

    @field_validator("projection", mode="before")
    @classmethod
    def _check_projection(cls, value: Any) -> dict[str, int]:
        return validate_projection(value)

    @property
    def skip(self) -> int:
        """건너뛸 레코드 수 — page가 0 이하이면 0.

        Number of records to skip: ``limit * (page - 1)``, or 0 when page <= 0.
        """
        if self.page > 0:
            return self.limit * (self.page - 1)
        return 0

    @classmethod
    def build(cls, **values: Any) -> "QueryOptions":
        """옵션을 생성하고 검증 실패를 InvalidArgumentError로 변환합니다.

        Build options, reporting validation failures as InvalidArgumentError.
        """
        try:
            return cls(**values)
        except ValidationError as exc:
            messages = "; ".join(err["msg"] for err in exc.errors())
            raise InvalidArgumentError(f"Invalid query options: {messages}") from exc
