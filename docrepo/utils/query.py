"""쿼리 구성 유틸리티 모듈.

Query construction utilities shared by the repository and every collection
engine: projection validation/application and sort key helpers.

Projection follows MongoDB rules on top-level fields:
    {"name": 1}         → id + name
    {"name": 1, "id": 0} → name only
    {"secret": 0}       → every field except secret
    {}                  → every field
"""

import uuid
from collections.abc import Mapping
from typing import Any

from docrepo.utils.exceptions import InvalidArgumentError

# 문서 식별자 필드 이름 — Key under which every stored document exposes its identifier
ID_FIELD: str = "id"

# 정렬 방향 — Sort directions
ASCENDING: int = 1
DESCENDING: int = -1

Document = dict[str, Any]
Projection = Mapping[str, int | bool]
Sort = Mapping[str, int]
Filter = Mapping[str, Any]


def validate_projection(projection: Projection | None) -> dict[str, int]:
    """프로젝션을 검증하고 {필드: 0|1} 형태로 정규화합니다.

    Validate a projection and normalize its flags to 0/1.
    Inclusion and exclusion may not be mixed, except for the id field.

    Raises:
        InvalidArgumentError: 포함/제외 혼용 또는 잘못된 형식
                              (Mixed inclusion/exclusion or malformed input)
    """
    if not projection:
        return {}
    if not isinstance(projection, Mapping):
        raise InvalidArgumentError("Projection must be a mapping of field names to 0/1")

    normalized: dict[str, int] = {}
    for field, flag in projection.items():
        if not isinstance(field, str) or not field:
            raise InvalidArgumentError("Projection field names must be non-empty strings")
        if flag not in (0, 1):
            raise InvalidArgumentError(f"Projection flag for '{field}' must be 0 or 1")
        normalized[field] = int(flag)

    flags = {flag for field, flag in normalized.items() if field != ID_FIELD}
    if len(flags) > 1:
        raise InvalidArgumentError("Projection cannot mix inclusion and exclusion")
    return normalized


def apply_projection(document: Mapping[str, Any], projection: Projection | None) -> Document:
    """검증된 프로젝션을 문서에 적용한 사본을 반환합니다.

    Return a shallow copy of ``document`` narrowed by an already validated projection.
    """
    if not projection:
        return dict(document)

    include_id: bool = bool(projection.get(ID_FIELD, 1))
    fields: dict[str, int] = {k: int(v) for k, v in projection.items() if k != ID_FIELD}

    if not fields:
        # id만 지정된 경우 — Only the id flag was given
        if include_id:
            return {ID_FIELD: document[ID_FIELD]} if ID_FIELD in document else {}
        return {k: v for k, v in document.items() if k != ID_FIELD}

    if all(fields.values()):
        result: Document = {}
        if include_id and ID_FIELD in document:
            result[ID_FIELD] = document[ID_FIELD]
        for field in fields:
            if field in document:
                result[field] = document[field]
        return result

    result = {k: v for k, v in document.items() if k not in fields}
    if not include_id:
        result.pop(ID_FIELD, None)
    return result


def validate_sort(sort: Sort | None) -> dict[str, int] | None:
    """정렬 명세를 검증합니다. 방향은 1(오름차순) 또는 -1(내림차순)만 허용.

    Validate a sort specification; directions must be 1 or -1.
    """
    if not sort:
        return None
    if not isinstance(sort, Mapping):
        raise InvalidArgumentError("Sort must be a mapping of field names to 1/-1")
    normalized: dict[str, int] = {}
    for field, direction in sort.items():
        if isinstance(direction, bool) or direction not in (ASCENDING, DESCENDING):
            raise InvalidArgumentError(f"Sort direction for '{field}' must be 1 or -1")
        normalized[field] = int(direction)
    return normalized


def is_canonical_uuid(value: object) -> bool:
    """값이 정규 형식(소문자, 하이픈 포함)의 UUID 문자열인지 확인합니다.

    Check that ``value`` is a UUID string in canonical lowercase hyphenated form.
    """
    if not isinstance(value, str) or not value:
        return False
    try:
        return str(uuid.UUID(value)) == value
    except ValueError:
        return False
