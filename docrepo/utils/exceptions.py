"""레포지토리 예외 클래스 모듈.

Repository exception classes module.
Only argument and contract errors are defined here. Storage failures
(connection errors, constraint violations) are raised by the storage engine
and reach the caller unmodified.

Usage:
    from docrepo.utils.exceptions import InvalidArgumentError
    raise InvalidArgumentError("Invalid Id")
"""


class RepositoryError(Exception):
    """레포지토리 계층 예외의 공통 부모 클래스.

    Base class for errors raised by the repository layer itself.
    """

    pass


class InvalidArgumentError(RepositoryError, ValueError):
    """잘못된 인자 예외 — 식별자/페이로드/페이지 값이 유효하지 않을 때 사용.

    Raised before any storage call when an argument is malformed:
    a missing or badly formatted identifier, an empty create payload,
    non-positive limits, or a projection mixing inclusion and exclusion.

    Args:
        detail: 오류 메시지 (Error message, default: "Invalid argument")
    """

    def __init__(self, detail: str = "Invalid argument") -> None:
        super().__init__(detail)
        self.detail: str = detail


class MethodNotImplementedError(RepositoryError, NotImplementedError):
    """미구현 메서드 예외 — 하위 클래스가 재정의해야 하는 연산에 사용.

    Raised by base-class operations that concrete repositories must override.

    Args:
        detail: 오류 메시지 (Error message, default: "Method not implemented.")
    """

    def __init__(self, detail: str = "Method not implemented.") -> None:
        super().__init__(detail)
        self.detail: str = detail
