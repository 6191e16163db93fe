"""docrepo — 문서 저장소 위의 제네릭 레포지토리 계층.

Generic repository layer over document-oriented storage engines.
"""

from docrepo.collections.base import Collection, Cursor
from docrepo.collections.memory import MemoryCollection
from docrepo.repositories.base import Repository
from docrepo.schemas.query import QueryOptions
from docrepo.utils.exceptions import InvalidArgumentError, MethodNotImplementedError, RepositoryError
from docrepo.utils.pagination import Page

__all__ = [
    "Collection",
    "Cursor",
    "MemoryCollection",
    "Repository",
    "QueryOptions",
    "RepositoryError",
    "InvalidArgumentError",
    "MethodNotImplementedError",
    "Page",
]
