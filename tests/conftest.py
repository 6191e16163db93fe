"""테스트 인프라 — 인메모리 컬렉션과 레포지토리 픽스처.

Test infrastructure — In-memory collection and repository fixtures.
Every test gets a fresh collection seeded with five notes.
"""

import uuid

import pytest

from docrepo.collections.memory import MemoryCollection
from docrepo.repositories.base import Repository
from docrepo.utils.axiom_logging import AxiomOperationLogger

# ---------------------------------------------------------------------------
# 시드 데이터 — Five notes with fixed, ordered identifiers
# ---------------------------------------------------------------------------
NOTE_IDS = [str(uuid.UUID(int=i)) for i in range(1, 6)]

NOTES = [
    {"id": NOTE_IDS[0], "name": "alpha", "priority": 3, "tags": ["work"], "secret": "s1"},
    {"id": NOTE_IDS[1], "name": "bravo", "priority": 1, "tags": ["home"], "secret": "s2"},
    {"id": NOTE_IDS[2], "name": "charlie", "priority": 5, "tags": ["work", "urgent"], "secret": "s3"},
    {"id": NOTE_IDS[3], "name": "delta", "priority": 2, "tags": [], "secret": "s4"},
    {"id": NOTE_IDS[4], "name": "echo", "priority": 4, "tags": ["home"], "secret": "s5"},
]

MISSING_ID = str(uuid.UUID(int=99))


@pytest.fixture
def collection() -> MemoryCollection:
    """다섯 개의 노트가 들어있는 컬렉션 (Collection seeded with five notes)."""
    return MemoryCollection("notes", NOTES)


@pytest.fixture
def empty_collection() -> MemoryCollection:
    return MemoryCollection("notes")


@pytest.fixture
def logger() -> AxiomOperationLogger:
    """Axiom 비활성 로거 (Logger with Axiom disabled)."""
    return AxiomOperationLogger(client=None, dataset="")


@pytest.fixture
def repo(collection: MemoryCollection, logger: AxiomOperationLogger) -> Repository:
    return Repository(collection, logger=logger)
