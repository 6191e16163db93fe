"""SQLAlchemy 컬렉션 유닛 테스트 (Mock DB).

Tests filter compilation, statement construction and the session flow of
SQLAlchemyCollection with a mocked async session factory.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from docrepo.collections.sql import SQLAlchemyCollection, compile_filter, to_document
from docrepo.models.document import DocumentRecord
from docrepo.repositories.base import Repository
from docrepo.utils.exceptions import InvalidArgumentError

from tests.conftest import MISSING_ID, NOTE_IDS


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_session_factory(records: list[DocumentRecord] | None = None, total: int = 0):
    """Create a mocked session factory yielding one async session."""
    session = AsyncMock()
    session.add = MagicMock()
    result = MagicMock()
    result.scalars.return_value.all.return_value = records or []
    result.scalar_one_or_none.return_value = records[0] if records else None
    result.scalar.return_value = total
    session.execute.return_value = result

    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return factory, session


def compile_sql(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


def make_record(record_id: str, **data) -> DocumentRecord:
    return DocumentRecord(id=record_id, collection="notes", data=data)


def executed_statement(session: AsyncMock):
    return session.execute.await_args.args[0]


# ---------------------------------------------------------------------------
# 1. compile_filter() 테스트
# ---------------------------------------------------------------------------

class TestCompileFilter:
    """필터 → SQL 조건 변환 검증."""

    def test_empty_filter(self):
        assert compile_filter({}) == []

    def test_equality_uses_containment(self):
        (condition,) = compile_filter({"name": "alpha"})
        assert "documents.data @>" in compile_sql(condition)

    def test_id_equality_uses_primary_key(self):
        (condition,) = compile_filter({"id": NOTE_IDS[0]})
        assert compile_sql(condition).startswith("documents.id =")

    def test_id_in(self):
        (condition,) = compile_filter({"id": {"$in": NOTE_IDS[:2]}})
        assert "documents.id IN" in compile_sql(condition)

    def test_empty_in_matches_nothing(self):
        (condition,) = compile_filter({"name": {"$in": []}})
        assert compile_sql(condition) == "false"

    def test_range_checks_json_type(self):
        (condition,) = compile_filter({"priority": {"$gte": 3}})
        sql = compile_sql(condition)
        assert "jsonb_typeof" in sql
        assert ">=" in sql

    def test_exists(self):
        (condition,) = compile_filter({"name": {"$exists": True}})
        assert "?" in compile_sql(condition)

    def test_or(self):
        (condition,) = compile_filter({"$or": [{"name": "a"}, {"name": "b"}]})
        assert " OR " in compile_sql(condition)

    def test_unsupported_operator(self):
        with pytest.raises(ValueError, match="Unsupported filter operator"):
            compile_filter({"name": {"$regex": "^a"}})

    def test_unsupported_range_operand(self):
        with pytest.raises(ValueError):
            compile_filter({"priority": {"$gt": {"nested": 1}}})


# ---------------------------------------------------------------------------
# 2. 커서/SELECT 구성 테스트
# ---------------------------------------------------------------------------

class TestSQLAlchemyCursor:
    """커서가 정렬/건너뛰기/제한을 SELECT에 반영하는지 검증."""

    def test_statement_is_scoped_to_collection(self):
        factory, _ = make_session_factory()
        collection = SQLAlchemyCollection("notes", factory)
        sql = compile_sql(collection.find({}, {}).statement)
        assert "documents.collection =" in sql
        assert "LIMIT" not in sql

    def test_unsorted_statement_orders_by_insertion(self):
        factory, _ = make_session_factory()
        collection = SQLAlchemyCollection("notes", factory)
        sql = compile_sql(collection.find({}, {}).skip(2).limit(2).statement)
        assert "ORDER BY documents.created_at, documents.id" in sql
        assert "OFFSET" in sql

    def test_sort_skip_limit(self):
        factory, _ = make_session_factory()
        collection = SQLAlchemyCollection("notes", factory)
        cursor = collection.find({"name": "a"}, {}).sort({"priority": -1, "id": 1}).skip(4).limit(2)
        sql = compile_sql(cursor.statement)
        assert "ORDER BY" in sql
        assert "DESC NULLS LAST" in sql
        assert "documents.id ASC NULLS FIRST" in sql
        assert "documents.id ASC NULLS FIRST, documents.id" in sql
        assert "LIMIT" in sql
        assert "OFFSET" in sql

    async def test_to_list_applies_projection(self):
        records = [make_record(NOTE_IDS[0], name="alpha", secret="s")]
        factory, session = make_session_factory(records)
        collection = SQLAlchemyCollection("notes", factory)

        docs = await collection.find({}, {"name": 1}).to_list()

        assert docs == [{"id": NOTE_IDS[0], "name": "alpha"}]
        session.execute.assert_awaited_once()


# ---------------------------------------------------------------------------
# 3. 컬렉션 연산 테스트
# ---------------------------------------------------------------------------

class TestSQLAlchemyCollection:
    """단일/일괄 연산의 세션 흐름 검증."""

    def test_to_document_strips_metadata(self):
        record = make_record(NOTE_IDS[0], name="alpha")
        assert to_document(record) == {"id": NOTE_IDS[0], "name": "alpha"}

    async def test_find_by_id_missing(self):
        factory, _ = make_session_factory()
        collection = SQLAlchemyCollection("notes", factory)
        assert await collection.find_by_id(MISSING_ID, {}) is None

    async def test_insert_one(self):
        factory, session = make_session_factory()
        collection = SQLAlchemyCollection("notes", factory)

        doc = await collection.insert_one({"name": "foxtrot", "priority": 6})

        record = session.add.call_args.args[0]
        assert isinstance(record, DocumentRecord)
        assert record.collection == "notes"
        assert record.data == {"name": "foxtrot", "priority": 6}
        session.flush.assert_awaited_once()
        session.commit.assert_awaited_once()
        assert doc == {"id": record.id, "name": "foxtrot", "priority": 6}
        assert collection.is_valid_id(doc["id"])

    async def test_insert_one_survives_expire_on_commit(self):
        """expire_on_commit=True 세션: 커밋 후 속성이 만료되어도 문서가 반환되어야 함."""
        factory, session = make_session_factory()

        def expire_added_record():
            # 커밋 시 속성 만료 흉내 — stand-in for attributes expired by commit
            record = session.add.call_args.args[0]
            record.data = None

        session.commit.side_effect = expire_added_record
        collection = SQLAlchemyCollection("notes", factory)

        doc = await collection.insert_one({"name": "golf", "priority": 7})

        session.commit.assert_awaited_once()
        assert doc["name"] == "golf"
        assert doc["priority"] == 7
        assert collection.is_valid_id(doc["id"])

    async def test_insert_one_keeps_given_id(self):
        factory, session = make_session_factory()
        collection = SQLAlchemyCollection("notes", factory)
        doc = await collection.insert_one({"id": NOTE_IDS[1], "name": "bravo"})
        assert doc["id"] == NOTE_IDS[1]
        assert "id" not in session.add.call_args.args[0].data

    async def test_insert_one_invalid_id(self):
        factory, session = make_session_factory()
        collection = SQLAlchemyCollection("notes", factory)
        with pytest.raises(ValueError):
            await collection.insert_one({"id": "bogus"})
        session.add.assert_not_called()

    async def test_delete_many_all(self):
        factory, session = make_session_factory()
        collection = SQLAlchemyCollection("notes", factory)

        await collection.delete_many({})

        sql = compile_sql(executed_statement(session))
        assert sql.startswith("DELETE FROM documents")
        assert "documents.collection =" in sql
        session.commit.assert_awaited_once()

    async def test_delete_by_id(self):
        factory, session = make_session_factory()
        collection = SQLAlchemyCollection("notes", factory)
        await collection.delete_by_id(NOTE_IDS[0])
        sql = compile_sql(executed_statement(session))
        assert "documents.id =" in sql

    async def test_count(self):
        factory, _ = make_session_factory(total=7)
        collection = SQLAlchemyCollection("notes", factory)
        assert await collection.count({"name": "a"}) == 7

    async def test_storage_error_propagates(self):
        from sqlalchemy.exc import OperationalError

        factory, session = make_session_factory()
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
        collection = SQLAlchemyCollection("notes", factory)

        with pytest.raises(OperationalError):
            await collection.count({})


# ---------------------------------------------------------------------------
# 4. 레포지토리 + SQL 컬렉션 연동
# ---------------------------------------------------------------------------

class TestRepositoryOnSQL:
    """레포지토리가 SQL 컬렉션에 한 번의 요청만 보내는지 검증."""

    async def test_get_all_builds_single_paged_query(self, logger):
        records = [make_record(NOTE_IDS[2], name="charlie")]
        factory, session = make_session_factory(records)
        repo = Repository(SQLAlchemyCollection("notes", factory), logger=logger)

        notes = await repo.get_all(limit=2, page=2, sort={"name": 1}, projection={"name": 1})

        assert notes == [{"id": NOTE_IDS[2], "name": "charlie"}]
        session.execute.assert_awaited_once()
        statement = executed_statement(session)
        assert statement._limit == 2
        assert statement._offset == 2

    async def test_remove_many_targets_ids(self, logger):
        factory, session = make_session_factory()
        repo = Repository(SQLAlchemyCollection("notes", factory), logger=logger)

        await repo.remove_many(NOTE_IDS[:2])

        sql = compile_sql(executed_statement(session))
        assert "documents.id IN" in sql

    async def test_invalid_id_skips_session(self, logger):
        factory, _ = make_session_factory()
        repo = Repository(SQLAlchemyCollection("notes", factory), logger=logger)
        with pytest.raises(InvalidArgumentError):
            await repo.remove("bogus")
        factory.assert_not_called()


class TestCreateSchema:
    """스키마 생성 헬퍼 검증."""

    async def test_create_schema_runs_create_all(self):
        from docrepo.database import Base, create_schema

        conn = AsyncMock()
        engine = MagicMock()
        engine.begin.return_value.__aenter__.return_value = conn
        engine.begin.return_value.__aexit__.return_value = False

        await create_schema(engine)

        conn.run_sync.assert_awaited_once_with(Base.metadata.create_all)
        assert DocumentRecord.__table__.name in Base.metadata.tables
