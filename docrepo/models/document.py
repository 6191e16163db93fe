"""문서 저장용 SQLAlchemy ORM 모델 정의.

Document storage SQLAlchemy ORM model definition.
Every collection shares one table; each row holds one JSON document.

Tables:
    - documents: 컬렉션별 JSON 문서 (JSON documents grouped by collection)
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from docrepo.config import settings
from docrepo.database import Base


def generate_document_id() -> str:
    """UUID v4 문서 식별자 생성.

    Generate a UUID v4 document identifier in canonical string form.
    """
    return str(uuid.uuid4())


class DocumentRecord(Base):
    """문서 모델 — 컬렉션에 저장된 단일 문서.

    Document model — A single document stored in a named collection.
    The ``data`` column holds the caller's fields; ``collection``,
    ``created_at`` and ``updated_at`` are engine metadata stripped on read.

    Attributes:
        id: 고유 식별자 UUID 문자열 (Unique identifier, canonical UUID string)
        collection: 컬렉션 이름 (Owning collection name)
        data: 문서 본문 JSONB (Document body)
        created_at: 생성 일시 UTC (Creation timestamp in UTC)
        updated_at: 수정 일시 UTC (Last update timestamp in UTC)
    """

    __tablename__ = settings.DOCUMENTS_TABLE
    __table_args__ = (
        # 컬렉션 단위 조회/삭제용 인덱스 — Collection-scoped scans and deletes
        Index(f"ix_{settings.DOCUMENTS_TABLE}_collection_created", "collection", "created_at"),
    )

    # 문서 고유 식별자 — Document unique identifier (UUID v4 string, auto-generated)
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_document_id)
    # 컬렉션 이름 — Collection the document belongs to
    collection: Mapped[str] = mapped_column(String(255), nullable=False)
    # 문서 본문 — JSONB body; values compare, order and match containment natively
    data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
