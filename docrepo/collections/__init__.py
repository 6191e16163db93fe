"""컬렉션 패키지 — 저장소 엔진 핸들.

Collection package — Storage engine handles the repositories sit on.
The SQLAlchemy engine lives in ``docrepo.collections.sql`` and is imported
explicitly, since importing it sets up the database engine.
"""
