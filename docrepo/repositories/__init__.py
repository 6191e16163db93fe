"""레포지토리 패키지 — 데이터 접근 계층.

Repository package — Data access layer.
Each repository extends Repository for generic CRUD and adds collection-specific queries.
"""
