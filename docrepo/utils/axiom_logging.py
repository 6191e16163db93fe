"""Axiom 레포지토리 연산 로깅.

Axiom repository operation logging.
Captures one structured event per repository operation and sends it to Axiom.
Logs: operation, collection, arguments, duration, error reason.
Sensitive fields (password, token, secret) are automatically masked.
"""

import re
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from axiom_py import Client as AxiomClient

from docrepo.config import settings

# 마스킹 대상 필드 패턴 — Fields to mask in logged arguments
_SENSITIVE_KEYS = re.compile(
    r"(password|passwd|secret|token|authorization|api_key|apikey|access_token|refresh_token|credential)",
    re.IGNORECASE,
)


def _mask_dict(data: Any, depth: int = 0) -> Any:
    """민감 필드 자동 마스킹 — Recursively mask sensitive fields in dicts/lists."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if _SENSITIVE_KEYS.search(str(k)) else _mask_dict(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [_mask_dict(item, depth + 1) for item in data[:20]]
    return data


def _truncate(value: Any, max_len: int = 2000) -> Any:
    """로그 크기 제한 — Truncate large values to prevent oversized logs."""
    if isinstance(value, str) and len(value) > max_len:
        return value[:max_len] + "...(truncated)"
    return value


class AxiomOperationLogger:
    """레포지토리 연산을 Axiom에 기록하는 로거.

    Logger that records every repository operation to Axiom.
    Acts as a pass-through when Axiom is not configured.
    """

    def __init__(self, client: AxiomClient | None = None, dataset: str | None = None) -> None:
        self._dataset: str = dataset if dataset is not None else settings.AXIOM_DATASET
        self._client: AxiomClient | None = client

        if self._client is None and settings.AXIOM_API_TOKEN and self._dataset:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    @property
    def enabled(self) -> bool:
        return self._client is not None and bool(self._dataset)

    @contextmanager
    def operation(self, name: str, collection: str, **fields: Any) -> Iterator[dict[str, Any]]:
        """연산 하나를 감싸 소요 시간과 오류를 기록합니다.

        Wrap one operation, recording its duration and any error.
        The yielded dict may be extended with result metadata (e.g. ``count``).
        Exceptions raised inside the block are re-raised unchanged.
        """
        extra: dict[str, Any] = {}
        # Axiom 미설정시 패스스루 — Pass through if Axiom not configured
        if not self.enabled:
            yield extra
            return

        start_time = time.time()
        error_detail: str | None = None
        try:
            yield extra
        except Exception as exc:
            error_detail = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            duration_ms = round((time.time() - start_time) * 1000, 2)

            # Axiom 로그 이벤트 구성 — Build Axiom log event
            log_event: dict[str, Any] = {
                "operation": name,
                "collection": collection,
                "duration_ms": duration_ms,
            }
            for key, value in fields.items():
                if value is not None:
                    log_event[key] = _truncate(_mask_dict(value))
            log_event.update(extra)
            if error_detail:
                log_event["error"] = error_detail

            try:
                self._client.ingest_events(self._dataset, [log_event])
            except Exception:
                pass  # 로깅 실패가 연산에 영향주지 않도록 — Never break an operation on log failure
