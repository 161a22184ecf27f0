# In-Memory Index Engine
"""
Index engine that keeps documents in process memory.

Used by tests and by the default ``engine: memory`` configuration.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from shiori.index.base import IndexEngine
from shiori.index.document import DocumentIndex

logger = logging.getLogger(__name__)


class InMemoryIndexEngine(IndexEngine):
    """メモリ上のインデックスエンジン

    Example:
        >>> engine = InMemoryIndexEngine()
        >>> engine.create_index("articles")
        >>> engine.store_documents("articles", [DocumentIndex("rec-1")])
        >>> engine.count("articles")
        1
    """

    def __init__(self) -> None:
        self._indices: dict[str, dict[str, dict[str, Any]]] = {}

    def create_index(self, name: str) -> None:
        """インデックスを作成"""
        if name not in self._indices:
            self._indices[name] = {}
            logger.debug(f"Created index {name}")

    def delete_index(self, name: str) -> None:
        """インデックスを削除"""
        if self._indices.pop(name, None) is not None:
            logger.debug(f"Deleted index {name}")

    def exists(self, name: str) -> bool:
        return name in self._indices

    def list_indices(self) -> list[str]:
        return sorted(self._indices)

    def store_documents(self, name: str, documents: Sequence[DocumentIndex]) -> None:
        """ドキュメントを格納"""
        index = self._indices.setdefault(name, {})
        for document in documents:
            index[document.record_id] = document.to_dict()

    def delete_documents(self, name: str, record_ids: Sequence[str]) -> None:
        """ドキュメントを削除"""
        index = self._indices.get(name)
        if index is None:
            return
        for record_id in record_ids:
            index.pop(record_id, None)

    def count(self, name: str) -> int:
        return len(self._indices.get(name, {}))

    def get_document(self, name: str, record_id: str) -> dict[str, Any] | None:
        """格納済みドキュメントを取得"""
        return self._indices.get(name, {}).get(record_id)

    def record_ids(self, name: str) -> list[str]:
        """格納済みレコードIDの一覧"""
        return sorted(self._indices.get(name, {}))
