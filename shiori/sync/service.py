"""Indexing Service.

インデックスのライフサイクル操作（作成・編集・削除・リセット・再構築）と
同期の入口をまとめたファサード。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from shiori.index.base import IndexEngine
from shiori.index.types import IndexDefinition
from shiori.sync.orchestrator import SyncOrchestrator
from shiori.sync.types import SyncResult

if TYPE_CHECKING:
    from shiori.api.base import SearchSettings

logger = logging.getLogger(__name__)


@dataclass
class IndexStatus:
    """インデックスの状態

    Attributes:
        definition: インデックス定義
        last_task_id: ウォーターマーク
        document_count: 物理インデックスのドキュメント数
        exists: 物理インデックスが存在するか
    """
    definition: IndexDefinition
    last_task_id: int
    document_count: int
    exists: bool

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            **self.definition.to_dict(),
            "last_task_id": self.last_task_id,
            "document_count": self.document_count,
            "exists": self.exists,
        }


class IndexingService:
    """インデックスサービス

    Example:
        >>> service = IndexingService(orchestrator)
        >>> service.create_index(IndexDefinition("articles", frozenset({"Article"})))
        >>> await service.synchronize("articles")
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        search_settings: SearchSettings | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self._search_settings = search_settings

    @property
    def registry(self):
        return self.orchestrator.registry

    @property
    def watermarks(self):
        return self.orchestrator.watermarks

    @property
    def engine(self):
        return self.orchestrator.engine

    async def synchronize(self, index_name: str | None = None) -> SyncResult:
        """インデックスを同期（None なら全インデックス）"""
        return await self.orchestrator.synchronize(index_name)

    def create_index(self, definition: IndexDefinition) -> None:
        """インデックスを作成

        定義を登録してから物理インデックスを再構築する。
        """
        self.registry.create(definition)
        logger.info(f"Created index definition {definition.name}")
        self.rebuild_index(definition.name)

    def edit_index(self, definition: IndexDefinition) -> None:
        """インデックス定義を更新

        再同期は行わない。対象タイプの変更は、以降のタスクにのみ反映される。
        """
        self.registry.edit(definition)
        logger.info(f"Updated index definition {definition.name}")

    def delete_index(self, definition: IndexDefinition) -> None:
        """インデックスを完全に削除"""
        self.engine.delete_index(definition.name)
        self.registry.delete(definition)
        self.watermarks.remove(definition.name)
        self.watermarks.commit()
        logger.info(f"Deleted index {definition.name}")

    def reset_index(self, index_name: str) -> None:
        """先頭から再処理するようにウォーターマークを 0 に戻す

        既存のドキュメントは削除しない。
        """
        self.watermarks.set(index_name, 0)
        self.watermarks.commit()
        logger.info(f"Reset index {index_name}")

    def rebuild_index(self, index_name: str) -> None:
        """物理インデックスを削除・再作成してからリセット"""
        self.engine.delete_index(index_name)
        self.engine.create_index(index_name)
        self.reset_index(index_name)
        logger.info(f"Rebuilt index {index_name}")

    def get_status(self, index_name: str | None = None) -> list[IndexStatus]:
        """インデックスの状態を取得"""
        statuses = []
        for definition in self.registry.list_definitions(index_name):
            exists = True
            count = 0
            if isinstance(self.engine, IndexEngine):
                exists = self.engine.exists(definition.name)
                count = self.engine.count(definition.name)
            statuses.append(IndexStatus(
                definition=definition,
                last_task_id=self.watermarks.get(definition.name),
                document_count=count,
                exists=exists,
            ))
        return statuses

    def get_search_settings(self) -> SearchSettings | None:
        """検索設定を取得（既定インデックスが未設定なら None）"""
        if self._search_settings is None or not self._search_settings.default_index:
            return None
        return self._search_settings
