# SHIORI Component Factory
"""
shiori.api.factory - コンポーネントファクトリー

- 各コンポーネントの遅延初期化
- 依存性注入のサポート
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from shiori.api.base import EngineBackend, ShioriConfig
from shiori.api.config import load_config
from shiori.content.handlers import DocumentBuilder, create_default_builder
from shiori.content.records import JsonRecordStore
from shiori.content.tasks import JsonLinesTaskLog
from shiori.index.base import IndexEngine
from shiori.index.memory import InMemoryIndexEngine
from shiori.index.registry import JsonIndexRegistry
from shiori.index.watermark import WatermarkStore
from shiori.sync.orchestrator import SyncOrchestrator
from shiori.sync.scope import StaticScopeProvider
from shiori.sync.service import IndexingService

logger = logging.getLogger(__name__)


class ComponentFactory:
    """コンポーネントファクトリー"""

    def __init__(self, config: ShioriConfig):
        self.config = config
        self._cached_components: dict[str, Any] = {}

    def clear_cache(self) -> None:
        """キャッシュをクリア"""
        self._cached_components.clear()

    def _get(self, key: str, create: Any) -> Any:
        if key not in self._cached_components:
            self._cached_components[key] = create()
        return self._cached_components[key]

    def get_registry(self) -> JsonIndexRegistry:
        """インデックスレジストリを取得"""
        return self._get("registry", lambda: JsonIndexRegistry(self.config.registry_path))

    def get_watermark_store(self) -> WatermarkStore:
        """ウォーターマークストアを取得

        メモリエンジンのドキュメントはプロセス終了で失われるため、
        ウォーターマークも永続化しない。
        """
        return self._get("watermarks", self._create_watermark_store)

    def get_task_log(self) -> JsonLinesTaskLog:
        """タスクログを取得"""
        return self._get("task_log", lambda: JsonLinesTaskLog(self.config.task_log_path))

    def get_record_store(self) -> JsonRecordStore:
        """レコードストアを取得"""
        return self._get("records", lambda: JsonRecordStore(self.config.records_path))

    def get_engine(self) -> IndexEngine:
        """インデックスエンジンを取得"""
        return self._get("engine", self._create_engine)

    def get_builder(self) -> DocumentBuilder:
        """ドキュメントビルダーを取得"""
        return self._get("builder", create_default_builder)

    def get_orchestrator(self) -> SyncOrchestrator:
        """同期オーケストレーターを取得"""
        return self._get("orchestrator", self._create_orchestrator)

    # ========== Internal Creation Methods ==========

    def _create_watermark_store(self) -> WatermarkStore:
        """ウォーターマークストアを作成"""
        if self.config.engine == EngineBackend.MEMORY:
            logger.info("Memory engine in use, watermarks are kept in memory only")
            return WatermarkStore(None)
        return WatermarkStore(self.config.watermarks_path)

    def _create_engine(self) -> IndexEngine:
        """インデックスエンジンを作成"""
        if self.config.engine == EngineBackend.LANCEDB:
            from shiori.index.lancedb import LanceDBIndexEngine

            return LanceDBIndexEngine(db_path=self.config.lancedb_path)
        return InMemoryIndexEngine()

    def _create_orchestrator(self) -> SyncOrchestrator:
        """同期オーケストレーターを作成"""
        return SyncOrchestrator(
            registry=self.get_registry(),
            watermarks=self.get_watermark_store(),
            task_log=self.get_task_log(),
            engine=self.get_engine(),
            scope_provider=StaticScopeProvider(
                record_store=self.get_record_store(),
                builder=self.get_builder(),
            ),
            page_size=self.config.page_size,
            error_policy=self.config.error_policy,
        )


def create_indexing_service(
    config: ShioriConfig | str | Path | None = None,
) -> IndexingService:
    """設定から IndexingService を作成

    Args:
        config: 設定オブジェクト、設定ファイルパス、または None（既定値）
    """
    if not isinstance(config, ShioriConfig):
        config = load_config(config)
    factory = ComponentFactory(config)
    return IndexingService(
        factory.get_orchestrator(),
        search_settings=config.search,
    )
