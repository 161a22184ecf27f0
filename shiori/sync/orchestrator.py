"""Sync Orchestrator.

タスクログを読み進め、各インデックスを最新の状態に保つ。

Algorithm:
    1. 対象インデックスとウォーターマークを決定
    2. 最小ウォーターマークをカーソルとしてタスクをページ単位で取得
    3. インデックスごとにレコードを一括解決し、タスクを順に適用
       （常に削除、Update なら再構築して格納）
    4. カーソルをバッチ末尾に進め、遅れているウォーターマークを更新
    5. バッチごとに1回だけコミット

同一インデックス集合に対する同時実行は安全ではない。呼び出し側が
パスの間、外部ロックを保持すること。
"""

from __future__ import annotations

import asyncio
import logging
import time

from shiori.content.tasks import TaskLogProtocol
from shiori.errors import ErrorHandler, SyncError
from shiori.index.base import IndexEngineProtocol
from shiori.index.registry import IndexRegistryProtocol
from shiori.index.types import (
    ContentRecord,
    IndexDefinition,
    IndexingTask,
    TaskKind,
    min_watermark,
)
from shiori.index.watermark import WatermarkStore
from shiori.sync.scope import IndexingScope, ScopeProvider
from shiori.sync.types import PAGE_SIZE, ErrorPolicy, SyncResult

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """同期オーケストレーター

    Example:
        >>> orchestrator = SyncOrchestrator(
        ...     registry=registry,
        ...     watermarks=WatermarkStore(Path("./state/watermarks.json")),
        ...     task_log=task_log,
        ...     engine=engine,
        ...     scope_provider=StaticScopeProvider(record_store, builder),
        ... )
        >>> result = await orchestrator.synchronize()
        >>> print(result.watermarks)
    """

    def __init__(
        self,
        registry: IndexRegistryProtocol,
        watermarks: WatermarkStore,
        task_log: TaskLogProtocol,
        engine: IndexEngineProtocol,
        scope_provider: ScopeProvider,
        page_size: int = PAGE_SIZE,
        error_policy: ErrorPolicy = ErrorPolicy.ABORT,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self.registry = registry
        self.watermarks = watermarks
        self.task_log = task_log
        self.engine = engine
        self.scope_provider = scope_provider
        self.page_size = page_size
        self.error_policy = error_policy
        self.error_handler = error_handler or ErrorHandler(
            logger=logging.getLogger("shiori.sync.errors")
        )

    def _select(self, index_name: str | None) -> list[IndexDefinition]:
        """対象インデックスを決定"""
        if index_name:
            definitions = self.registry.list_definitions(index_name)
            if not definitions:
                logger.info(f"Index {index_name} is not defined, nothing to synchronize")
            return definitions
        return self.registry.list_definitions()

    async def synchronize(self, index_name: str | None = None) -> SyncResult:
        """インデックスを同期

        Args:
            index_name: 対象インデックス名（None なら全インデックス）

        Returns:
            同期結果

        Raises:
            SyncError: ABORT ポリシーでレコードの適用に失敗した場合
        """
        started = time.perf_counter()
        result = SyncResult()

        definitions = self._select(index_name)
        if not definitions:
            return result

        current = {d.name: self.watermarks.get(d.name) for d in definitions}
        cursor = min_watermark(current.values())
        result.indices = list(current)

        logger.info(
            f"Synchronizing {len(definitions)} indices from task {cursor} "
            f"(page_size={self.page_size}, policy={self.error_policy.value})"
        )

        try:
            while True:
                batch = await self.task_log.fetch(cursor, self.page_size)
                if not batch:
                    break

                async with self.scope_provider.acquire() as scope:
                    for definition in definitions:
                        if definition.is_inert:
                            continue
                        await self._apply_batch(
                            scope, definition, batch, current[definition.name], result
                        )

                    cursor = batch[-1].id
                    for name, last_task_id in current.items():
                        if last_task_id < cursor:
                            self.watermarks.set(name, cursor)
                            current[name] = cursor
                    self.watermarks.commit()

                result.batches += 1
                result.tasks += len(batch)
                logger.debug(
                    f"Committed batch of {len(batch)} tasks up to task {cursor}"
                )

                if len(batch) < self.page_size:
                    break
        except asyncio.CancelledError:
            self.watermarks.discard()
            logger.warning(f"Synchronization cancelled after task {cursor}")
            raise
        except SyncError as e:
            self.watermarks.discard()
            self.error_handler.handle(e, reraise=False)
            raise
        except Exception as e:
            self.watermarks.discard()
            error = SyncError(
                f"Synchronization aborted after task {cursor}",
                cause=e,
                component="sync",
                operation="synchronize",
            )
            self.error_handler.handle(error, reraise=False)
            raise error from e

        result.watermarks = dict(current)
        result.duration_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Synchronized {result.tasks} tasks in {result.batches} batches: "
            f"stored={result.documents_stored}, deleted={result.documents_deleted}, "
            f"failures={result.failures}"
        )
        return result

    async def _apply_batch(
        self,
        scope: IndexingScope,
        definition: IndexDefinition,
        batch: list[IndexingTask],
        last_task_id: int,
        result: SyncResult,
    ) -> None:
        """1つのインデックスにバッチを適用"""
        records = await scope.record_store.resolve_many(
            {task.record_id for task in batch},
            definition.index_latest,
        )

        for task in batch:
            record = records.get(task.record_id)
            if record is None:
                result.records_missing += 1
                continue

            if not definition.includes(record.content_type):
                result.tasks_filtered += 1
                continue

            if task.id <= last_task_id:
                result.tasks_already_applied += 1
                continue

            try:
                await self._apply_task(scope, definition, task, record, result)
            except Exception as e:
                if self.error_policy is ErrorPolicy.SKIP:
                    self.error_handler.handle(
                        e,
                        component="sync",
                        operation="apply_task",
                        reraise=False,
                        index_name=definition.name,
                        task_id=task.id,
                        record_id=task.record_id,
                    )
                    result.failures += 1
                    continue
                raise SyncError(
                    f"Failed to apply task {task.id} to index {definition.name}",
                    index_name=definition.name,
                    task_id=task.id,
                    cause=e,
                    component="sync",
                    operation="apply_task",
                    record_id=task.record_id,
                ) from e

    async def _apply_task(
        self,
        scope: IndexingScope,
        definition: IndexDefinition,
        task: IndexingTask,
        record: ContentRecord,
        result: SyncResult,
    ) -> None:
        """1タスクを適用

        削除は種別に関わらず常に行う。存在しないドキュメントの削除は何もしない。
        """
        self.engine.delete_documents(definition.name, [task.record_id])
        result.documents_deleted += 1

        if task.kind is TaskKind.UPDATE:
            document = await scope.builder.build(record, [record.content_type])
            self.engine.store_documents(definition.name, [document])
            result.documents_stored += 1
