"""Sync Orchestrator Unit Tests.

同期オーケストレーターのユニットテスト。
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from shiori.content.handlers import (
    ContentItemIndexHandler,
    DocumentBuilder,
    DocumentIndexHandler,
)
from shiori.errors import IndexEngineError, RecordStoreError, SyncError
from shiori.index.types import ContentRecord, IndexDefinition, TaskKind
from shiori.sync.scope import FactoryScopeProvider, IndexingScope
from shiori.sync.service import IndexingService
from shiori.sync.types import ErrorPolicy


class FailingHandler(DocumentIndexHandler):
    """指定レコードで失敗するハンドラ"""

    def __init__(self, record_ids: set[str]):
        self.record_ids = record_ids

    async def build_index(self, context):
        if context.record.record_id in self.record_ids:
            raise RuntimeError(f"cannot build {context.record.record_id}")


def call_names(engine) -> list[str]:
    return [c[0] for c in engine.method_calls]


@pytest.fixture
def page_index(registry):
    """page タイプのみを対象とするインデックス"""
    definition = IndexDefinition("idx1", frozenset({"page"}))
    registry.create(definition)
    return definition


# =============================================================================
# Test: Scenarios
# =============================================================================

class TestSynchronizeScenarios:
    """基本シナリオのテスト"""

    @pytest.mark.asyncio
    async def test_single_update(
        self, orchestrator, page_index, task_log, record_store, engine, memory_engine, watermarks
    ):
        """Update タスクは削除→格納され、ウォーターマークが進む"""
        record_store.put(ContentRecord("A", "page", {"title": "Hello"}))
        task_log.append("A", TaskKind.UPDATE)

        result = await orchestrator.synchronize()

        assert call_names(engine) == ["delete_documents", "store_documents"]
        engine.delete_documents.assert_called_once_with("idx1", ["A"])
        stored = engine.store_documents.call_args[0][1]
        assert [d.record_id for d in stored] == ["A"]
        assert stored[0].get("fields.title") == "Hello"
        assert memory_engine.get_document("idx1", "A") is not None
        assert watermarks.get("idx1") == 1
        assert result.documents_stored == 1
        assert result.documents_deleted == 1

    @pytest.mark.asyncio
    async def test_filtered_type_still_advances(
        self, orchestrator, page_index, task_log, record_store, engine, watermarks
    ):
        """対象外タイプはエンジンを呼ばないがウォーターマークは進む"""
        record_store.put(ContentRecord("A", "article"))
        task_log.append("A")

        result = await orchestrator.synchronize()

        assert engine.method_calls == []
        assert watermarks.get("idx1") == 1
        assert result.tasks_filtered == 1

    @pytest.mark.asyncio
    async def test_paging_250_tasks(
        self, orchestrator, page_index, task_log, record_store, watermarks
    ):
        """250件は 100, 100, 50 の3ページで処理される"""
        for i in range(250):
            record_store.put(ContentRecord(f"r{i}", "page"))
            task_log.append(f"r{i}")

        result = await orchestrator.synchronize()

        assert task_log.fetch_calls == [(0, 100), (100, 100), (200, 100)]
        assert watermarks.commit_count == 3
        assert result.batches == 3
        assert result.tasks == 250
        assert watermarks.get("idx1") == 250

    @pytest.mark.asyncio
    async def test_full_page_fetches_until_empty(
        self, make_orchestrator, page_index, task_log, record_store, watermarks
    ):
        """最終ページがちょうど満杯なら空ページまで取得する"""
        orchestrator = make_orchestrator(page_size=2)
        for i in range(4):
            record_store.put(ContentRecord(f"r{i}", "page"))
            task_log.append(f"r{i}")

        await orchestrator.synchronize()

        assert task_log.fetch_calls == [(0, 2), (2, 2), (4, 2)]
        assert watermarks.commit_count == 2

    @pytest.mark.asyncio
    async def test_reset_then_resync(
        self, orchestrator, page_index, task_log, record_store, engine, watermarks
    ):
        """リセット後の同期は全タスクを再処理する"""
        for i in range(5):
            record_store.put(ContentRecord(f"r{i}", "page"))
            task_log.append(f"r{i}")
        await orchestrator.synchronize("idx1")

        IndexingService(orchestrator).reset_index("idx1")
        engine.reset_mock()

        result = await orchestrator.synchronize("idx1")

        assert result.tasks == 5
        assert engine.store_documents.call_count == 5
        assert "create_index" not in call_names(engine)
        assert "delete_index" not in call_names(engine)
        assert watermarks.get("idx1") == 5


# =============================================================================
# Test: Properties
# =============================================================================

class TestSynchronizeProperties:
    """同期の性質のテスト"""

    @pytest.mark.asyncio
    async def test_idempotence(
        self, orchestrator, page_index, task_log, record_store, engine
    ):
        """新しいタスクが無ければ2回目はエンジンを呼ばない"""
        record_store.put(ContentRecord("A", "page"))
        task_log.append("A")
        await orchestrator.synchronize()
        engine.reset_mock()

        result = await orchestrator.synchronize()

        assert engine.method_calls == []
        assert result.is_noop

    @pytest.mark.asyncio
    async def test_monotonic_watermark(
        self, orchestrator, page_index, task_log, record_store, watermarks
    ):
        """ウォーターマークはパスをまたいで減少しない"""
        record_store.put(ContentRecord("A", "page"))
        seen = []
        for _ in range(3):
            task_log.append("A")
            await orchestrator.synchronize()
            seen.append(watermarks.get("idx1"))
        await orchestrator.synchronize()
        seen.append(watermarks.get("idx1"))

        assert seen == sorted(seen)
        assert seen[-1] == 3

    @pytest.mark.asyncio
    async def test_delete_subsumption(
        self, orchestrator, page_index, task_log, record_store, engine, memory_engine
    ):
        """Delete タスクは削除のみを発行する"""
        record_store.put(ContentRecord("A", "page"))
        task_log.append("A", TaskKind.UPDATE)
        await orchestrator.synchronize()
        engine.reset_mock()

        task_log.append("A", TaskKind.DELETE)
        await orchestrator.synchronize()

        assert call_names(engine) == ["delete_documents"]
        assert memory_engine.get_document("idx1", "A") is None

    @pytest.mark.asyncio
    async def test_cross_index_isolation(
        self, orchestrator, registry, task_log, record_store, engine
    ):
        """対象タイプが重ならないインデックスは互いに影響しない"""
        registry.create(IndexDefinition("pages", frozenset({"page"})))
        registry.create(IndexDefinition("articles", frozenset({"article"})))
        record_store.put(ContentRecord("P", "page"))
        task_log.append("P")

        await orchestrator.synchronize()

        touched = {c[1][0] for c in engine.method_calls}
        assert touched == {"pages"}

    @pytest.mark.asyncio
    async def test_missing_record_skipped(
        self, orchestrator, page_index, task_log, engine, watermarks
    ):
        """解決できないレコードはスキップされる"""
        task_log.append("gone", TaskKind.DELETE)

        result = await orchestrator.synchronize()

        assert engine.method_calls == []
        assert result.records_missing == 1
        assert watermarks.get("idx1") == 1

    @pytest.mark.asyncio
    async def test_records_resolved_once_per_index_and_batch(
        self, orchestrator, registry, task_log, record_store
    ):
        """レコードはインデックス・バッチごとに一括解決される"""
        registry.create(IndexDefinition("a", frozenset({"page"})))
        registry.create(IndexDefinition("b", frozenset({"page"})))
        for i in range(3):
            record_store.put(ContentRecord(f"r{i}", "page"))
            task_log.append(f"r{i}")

        await orchestrator.synchronize()

        assert record_store.resolve_calls == 2

    @pytest.mark.asyncio
    async def test_latest_version_flag(
        self, orchestrator, registry, task_log, record_store, memory_engine
    ):
        """index_latest に応じて公開版・最新版を使い分ける"""
        registry.create(IndexDefinition("live", frozenset({"page"})))
        registry.create(IndexDefinition("draft", frozenset({"page"}), index_latest=True))
        record_store.put(ContentRecord("A", "page", {"title": "v1"}))
        record_store.put(ContentRecord("A", "page", {"title": "v2"}, published=False))
        task_log.append("A")

        await orchestrator.synchronize()

        def title(index):
            fields = memory_engine.get_document(index, "A")["fields"]
            return next(f["value"] for f in fields if f["name"] == "fields.title")

        assert title("live") == "v1"
        assert title("draft") == "v2"


# =============================================================================
# Test: Working Set
# =============================================================================

class TestWorkingSet:
    """対象インデックスの決定のテスト"""

    @pytest.mark.asyncio
    async def test_unknown_index_is_noop(self, orchestrator, page_index, task_log):
        """未定義のインデックス名は何もしない"""
        task_log.append("A")

        result = await orchestrator.synchronize("missing")

        assert result.is_noop
        assert result.indices == []
        assert task_log.fetch_calls == []

    @pytest.mark.asyncio
    async def test_no_indices_is_noop(self, orchestrator, task_log):
        """定義が無ければ何もしない"""
        task_log.append("A")

        result = await orchestrator.synchronize()

        assert result.is_noop
        assert task_log.fetch_calls == []

    @pytest.mark.asyncio
    async def test_inert_index_receives_nothing(
        self, orchestrator, registry, task_log, record_store, engine, watermarks
    ):
        """対象タイプが空のインデックスはスキップされる"""
        registry.create(IndexDefinition("inert", frozenset()))
        record_store.put(ContentRecord("A", "page"))
        task_log.append("A")

        await orchestrator.synchronize()

        assert engine.method_calls == []
        assert record_store.resolve_calls == 0
        assert watermarks.get("inert") == 1

    @pytest.mark.asyncio
    async def test_cursor_starts_at_minimum_watermark(
        self, orchestrator, registry, task_log, record_store, engine, watermarks
    ):
        """カーソルは最小ウォーターマークから始まり、適用済みタスクは再適用しない"""
        registry.create(IndexDefinition("ahead", frozenset({"page"})))
        registry.create(IndexDefinition("behind", frozenset({"page"})))
        for i in range(3):
            record_store.put(ContentRecord(f"r{i}", "page"))
            task_log.append(f"r{i}")
        await orchestrator.synchronize("ahead")
        engine.reset_mock()

        result = await orchestrator.synchronize()

        assert task_log.fetch_calls[-1] == (0, 100)
        assert {c[1][0] for c in engine.method_calls} == {"behind"}
        assert result.tasks_already_applied == 3
        assert watermarks.get("ahead") == 3
        assert watermarks.get("behind") == 3

    @pytest.mark.asyncio
    async def test_single_index_leaves_others(
        self, orchestrator, registry, task_log, record_store, watermarks
    ):
        """単一インデックスの同期は他のウォーターマークを変更しない"""
        registry.create(IndexDefinition("a", frozenset({"page"})))
        registry.create(IndexDefinition("b", frozenset({"page"})))
        record_store.put(ContentRecord("A", "page"))
        task_log.append("A")

        await orchestrator.synchronize("a")

        assert watermarks.get("a") == 1
        assert watermarks.get("b") == 0


# =============================================================================
# Test: Failure Policy
# =============================================================================

class TestFailurePolicy:
    """失敗時ポリシーのテスト"""

    @pytest.fixture
    def failing_builder(self):
        return DocumentBuilder([ContentItemIndexHandler(), FailingHandler({"bad"})])

    @pytest.fixture
    def mixed_tasks(self, page_index, task_log, record_store):
        record_store.put(ContentRecord("good", "page"))
        record_store.put(ContentRecord("bad", "page"))
        task_log.append("good")
        task_log.append("bad")

    @pytest.mark.asyncio
    async def test_abort_keeps_watermark(
        self, make_orchestrator, failing_builder, mixed_tasks, watermarks
    ):
        """ABORT は SyncError を送出し、ウォーターマークをコミットしない"""
        orchestrator = make_orchestrator(builder=failing_builder)

        with pytest.raises(SyncError) as exc_info:
            await orchestrator.synchronize()

        assert exc_info.value.context.details["index_name"] == "idx1"
        assert exc_info.value.context.details["task_id"] == 2
        assert watermarks.get("idx1") == 0
        assert watermarks.commit_count == 0
        assert not watermarks.has_pending

    @pytest.mark.asyncio
    async def test_abort_keeps_failed_step(
        self, make_orchestrator, failing_builder, mixed_tasks, caplog
    ):
        """ABORT のエラーは失敗した操作名を保持したまま記録される"""
        orchestrator = make_orchestrator(builder=failing_builder)

        with pytest.raises(SyncError) as exc_info:
            await orchestrator.synchronize()

        assert exc_info.value.context.component == "sync"
        assert exc_info.value.context.operation == "apply_task"
        assert "(operation: apply_task)" in caplog.text

    @pytest.mark.asyncio
    async def test_record_store_failure_aborts(
        self, orchestrator, mixed_tasks, record_store, watermarks
    ):
        """レコードストアの失敗は SyncError の原因として伝わる"""
        record_store.resolve_many = AsyncMock(
            side_effect=RecordStoreError("records unavailable")
        )

        with pytest.raises(SyncError) as exc_info:
            await orchestrator.synchronize()

        assert isinstance(exc_info.value.cause, RecordStoreError)
        assert watermarks.get("idx1") == 0
        assert watermarks.commit_count == 0

    @pytest.mark.asyncio
    async def test_abort_then_retry_is_idempotent(
        self, make_orchestrator, failing_builder, mixed_tasks, record_store,
        memory_engine, watermarks
    ):
        """中断後の再実行でバッチ全体が再処理される"""
        with pytest.raises(SyncError):
            await make_orchestrator(builder=failing_builder).synchronize()

        await make_orchestrator().synchronize()

        assert memory_engine.record_ids("idx1") == ["bad", "good"]
        assert watermarks.get("idx1") == 2

    @pytest.mark.asyncio
    async def test_skip_continues(
        self, make_orchestrator, failing_builder, mixed_tasks, memory_engine, watermarks
    ):
        """SKIP は失敗を記録して継続し、ウォーターマークを進める"""
        orchestrator = make_orchestrator(
            builder=failing_builder, error_policy=ErrorPolicy.SKIP
        )

        result = await orchestrator.synchronize()

        assert result.failures == 1
        assert memory_engine.record_ids("idx1") == ["good"]
        assert watermarks.get("idx1") == 2
        stats = orchestrator.error_handler.get_stats()
        assert stats["error_counts"] == {"DocumentBuildError": 1}

    @pytest.mark.asyncio
    async def test_engine_failure_aborts(
        self, orchestrator, page_index, task_log, record_store, engine, watermarks
    ):
        """エンジンの失敗もパスを中断する"""
        engine.store_documents.side_effect = IndexEngineError("disk full", index_name="idx1")
        record_store.put(ContentRecord("A", "page"))
        task_log.append("A")

        with pytest.raises(SyncError) as exc_info:
            await orchestrator.synchronize()

        assert isinstance(exc_info.value.cause, IndexEngineError)
        assert watermarks.get("idx1") == 0

    @pytest.mark.asyncio
    async def test_task_log_failure_wrapped(self, orchestrator, page_index, task_log):
        """タスクログの失敗は SyncError として伝播する"""
        task_log.fetch = AsyncMock(side_effect=OSError("connection lost"))

        with pytest.raises(SyncError) as exc_info:
            await orchestrator.synchronize()

        assert isinstance(exc_info.value.cause, OSError)

    @pytest.mark.asyncio
    async def test_cancellation_discards_pending(
        self, orchestrator, page_index, task_log, record_store, watermarks
    ):
        """キャンセル時は保留中のウォーターマークを破棄する"""
        record_store.put(ContentRecord("A", "page"))
        task_log.append("A")
        record_store.resolve_many = AsyncMock(side_effect=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await orchestrator.synchronize()

        assert watermarks.get("idx1") == 0
        assert not watermarks.has_pending

    @pytest.mark.asyncio
    async def test_previous_batches_stay_committed(
        self, make_orchestrator, page_index, task_log, record_store, watermarks
    ):
        """失敗前にコミットしたバッチは保持される"""
        builder = DocumentBuilder([FailingHandler({"r3"})])
        orchestrator = make_orchestrator(builder=builder, page_size=2)
        for i in range(4):
            record_store.put(ContentRecord(f"r{i}", "page"))
            task_log.append(f"r{i}")

        with pytest.raises(SyncError):
            await orchestrator.synchronize()

        assert watermarks.get("idx1") == 2
        assert watermarks.commit_count == 1


# =============================================================================
# Test: Scope
# =============================================================================

class TestScope:
    """バッチごとのスコープのテスト"""

    @pytest.mark.asyncio
    async def test_scope_per_batch(
        self, make_orchestrator, page_index, task_log, record_store
    ):
        """バッチごとにスコープを取得・解放する"""
        provider = FactoryScopeProvider(
            lambda: IndexingScope(record_store, DocumentBuilder([ContentItemIndexHandler()]))
        )
        orchestrator = make_orchestrator(scope_provider=provider, page_size=2)
        for i in range(3):
            record_store.put(ContentRecord(f"r{i}", "page"))
            task_log.append(f"r{i}")

        await orchestrator.synchronize()

        assert provider.acquired == 2
        assert provider.released == 2

    @pytest.mark.asyncio
    async def test_scope_released_on_failure(
        self, make_orchestrator, page_index, task_log, record_store
    ):
        """失敗時もスコープは解放される"""
        provider = FactoryScopeProvider(
            lambda: IndexingScope(record_store, DocumentBuilder([FailingHandler({"A"})]))
        )
        orchestrator = make_orchestrator(scope_provider=provider)
        record_store.put(ContentRecord("A", "page"))
        task_log.append("A")

        with pytest.raises(SyncError):
            await orchestrator.synchronize()

        assert provider.acquired == 1
        assert provider.released == 1


# =============================================================================
# Test: Known Staleness
# =============================================================================

class TestKnownStaleness:
    """フィルタ済みタスクによる既知の陳腐化のテスト"""

    @pytest.mark.asyncio
    async def test_edit_does_not_pick_up_filtered_tasks(
        self, orchestrator, registry, page_index, task_log, record_store, memory_engine
    ):
        """定義の編集後も、フィルタ済みタスクはリセットまで反映されない"""
        record_store.put(ContentRecord("A", "article"))
        task_log.append("A")
        await orchestrator.synchronize()

        registry.edit(IndexDefinition("idx1", frozenset({"page", "article"})))
        await orchestrator.synchronize()

        assert memory_engine.get_document("idx1", "A") is None

    @pytest.mark.asyncio
    async def test_reset_recovers_filtered_tasks(
        self, orchestrator, registry, page_index, task_log, record_store,
        memory_engine, watermarks
    ):
        """リセットすればフィルタ済みタスクも反映される"""
        record_store.put(ContentRecord("A", "article"))
        task_log.append("A")
        await orchestrator.synchronize()

        registry.edit(IndexDefinition("idx1", frozenset({"page", "article"})))
        IndexingService(orchestrator).reset_index("idx1")
        await orchestrator.synchronize()

        assert memory_engine.get_document("idx1", "A") is not None
        assert watermarks.get("idx1") == 1


class TestConstruction:
    """初期化のテスト"""

    def test_invalid_page_size(self, make_orchestrator):
        """page_size は1以上"""
        with pytest.raises(ValueError):
            make_orchestrator(page_size=0)
