"""Shared fixtures for SHIORI tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from shiori.content.handlers import DocumentBuilder, create_default_builder
from shiori.content.records import InMemoryRecordStore
from shiori.content.tasks import InMemoryTaskLog
from shiori.index.memory import InMemoryIndexEngine
from shiori.index.registry import InMemoryIndexRegistry
from shiori.index.watermark import WatermarkStore
from shiori.sync.orchestrator import SyncOrchestrator
from shiori.sync.scope import StaticScopeProvider
from shiori.sync.types import ErrorPolicy


@pytest.fixture
def record_store():
    """メモリ上のレコードストア"""
    return InMemoryRecordStore()


@pytest.fixture
def task_log():
    """メモリ上のタスクログ"""
    return InMemoryTaskLog()


@pytest.fixture
def registry():
    """メモリ上のインデックスレジストリ"""
    return InMemoryIndexRegistry()


@pytest.fixture
def watermarks():
    """メモリ上のウォーターマークストア"""
    return WatermarkStore()


@pytest.fixture
def memory_engine():
    """実際にドキュメントを保持するエンジン"""
    return InMemoryIndexEngine()


@pytest.fixture
def engine(memory_engine):
    """呼び出しを記録するエンジン"""
    return MagicMock(wraps=memory_engine)


@pytest.fixture
def make_orchestrator(registry, watermarks, task_log, engine, record_store):
    """オーケストレーターを作成するファクトリー"""
    def _create(
        builder: DocumentBuilder | None = None,
        error_policy: ErrorPolicy = ErrorPolicy.ABORT,
        page_size: int = 100,
        scope_provider=None,
    ) -> SyncOrchestrator:
        return SyncOrchestrator(
            registry=registry,
            watermarks=watermarks,
            task_log=task_log,
            engine=engine,
            scope_provider=scope_provider or StaticScopeProvider(
                record_store=record_store,
                builder=builder or create_default_builder(),
            ),
            page_size=page_size,
            error_policy=error_policy,
        )
    return _create


@pytest.fixture
def orchestrator(make_orchestrator):
    """既定設定のオーケストレーター"""
    return make_orchestrator()
