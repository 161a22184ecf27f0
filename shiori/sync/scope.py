"""Indexing Scope.

各バッチはスコープ内で処理される。スコープはテナントに紐づいた
レコードストアとドキュメントビルダーを提供し、バッチの成否に関わらず
終了時に解放される。
"""

from __future__ import annotations

import inspect
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol, Union

from shiori.content.handlers import DocumentBuilder
from shiori.content.records import RecordStoreProtocol

logger = logging.getLogger(__name__)


@dataclass
class IndexingScope:
    """インデックス処理スコープ

    Attributes:
        record_store: レコードストア
        builder: ドキュメントビルダー
    """
    record_store: RecordStoreProtocol
    builder: DocumentBuilder

    async def aclose(self) -> None:
        """スコープが保持するリソースを解放"""
        for resource in (self.record_store, self.builder):
            close = getattr(resource, "aclose", None) or getattr(resource, "close", None)
            if close is None:
                continue
            result = close()
            if inspect.isawaitable(result):
                await result


class ScopeProvider(Protocol):
    """スコーププロバイダープロトコル"""

    def acquire(self) -> Any:
        """IndexingScope を yield する非同期コンテキストマネージャを返す"""
        ...


class StaticScopeProvider:
    """固定のインスタンスを毎回提供するスコーププロバイダー

    単一テナント構成向け。リソースは解放しない。
    """

    def __init__(self, record_store: RecordStoreProtocol, builder: DocumentBuilder) -> None:
        self._scope = IndexingScope(record_store=record_store, builder=builder)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[IndexingScope]:
        yield self._scope


ScopeFactory = Callable[[], Union[IndexingScope, Awaitable[IndexingScope]]]


class FactoryScopeProvider:
    """バッチごとに新しいスコープを生成するスコーププロバイダー

    マルチテナント構成で、テナントに紐づいたインスタンスをバッチ単位で
    作り直す場合に使用する。スコープは終了時に ``aclose`` される。

    Example:
        >>> provider = FactoryScopeProvider(lambda: IndexingScope(
        ...     record_store=TenantRecordStore("tenant-a"),
        ...     builder=create_default_builder(),
        ... ))
    """

    def __init__(self, factory: ScopeFactory) -> None:
        self._factory = factory
        self.acquired = 0
        self.released = 0

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[IndexingScope]:
        scope = self._factory()
        if inspect.isawaitable(scope):
            scope = await scope
        self.acquired += 1
        try:
            yield scope
        finally:
            await scope.aclose()
            self.released += 1
