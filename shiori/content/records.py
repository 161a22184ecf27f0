"""Record Store.

レコードIDの集合をバージョン（公開版 / 最新版）を指定して一括解決する。
解決できないIDは結果から単に省かれる。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

from shiori.errors import RecordStoreError, StorageError
from shiori.index.types import ContentRecord
from shiori.storage import read_json

logger = logging.getLogger(__name__)


@runtime_checkable
class RecordStoreProtocol(Protocol):
    """レコードストアプロトコル"""

    async def resolve_many(
        self,
        record_ids: Iterable[str],
        use_latest: bool,
    ) -> dict[str, ContentRecord]:
        """レコードを一括解決

        Args:
            record_ids: レコードID
            use_latest: True なら最新版、False なら公開版

        Returns:
            レコードID → レコード（解決できないIDは含まない）
        """
        ...


class InMemoryRecordStore:
    """メモリ上のレコードストア

    レコードIDごとに公開版と最新版を別々に保持する。

    Example:
        >>> store = InMemoryRecordStore()
        >>> store.put(ContentRecord("rec-1", "Article", {"title": "Hello"}))
        >>> await store.resolve_many(["rec-1"], use_latest=False)
    """

    def __init__(self, records: Iterable[ContentRecord] | None = None) -> None:
        self._published: dict[str, ContentRecord] = {}
        self._latest: dict[str, ContentRecord] = {}
        self.resolve_calls = 0
        for record in records or []:
            self.put(record)

    def put(self, record: ContentRecord) -> None:
        """レコードを登録

        ``record.latest`` / ``record.published`` に応じて各スナップショットに置く。
        公開されていない最新版（下書き）は既存の公開版を残す。
        """
        if record.latest:
            self._latest[record.record_id] = record
        if record.published:
            self._published[record.record_id] = record

    def unpublish(self, record_id: str) -> None:
        """公開版を取り下げ"""
        self._published.pop(record_id, None)

    def remove(self, record_id: str) -> None:
        """レコードを完全に削除"""
        self._published.pop(record_id, None)
        self._latest.pop(record_id, None)

    async def resolve_many(
        self,
        record_ids: Iterable[str],
        use_latest: bool,
    ) -> dict[str, ContentRecord]:
        """レコードを一括解決"""
        self.resolve_calls += 1
        source = self._latest if use_latest else self._published
        return {
            record_id: source[record_id]
            for record_id in set(record_ids)
            if record_id in source
        }

    def __len__(self) -> int:
        return len(set(self._latest) | set(self._published))


class JsonRecordStore(InMemoryRecordStore):
    """JSON ファイルから読み込むレコードストア

    ファイルはレコードのリスト。各レコードは ``published`` / ``latest`` フラグを持つ。
    解決のたびにファイルの更新を確認して再読み込みする。
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._mtime: float | None = None
        super().__init__()
        self.reload()

    def reload(self) -> None:
        """ファイルを読み込み直す

        Raises:
            RecordStoreError: 読み込みまたはレコードの解釈に失敗した場合
        """
        if not self.path.exists():
            self._published.clear()
            self._latest.clear()
            self._mtime = None
            return
        try:
            data = read_json(self.path)
            items = data.get("records", []) if isinstance(data, dict) else data
            records = [ContentRecord.from_dict(item) for item in items]
        except (StorageError, KeyError, TypeError, AttributeError) as e:
            raise RecordStoreError(
                f"Failed to load records from {self.path.name}",
                cause=e,
                component="records",
                operation="reload",
                path=str(self.path),
            ) from e

        self._published.clear()
        self._latest.clear()
        for record in records:
            self.put(record)
        self._mtime = self.path.stat().st_mtime
        logger.debug(f"Loaded {len(self)} records from {self.path}")

    async def resolve_many(
        self,
        record_ids: Iterable[str],
        use_latest: bool,
    ) -> dict[str, ContentRecord]:
        """レコードを一括解決"""
        mtime = self.path.stat().st_mtime if self.path.exists() else None
        if mtime != self._mtime:
            self.reload()
        return await super().resolve_many(record_ids, use_latest)
