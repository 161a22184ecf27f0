"""Watermark Store.

インデックス名 → 完全適用済みの最終タスクID の永続マッピング。
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from shiori.errors import StorageError, ValidationError
from shiori.index.types import Watermark
from shiori.storage import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class WatermarkStore:
    """ウォーターマークストア

    ``set`` は保留状態に積まれ、``commit`` で一括して永続化される。
    保留中の値は ``get`` に反映されるが、``discard`` で破棄できる。

    Example:
        >>> store = WatermarkStore(Path("./state/watermarks.json"))
        >>> store.get("articles")
        0
        >>> store.set("articles", 100)
        >>> store.commit()

    Attributes:
        path: 状態ファイルパス（None ならメモリのみ）
    """

    STATE_VERSION = "1.0.0"

    def __init__(self, path: str | Path | None = None) -> None:
        """初期化

        Args:
            path: 状態ファイルパス
        """
        self.path = Path(path) if path is not None else None
        self._committed: dict[str, int] = self._load()
        self._pending: dict[str, int | None] = {}
        self.commit_count = 0

    def _load(self) -> dict[str, int]:
        """状態を読み込み"""
        if self.path is None or not self.path.exists():
            return {}

        try:
            data = read_json(self.path)
            watermarks = {
                str(name): int(task_id)
                for name, task_id in data.get("watermarks", {}).items()
            }
            logger.info(f"Loaded watermarks for {len(watermarks)} indices from {self.path}")
            return watermarks
        except (StorageError, AttributeError, TypeError, ValueError) as e:
            # 0 からの再同期は冪等なので安全側に倒す
            logger.warning(f"Failed to load watermarks: {e}, starting from 0")
            return {}

    def get(self, index_name: str) -> int:
        """ウォーターマークを取得（未登録なら 0）"""
        if index_name in self._pending:
            value = self._pending[index_name]
            return 0 if value is None else value
        return self._committed.get(index_name, 0)

    def set(self, index_name: str, task_id: int) -> None:
        """ウォーターマークを保留状態で設定"""
        if task_id < 0:
            raise ValidationError(
                "Watermark must be >= 0",
                field="last_task_id",
                value=task_id,
                index_name=index_name,
            )
        self._pending[index_name] = task_id

    def remove(self, index_name: str) -> None:
        """ウォーターマークを保留状態で削除"""
        self._pending[index_name] = None

    @property
    def has_pending(self) -> bool:
        """未コミットの変更があるか"""
        return bool(self._pending)

    def discard(self) -> None:
        """保留中の変更を破棄"""
        if self._pending:
            logger.debug(f"Discarding {len(self._pending)} pending watermark changes")
        self._pending.clear()

    def commit(self) -> None:
        """保留中の変更を一括で永続化"""
        merged = dict(self._committed)
        for name, value in self._pending.items():
            if value is None:
                merged.pop(name, None)
            else:
                merged[name] = value

        if self.path is not None:
            data: dict[str, Any] = {
                "version": self.STATE_VERSION,
                "updated_at": datetime.now(timezone.utc).isoformat(),
                "watermarks": merged,
            }
            write_json_atomic(self.path, data)

        self._committed = merged
        self._pending.clear()
        self.commit_count += 1

    def all(self) -> dict[str, int]:
        """コミット済みの全ウォーターマークを取得"""
        return dict(self._committed)

    def watermark(self, index_name: str) -> Watermark:
        """Watermark オブジェクトとして取得"""
        return Watermark(index_name=index_name, last_task_id=self.get(index_name))
