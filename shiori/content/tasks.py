"""Task Log.

追記専用のインデックスタスク列。同期処理は指定IDより後ろを
ページ単位で読み進めるだけで、書き込みは行わない。
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from shiori.errors import StorageError
from shiori.index.types import IndexingTask, TaskKind

logger = logging.getLogger(__name__)


@runtime_checkable
class TaskLogProtocol(Protocol):
    """タスクログプロトコル"""

    async def fetch(self, after_id: int, limit: int) -> list[IndexingTask]:
        """after_id より大きいIDのタスクを昇順で最大 limit 件取得"""
        ...


class InMemoryTaskLog:
    """メモリ上のタスクログ

    Example:
        >>> log = InMemoryTaskLog()
        >>> log.append("rec-1", TaskKind.UPDATE)
        IndexingTask(id=1, record_id='rec-1', ...)
        >>> await log.fetch(after_id=0, limit=100)
    """

    def __init__(self) -> None:
        self._tasks: list[IndexingTask] = []
        self._last_id = 0
        self.fetch_calls: list[tuple[int, int]] = []

    @property
    def last_id(self) -> int:
        """最後に発行したタスクID"""
        return self._last_id

    def append(self, record_id: str, kind: TaskKind = TaskKind.UPDATE) -> IndexingTask:
        """タスクを追記"""
        self._last_id += 1
        task = IndexingTask(
            id=self._last_id,
            record_id=record_id,
            kind=kind,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._tasks.append(task)
        return task

    async def fetch(self, after_id: int, limit: int) -> list[IndexingTask]:
        """タスクを取得"""
        self.fetch_calls.append((after_id, limit))
        return [task for task in self._tasks if task.id > after_id][:limit]

    def truncate(self, up_to_id: int) -> int:
        """up_to_id 以下のタスクを破棄（保持期間の管理）

        Returns:
            破棄したタスク数
        """
        before = len(self._tasks)
        self._tasks = [task for task in self._tasks if task.id > up_to_id]
        return before - len(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)


class JsonLinesTaskLog:
    """JSON Lines ファイルのタスクログ

    1行1タスク。IDは追記時に採番され、破棄後も再利用されないよう
    最終IDを ``<path>.seq`` に保持する。
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.seq_path = self.path.with_name(self.path.name + ".seq")

    def _read(self) -> list[IndexingTask]:
        """全タスクを読み込み"""
        if not self.path.exists():
            return []
        tasks = []
        try:
            with open(self.path, encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    tasks.append(IndexingTask.from_dict(json.loads(line)))
        except (OSError, json.JSONDecodeError, KeyError, ValueError) as e:
            raise StorageError(
                "Failed to read task log",
                path=str(self.path),
                cause=e,
                component="task_log",
                operation="read",
            ) from e
        return tasks

    @property
    def last_id(self) -> int:
        """最後に発行したタスクID"""
        tasks = self._read()
        last = max((task.id for task in tasks), default=0)
        if self.seq_path.exists():
            text = self.seq_path.read_text(encoding="utf-8").strip()
            if text:
                last = max(last, int(text))
        return last

    def append(self, record_id: str, kind: TaskKind = TaskKind.UPDATE) -> IndexingTask:
        """タスクを追記"""
        task = IndexingTask(
            id=self.last_id + 1,
            record_id=record_id,
            kind=kind,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(task.to_dict(), ensure_ascii=False) + "\n")
        self.seq_path.write_text(str(task.id), encoding="utf-8")
        logger.debug(f"Appended task {task.id} ({kind.value}) for {record_id}")
        return task

    async def fetch(self, after_id: int, limit: int) -> list[IndexingTask]:
        """タスクを取得"""
        tasks = sorted(
            (task for task in self._read() if task.id > after_id),
            key=lambda task: task.id,
        )
        return tasks[:limit]

    def truncate(self, up_to_id: int) -> int:
        """up_to_id 以下のタスクを破棄"""
        tasks = self._read()
        if not tasks:
            return 0
        kept = [task for task in tasks if task.id > up_to_id]
        self.seq_path.write_text(str(self.last_id), encoding="utf-8")
        with open(self.path, "w", encoding="utf-8") as f:
            for task in kept:
                f.write(json.dumps(task.to_dict(), ensure_ascii=False) + "\n")
        return len(tasks) - len(kept)
