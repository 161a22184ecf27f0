"""Synchronization Types.

同期パスの設定と結果の型定義。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


PAGE_SIZE = 100


class ErrorPolicy(Enum):
    """同期中の失敗時ポリシー

    Attributes:
        ABORT: パスを中断し、失敗したバッチのウォーターマークはコミットしない
        SKIP: 失敗したレコードをログに残して継続（ウォーターマークは進む）
    """
    ABORT = "abort"
    SKIP = "skip"


@dataclass
class SyncResult:
    """同期パスの結果

    Attributes:
        indices: 対象インデックス名
        batches: 処理したバッチ数
        tasks: 読み込んだタスク数
        documents_stored: store 呼び出しで格納したドキュメント数
        documents_deleted: delete 呼び出し数
        records_missing: 解決できなかったレコードによるスキップ数
        tasks_filtered: コンテンツタイプ不一致によるスキップ数
        tasks_already_applied: ウォーターマーク以下によるスキップ数
        failures: SKIP ポリシーでスキップした失敗数
        watermarks: パス終了時のウォーターマーク
        duration_ms: 処理時間
    """
    indices: list[str] = field(default_factory=list)
    batches: int = 0
    tasks: int = 0
    documents_stored: int = 0
    documents_deleted: int = 0
    records_missing: int = 0
    tasks_filtered: int = 0
    tasks_already_applied: int = 0
    failures: int = 0
    watermarks: dict[str, int] = field(default_factory=dict)
    duration_ms: float = 0.0

    @property
    def is_noop(self) -> bool:
        """何も処理しなかったか"""
        return self.batches == 0

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            "indices": self.indices,
            "batches": self.batches,
            "tasks": self.tasks,
            "documents_stored": self.documents_stored,
            "documents_deleted": self.documents_deleted,
            "records_missing": self.records_missing,
            "tasks_filtered": self.tasks_filtered,
            "tasks_already_applied": self.tasks_already_applied,
            "failures": self.failures,
            "watermarks": self.watermarks,
            "duration_ms": self.duration_ms,
        }
