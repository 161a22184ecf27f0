# SHIORI API Base Types
"""
shiori.api.base - 設定の基本型定義
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from shiori.sync.types import PAGE_SIZE, ErrorPolicy


class EngineBackend(Enum):
    """インデックスエンジンの種類"""

    MEMORY = "memory"  # メモリ上（テスト・一時利用）
    LANCEDB = "lancedb"  # LanceDB（ローカル永続化）


@dataclass
class SearchSettings:
    """検索設定

    Attributes:
        default_index: 既定の検索対象インデックス
        default_search_fields: 既定の検索フィールド
    """

    default_index: str | None = None
    default_search_fields: list[str] = field(
        default_factory=lambda: ["content.full_text"]
    )


@dataclass
class ShioriConfig:
    """SHIORI設定"""

    # 状態ファイル（registry.json, watermarks.json）
    state_path: Path = field(default_factory=lambda: Path("./state"))

    # 外部コラボレーター（未指定なら state_path 配下）
    task_log_path: Path | None = None
    records_path: Path | None = None

    # インデックスエンジン
    engine: EngineBackend = EngineBackend.MEMORY
    lancedb_path: Path | None = None

    # 同期設定
    page_size: int = PAGE_SIZE
    error_policy: ErrorPolicy = ErrorPolicy.ABORT

    # ロギング
    log_level: str = "info"

    # 検索設定
    search: SearchSettings = field(default_factory=SearchSettings)

    def __post_init__(self):
        """パス変換"""
        self.state_path = Path(self.state_path)
        defaults = {
            "task_log_path": self.state_path / "tasks.jsonl",
            "records_path": self.state_path / "records.json",
            "lancedb_path": self.state_path / "lancedb",
        }
        for name, default in defaults.items():
            value = getattr(self, name)
            setattr(self, name, default if value is None else Path(value))

    @property
    def registry_path(self) -> Path:
        return self.state_path / "registry.json"

    @property
    def watermarks_path(self) -> Path:
        return self.state_path / "watermarks.json"
