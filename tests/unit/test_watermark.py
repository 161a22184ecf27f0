"""Watermark Store Unit Tests.

ウォーターマークストアのユニットテスト。
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest

from shiori.errors import ValidationError
from shiori.index.watermark import WatermarkStore


@pytest.fixture
def temp_dir():
    """一時ディレクトリを作成"""
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


class TestWatermarkStore:
    """WatermarkStore のテスト"""

    def test_default_is_zero(self):
        """未登録のインデックスは 0"""
        store = WatermarkStore()
        assert store.get("unknown") == 0

    def test_set_is_visible_before_commit(self):
        """保留中の値は get に反映される"""
        store = WatermarkStore()
        store.set("idx", 5)
        assert store.get("idx") == 5
        assert store.has_pending
        assert store.all() == {}

    def test_commit(self):
        """commit で確定する"""
        store = WatermarkStore()
        store.set("idx", 5)
        store.commit()
        assert store.all() == {"idx": 5}
        assert not store.has_pending
        assert store.commit_count == 1

    def test_discard(self):
        """discard で保留中の値を破棄"""
        store = WatermarkStore()
        store.set("idx", 5)
        store.commit()
        store.set("idx", 9)
        store.discard()
        assert store.get("idx") == 5

    def test_negative_rejected(self):
        """負の値は拒否"""
        store = WatermarkStore()
        with pytest.raises(ValidationError):
            store.set("idx", -1)

    def test_remove(self):
        """remove で削除される"""
        store = WatermarkStore()
        store.set("idx", 3)
        store.commit()
        store.remove("idx")
        assert store.get("idx") == 0
        store.commit()
        assert "idx" not in store.all()

    def test_watermark_object(self):
        """Watermark として取得"""
        store = WatermarkStore()
        store.set("idx", 7)
        watermark = store.watermark("idx")
        assert watermark.index_name == "idx"
        assert watermark.last_task_id == 7


class TestWatermarkPersistence:
    """永続化のテスト"""

    def test_commit_writes_file(self, temp_dir):
        """commit でファイルに書き込まれる"""
        path = temp_dir / "state" / "watermarks.json"
        store = WatermarkStore(path)
        store.set("idx", 42)
        store.commit()

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["watermarks"] == {"idx": 42}
        assert data["version"] == WatermarkStore.STATE_VERSION

    def test_reload(self, temp_dir):
        """再読み込みでコミット済みの値が復元される"""
        path = temp_dir / "watermarks.json"
        store = WatermarkStore(path)
        store.set("a", 1)
        store.set("b", 2)
        store.commit()
        store.set("a", 10)

        reloaded = WatermarkStore(path)
        assert reloaded.get("a") == 1
        assert reloaded.get("b") == 2

    def test_uncommitted_not_written(self, temp_dir):
        """未コミットの値は書き込まれない"""
        path = temp_dir / "watermarks.json"
        store = WatermarkStore(path)
        store.set("a", 1)
        assert not path.exists()

    def test_corrupted_file_starts_from_zero(self, temp_dir):
        """壊れたファイルは 0 から再同期"""
        path = temp_dir / "watermarks.json"
        path.write_text("{not json", encoding="utf-8")

        store = WatermarkStore(path)
        assert store.get("a") == 0
