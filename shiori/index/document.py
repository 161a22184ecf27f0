"""Document Index.

1レコード・1インデックス分のフィールド集合。同期パスごとに構築され、
永続化はインデックスエンジンが行う。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterator


class FieldType(Enum):
    """フィールドタイプ"""
    TEXT = "text"          # 解析対象の全文
    KEYWORD = "keyword"    # 完全一致
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATETIME = "datetime"


@dataclass
class DocumentField:
    """ドキュメントフィールド

    Attributes:
        name: フィールド名
        value: 値
        field_type: フィールドタイプ
        stored: 値を保存するか
        analyzed: 全文解析するか
    """
    name: str
    value: Any
    field_type: FieldType = FieldType.TEXT
    stored: bool = True
    analyzed: bool = False

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        value = self.value
        if isinstance(value, datetime):
            value = value.isoformat()
        return {
            "name": self.name,
            "value": value,
            "type": self.field_type.value,
            "stored": self.stored,
            "analyzed": self.analyzed,
        }


@dataclass
class DocumentIndex:
    """インデックスドキュメント

    Example:
        >>> doc = DocumentIndex("rec-1")
        >>> doc.set("title", "Hello", FieldType.TEXT, analyzed=True)
        >>> doc.get("title")
        'Hello'
    """
    record_id: str
    entries: dict[str, DocumentField] = field(default_factory=dict)

    def set(
        self,
        name: str,
        value: Any,
        field_type: FieldType = FieldType.TEXT,
        stored: bool = True,
        analyzed: bool = False,
    ) -> None:
        """フィールドを設定（同名フィールドは上書き）"""
        self.entries[name] = DocumentField(
            name=name,
            value=value,
            field_type=field_type,
            stored=stored,
            analyzed=analyzed,
        )

    def get(self, name: str, default: Any = None) -> Any:
        """フィールド値を取得"""
        entry = self.entries.get(name)
        return entry.value if entry is not None else default

    def merge(self, other: DocumentIndex) -> None:
        """別ドキュメントのフィールドを取り込む"""
        self.entries.update(other.entries)

    def analyzed_text(self) -> str:
        """解析対象テキストを連結"""
        return "\n".join(
            str(entry.value)
            for entry in self.entries.values()
            if entry.analyzed and entry.value is not None
        )

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __iter__(self) -> Iterator[DocumentField]:
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            "record_id": self.record_id,
            "fields": [entry.to_dict() for entry in self.entries.values()],
        }
