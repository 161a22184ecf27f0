"""Index Synchronization Types.

同期処理で使用する型定義。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from shiori.errors import ValidationError


class TaskKind(Enum):
    """インデックスタスク種別

    Attributes:
        UPDATE: レコードの作成・更新（削除後に再構築して保存）
        DELETE: レコードの削除（削除のみ）
    """
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class IndexingTask:
    """インデックスタスク

    レコードストアが生成する変更通知。作成後は変更されない。

    Attributes:
        id: タスクID（全インデックス共通で厳密に単調増加）
        record_id: 対象レコードID
        kind: タスク種別
        created_at: 作成日時 (ISO 8601)
    """
    id: int
    record_id: str
    kind: TaskKind
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            "id": self.id,
            "record_id": self.record_id,
            "kind": self.kind.value,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexingTask:
        """辞書から作成"""
        return cls(
            id=int(data["id"]),
            record_id=str(data["record_id"]),
            kind=TaskKind(data.get("kind", TaskKind.UPDATE.value)),
            created_at=data.get("created_at"),
        )


@dataclass(frozen=True)
class IndexDefinition:
    """インデックス定義

    Attributes:
        name: インデックス名（一意）
        included_types: インデックス対象のコンテンツタイプ。空の場合は何も格納されない
        index_latest: True なら最新版、False なら公開版をインデックス
    """
    name: str
    included_types: frozenset[str] = field(default_factory=frozenset)
    index_latest: bool = False

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Index name must not be empty", field="name", value=self.name)
        # list や set で渡された場合も frozenset に揃える
        if not isinstance(self.included_types, frozenset):
            object.__setattr__(self, "included_types", frozenset(self.included_types))

    @property
    def is_inert(self) -> bool:
        """対象タイプが無く、同期でスキップされる定義か"""
        return len(self.included_types) == 0

    def includes(self, content_type: str) -> bool:
        """コンテンツタイプが対象か"""
        return content_type in self.included_types

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            "name": self.name,
            "included_types": sorted(self.included_types),
            "index_latest": self.index_latest,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexDefinition:
        """辞書から作成"""
        return cls(
            name=data["name"],
            included_types=frozenset(data.get("included_types", [])),
            index_latest=bool(data.get("index_latest", False)),
        )


@dataclass
class Watermark:
    """ウォーターマーク

    Attributes:
        index_name: インデックス名
        last_task_id: 完全に適用済みの最終タスクID
    """
    index_name: str
    last_task_id: int = 0

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            "index_name": self.index_name,
            "last_task_id": self.last_task_id,
        }


@dataclass
class ContentRecord:
    """コンテンツレコード

    レコードストアが解決するレコードの1バージョン。

    Attributes:
        record_id: レコードID
        content_type: コンテンツタイプ
        fields: フィールド値
        published: 公開版か
        latest: 最新版か
        modified_at: 更新日時
        owner: 所有者
    """
    record_id: str
    content_type: str
    fields: dict[str, Any] = field(default_factory=dict)
    published: bool = True
    latest: bool = True
    modified_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    owner: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            "record_id": self.record_id,
            "content_type": self.content_type,
            "fields": self.fields,
            "published": self.published,
            "latest": self.latest,
            "modified_at": self.modified_at,
            "owner": self.owner,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentRecord:
        """辞書から作成"""
        return cls(
            record_id=str(data["record_id"]),
            content_type=data["content_type"],
            fields=data.get("fields", {}),
            published=data.get("published", True),
            latest=data.get("latest", True),
            modified_at=data.get("modified_at", datetime.now(timezone.utc).isoformat()),
            owner=data.get("owner"),
        )


def min_watermark(watermarks: Iterable[int]) -> int:
    """ワーキングセットの最小ウォーターマーク（空なら 0）"""
    return min(watermarks, default=0)
