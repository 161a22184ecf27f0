# Index Engine Base
"""
Base classes and protocols for full-text index engines.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol, Sequence, runtime_checkable

from shiori.index.document import DocumentIndex


@runtime_checkable
class IndexEngineProtocol(Protocol):
    """インデックスエンジンプロトコル

    同期処理が物理インデックスに対して発行する操作。
    """

    def create_index(self, name: str) -> None:
        """インデックスを作成（既存なら何もしない）"""
        ...

    def delete_index(self, name: str) -> None:
        """インデックスを削除（存在しなければ何もしない）"""
        ...

    def store_documents(self, name: str, documents: Sequence[DocumentIndex]) -> None:
        """ドキュメントを格納"""
        ...

    def delete_documents(self, name: str, record_ids: Sequence[str]) -> None:
        """ドキュメントを削除（存在しないIDは無視）"""
        ...


class IndexEngine(ABC):
    """インデックスエンジン抽象基底クラス

    サブクラスは作成・削除・格納・削除の各操作を実装する。
    ドキュメントの部分更新は前提としない（更新は削除＋再格納）。
    """

    @abstractmethod
    def create_index(self, name: str) -> None:
        """インデックスを作成

        Args:
            name: インデックス名
        """
        ...

    @abstractmethod
    def delete_index(self, name: str) -> None:
        """インデックスを削除

        Args:
            name: インデックス名
        """
        ...

    @abstractmethod
    def exists(self, name: str) -> bool:
        """インデックスが存在するか"""
        ...

    @abstractmethod
    def list_indices(self) -> list[str]:
        """インデックス名の一覧"""
        ...

    @abstractmethod
    def store_documents(self, name: str, documents: Sequence[DocumentIndex]) -> None:
        """ドキュメントを格納

        インデックスが存在しない場合は作成する。

        Args:
            name: インデックス名
            documents: 格納するドキュメント
        """
        ...

    @abstractmethod
    def delete_documents(self, name: str, record_ids: Sequence[str]) -> None:
        """ドキュメントを削除

        Args:
            name: インデックス名
            record_ids: 削除するレコードID
        """
        ...

    @abstractmethod
    def count(self, name: str) -> int:
        """インデックス内のドキュメント数"""
        ...

    def get_document(self, name: str, record_id: str) -> dict | None:
        """格納済みドキュメントを取得

        デフォルト実装は未サポート。
        """
        msg = "get_document は実装されていません"
        raise NotImplementedError(msg)
