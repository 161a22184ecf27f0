"""Document Index Handlers.

レコードからインデックスドキュメントを構築するハンドラチェーン。
ハンドラは登録順に呼ばれ、同じ DocumentIndex にフィールドを書き込む。
すべてのハンドラが完了した時点でドキュメントは構築済みとみなす。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from shiori.errors import DocumentBuildError
from shiori.index.document import DocumentIndex, FieldType
from shiori.index.types import ContentRecord

logger = logging.getLogger(__name__)


@dataclass
class BuildIndexContext:
    """ドキュメント構築コンテキスト

    Attributes:
        document: 構築中のドキュメント
        record: 対象レコード
        content_types: 適用されるコンテンツタイプ
    """
    document: DocumentIndex
    record: ContentRecord
    content_types: list[str] = field(default_factory=list)


class DocumentIndexHandler(ABC):
    """インデックスハンドラ抽象基底クラス"""

    @property
    def name(self) -> str:
        """ハンドラ名"""
        return self.__class__.__name__

    @abstractmethod
    async def build_index(self, context: BuildIndexContext) -> None:
        """context.document にフィールドを書き込む"""
        ...


class ContentItemIndexHandler(DocumentIndexHandler):
    """レコード共通のフィールドを書き込むハンドラ"""

    async def build_index(self, context: BuildIndexContext) -> None:
        record = context.record
        document = context.document
        document.set("content.id", record.record_id, FieldType.KEYWORD)
        document.set("content.type", record.content_type, FieldType.KEYWORD)
        document.set("content.published", record.published, FieldType.BOOLEAN)
        document.set("content.latest", record.latest, FieldType.BOOLEAN)
        document.set("content.modified", record.modified_at, FieldType.DATETIME)
        if record.owner:
            document.set("content.owner", record.owner, FieldType.KEYWORD)


class ContentFieldsIndexHandler(DocumentIndexHandler):
    """レコードのフィールドを値の型に応じて書き込むハンドラ

    Args:
        text_fields: 全文解析するフィールド名（None なら全ての文字列フィールド）
        prefix: フィールド名の接頭辞
    """

    def __init__(
        self,
        text_fields: Iterable[str] | None = None,
        prefix: str = "fields.",
    ) -> None:
        self.text_fields = set(text_fields) if text_fields is not None else None
        self.prefix = prefix

    async def build_index(self, context: BuildIndexContext) -> None:
        for key, value in context.record.fields.items():
            name = f"{self.prefix}{key}"
            if value is None:
                continue
            # bool は int のサブクラスなので先に判定
            if isinstance(value, bool):
                context.document.set(name, value, FieldType.BOOLEAN)
            elif isinstance(value, (int, float)):
                context.document.set(name, value, FieldType.NUMBER)
            elif isinstance(value, datetime):
                context.document.set(name, value, FieldType.DATETIME)
            elif isinstance(value, str):
                analyzed = self.text_fields is None or key in self.text_fields
                context.document.set(
                    name,
                    value,
                    FieldType.TEXT if analyzed else FieldType.KEYWORD,
                    analyzed=analyzed,
                )
            else:
                context.document.set(name, str(value), FieldType.KEYWORD)


class FullTextIndexHandler(DocumentIndexHandler):
    """文字列フィールドを連結した全文フィールドを書き込むハンドラ"""

    FIELD_NAME = "content.full_text"

    async def build_index(self, context: BuildIndexContext) -> None:
        parts = [
            value for value in context.record.fields.values()
            if isinstance(value, str) and value
        ]
        if parts:
            context.document.set(
                self.FIELD_NAME,
                "\n".join(parts),
                FieldType.TEXT,
                stored=False,
                analyzed=True,
            )


class DocumentBuilder:
    """ドキュメントビルダー

    登録されたハンドラを順に実行して DocumentIndex を構築する。

    Example:
        >>> builder = DocumentBuilder([ContentItemIndexHandler(), FullTextIndexHandler()])
        >>> document = await builder.build(record, [record.content_type])
    """

    def __init__(self, handlers: Iterable[DocumentIndexHandler] | None = None) -> None:
        self._handlers: list[DocumentIndexHandler] = list(handlers or [])

    @property
    def handlers(self) -> list[DocumentIndexHandler]:
        """登録済みハンドラ"""
        return list(self._handlers)

    def register(self, handler: DocumentIndexHandler) -> None:
        """ハンドラを末尾に登録"""
        self._handlers.append(handler)

    async def build(
        self,
        record: ContentRecord,
        content_types: list[str] | None = None,
    ) -> DocumentIndex:
        """ドキュメントを構築

        Raises:
            DocumentBuildError: いずれかのハンドラが失敗した場合
        """
        context = BuildIndexContext(
            document=DocumentIndex(record.record_id),
            record=record,
            content_types=content_types or [record.content_type],
        )
        for handler in self._handlers:
            try:
                await handler.build_index(context)
            except DocumentBuildError:
                raise
            except Exception as e:
                raise DocumentBuildError(
                    f"Handler {handler.name} failed for {record.record_id}",
                    record_id=record.record_id,
                    handler=handler.name,
                    cause=e,
                    component="builder",
                    operation="build_index",
                ) from e
        return context.document


def create_default_builder() -> DocumentBuilder:
    """標準ハンドラを登録したビルダーを作成"""
    return DocumentBuilder([
        ContentItemIndexHandler(),
        ContentFieldsIndexHandler(),
        FullTextIndexHandler(),
    ])
