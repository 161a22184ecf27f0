# LanceDB Index Engine
"""
Index engine backed by LanceDB.

LanceDB is an embedded database that requires no server setup. Each index
is stored as one table with a fixed schema; the document's fields are kept
as a JSON column and the analyzed text in a ``text`` column.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Sequence, TYPE_CHECKING

import pyarrow as pa

from shiori.errors import IndexEngineError
from shiori.index.base import IndexEngine
from shiori.index.document import DocumentIndex

if TYPE_CHECKING:
    import lancedb

logger = logging.getLogger(__name__)


DOCUMENT_SCHEMA = pa.schema([
    pa.field("id", pa.string()),
    pa.field("content_type", pa.string()),
    pa.field("text", pa.string()),
    pa.field("fields", pa.string()),
])


def _quote(value: str) -> str:
    """SQL 文字列リテラルとしてクォート"""
    return "'" + value.replace("'", "''") + "'"


class LanceDBIndexEngine(IndexEngine):
    """LanceDB インデックスエンジン

    Example:
        >>> engine = LanceDBIndexEngine(db_path="./state/lancedb")
        >>> engine.create_index("articles")
        >>> engine.store_documents("articles", documents)
        >>> engine.delete_documents("articles", ["rec-1"])

    Attributes:
        db_path: LanceDBデータベースのパス
    """

    def __init__(self, db_path: str | Path = "./state/lancedb") -> None:
        """初期化

        Args:
            db_path: データベースパス
        """
        import lancedb as ldb

        self.db_path = Path(db_path)
        self.db_path.mkdir(parents=True, exist_ok=True)
        self._db: lancedb.DBConnection = ldb.connect(str(self.db_path))

    def _list_table_names(self) -> list[str]:
        """テーブル名のリストを取得

        LanceDB の list_tables() は ListTablesResponse を返すため、
        .tables 属性でリストにアクセスする。
        """
        result = self._db.list_tables()
        if hasattr(result, "tables"):
            return list(result.tables)
        return list(result)

    def _open(self, name: str) -> Any | None:
        """テーブルを開く（存在しなければ None）"""
        if name not in self._list_table_names():
            return None
        return self._db.open_table(name)

    def create_index(self, name: str) -> None:
        """インデックスを作成"""
        if name in self._list_table_names():
            return
        try:
            self._db.create_table(name, schema=DOCUMENT_SCHEMA)
        except (OSError, ValueError) as e:
            raise IndexEngineError(
                f"Failed to create index {name}",
                index_name=name,
                cause=e,
                operation="create_index",
            ) from e
        logger.info(f"Created LanceDB index {name}")

    def delete_index(self, name: str) -> None:
        """インデックスを削除"""
        if name in self._list_table_names():
            self._db.drop_table(name)
            logger.info(f"Dropped LanceDB index {name}")

    def exists(self, name: str) -> bool:
        return name in self._list_table_names()

    def list_indices(self) -> list[str]:
        return sorted(self._list_table_names())

    def store_documents(self, name: str, documents: Sequence[DocumentIndex]) -> None:
        """ドキュメントを格納"""
        if not documents:
            return
        self.create_index(name)
        table = self._db.open_table(name)
        table.add(self._prepare_data(documents))

    def _prepare_data(self, documents: Sequence[DocumentIndex]) -> list[dict[str, Any]]:
        """データを準備"""
        data = []
        for document in documents:
            fields = document.to_dict()["fields"]
            data.append({
                "id": document.record_id,
                "content_type": str(document.get("content.type", "")),
                "text": document.analyzed_text(),
                "fields": json.dumps(fields, ensure_ascii=False, default=str),
            })
        return data

    def delete_documents(self, name: str, record_ids: Sequence[str]) -> None:
        """ドキュメントを削除"""
        if not record_ids:
            return
        table = self._open(name)
        if table is None:
            return
        id_list = ", ".join(_quote(record_id) for record_id in record_ids)
        table.delete(f"id IN ({id_list})")

    def count(self, name: str) -> int:
        table = self._open(name)
        if table is None:
            return 0
        return table.count_rows()

    def get_document(self, name: str, record_id: str) -> dict[str, Any] | None:
        """格納済みドキュメントを取得"""
        table = self._open(name)
        if table is None:
            return None
        for row in table.to_arrow().to_pylist():
            if row["id"] == record_id:
                return {
                    "record_id": row["id"],
                    "content_type": row["content_type"],
                    "text": row["text"],
                    "fields": json.loads(row["fields"]),
                }
        return None
