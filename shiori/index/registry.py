# Index Registry
"""
インデックス定義の永続リスト。

- InMemoryIndexRegistry: テスト・組み込み用
- JsonIndexRegistry: JSON ファイルに永続化
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from shiori.errors import IndexDefinitionError
from shiori.index.types import IndexDefinition
from shiori.storage import read_json, write_json_atomic

logger = logging.getLogger(__name__)


@runtime_checkable
class IndexRegistryProtocol(Protocol):
    """インデックスレジストリプロトコル"""

    def list_definitions(self, name: str | None = None) -> list[IndexDefinition]:
        """定義を取得（name 指定時は 0 または 1 件）"""
        ...

    def create(self, definition: IndexDefinition) -> None:
        """定義を追加"""
        ...

    def edit(self, definition: IndexDefinition) -> None:
        """定義を更新"""
        ...

    def delete(self, definition: IndexDefinition) -> None:
        """定義を削除"""
        ...


class InMemoryIndexRegistry:
    """メモリ上のインデックスレジストリ

    定義は登録順に保持される。
    """

    def __init__(self, definitions: list[IndexDefinition] | None = None) -> None:
        self._definitions: dict[str, IndexDefinition] = {}
        for definition in definitions or []:
            self.create(definition)

    def list_definitions(self, name: str | None = None) -> list[IndexDefinition]:
        """定義を取得"""
        if name is None:
            return list(self._definitions.values())
        definition = self._definitions.get(name)
        return [definition] if definition is not None else []

    def get(self, name: str) -> IndexDefinition | None:
        """名前で定義を取得"""
        return self._definitions.get(name)

    def create(self, definition: IndexDefinition) -> None:
        """定義を追加

        Raises:
            IndexDefinitionError: 同名の定義が既に存在する場合
        """
        if definition.name in self._definitions:
            raise IndexDefinitionError(
                f"Index already exists: {definition.name}",
                operation="create",
                index_name=definition.name,
            )
        self._definitions[definition.name] = definition
        self._on_change()

    def edit(self, definition: IndexDefinition) -> None:
        """定義を更新

        Raises:
            IndexDefinitionError: 定義が存在しない場合
        """
        if definition.name not in self._definitions:
            raise IndexDefinitionError(
                f"Index not found: {definition.name}",
                operation="edit",
                index_name=definition.name,
            )
        self._definitions[definition.name] = definition
        self._on_change()

    def delete(self, definition: IndexDefinition) -> None:
        """定義を削除（存在しない場合は何もしない）"""
        if self._definitions.pop(definition.name, None) is not None:
            self._on_change()

    def __len__(self) -> int:
        return len(self._definitions)

    def _on_change(self) -> None:
        """変更時フック"""


class JsonIndexRegistry(InMemoryIndexRegistry):
    """JSON ファイルに永続化するインデックスレジストリ

    Example:
        >>> registry = JsonIndexRegistry("./state/registry.json")
        >>> registry.create(IndexDefinition("articles", frozenset({"Article"})))
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._loading = True
        super().__init__(self._load())
        self._loading = False

    def _load(self) -> list[IndexDefinition]:
        """定義を読み込み"""
        if not self.path.exists():
            return []
        data = read_json(self.path)
        definitions = [IndexDefinition.from_dict(d) for d in data.get("indices", [])]
        logger.info(f"Loaded {len(definitions)} index definitions from {self.path}")
        return definitions

    def _on_change(self) -> None:
        """変更を保存"""
        if self._loading:
            return
        write_json_atomic(
            self.path,
            {"indices": [d.to_dict() for d in self._definitions.values()]},
        )
