# JSON File Storage
"""
JSON ファイルの読み書きユーティリティ。

状態ファイル（レジストリ、ウォーターマーク）は一時ファイルに書き出してから
置き換えるため、書き込み途中でクラッシュしても以前の内容が残る。
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from shiori.errors import StorageError


def read_json(path: str | Path) -> Any:
    """JSON ファイルを読み込み

    Raises:
        StorageError: 読み込みまたはパースに失敗した場合
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise StorageError(
            f"Failed to read {path.name}",
            path=str(path),
            cause=e,
            component="storage",
            operation="read",
        ) from e


def write_json_atomic(path: str | Path, data: Any) -> None:
    """JSON ファイルをアトミックに書き込み

    Raises:
        StorageError: 書き込みに失敗した場合
    """
    path = Path(path)
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp"
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except (OSError, TypeError, ValueError) as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StorageError(
            f"Failed to write {path.name}",
            path=str(path),
            cause=e,
            component="storage",
            operation="write",
        ) from e
