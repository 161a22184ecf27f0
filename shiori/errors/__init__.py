"""SHIORI Error Handling Framework.

統一的なエラー管理を提供。

同期パスの失敗はすべて構造化された例外として呼び出し元に伝播する。
コア自体は自動リトライを行わない（次回の同期パスがリトライ機構となる）。

Example:
    >>> from shiori.errors import SyncError, ErrorHandler
    >>>
    >>> raise SyncError("Pass aborted", index_name="articles", task_id=42)
    >>>
    >>> handler = ErrorHandler()
    >>> try:
    ...     engine.store_documents("articles", docs)
    ... except Exception as e:
    ...     handler.handle(e, component="sync", operation="store", reraise=False)
"""

from __future__ import annotations

import logging
import time
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

__all__ = [
    # Base exceptions
    "ShioriError",
    "ConfigurationError",
    "SyncError",
    "IndexEngineError",
    "IndexDefinitionError",
    "StorageError",
    "DocumentBuildError",
    "RecordStoreError",
    "ValidationError",
    # Error context
    "ErrorContext",
    "ErrorSeverity",
    # Error handler
    "ErrorHandler",
    "ErrorHandlerConfig",
    "create_error_handler",
]


# ============================================================
# Error Severity
# ============================================================


class ErrorSeverity(str, Enum):
    """エラー重要度"""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_logging_level(self) -> int:
        """ロギングレベルに変換"""
        mapping = {
            ErrorSeverity.DEBUG: logging.DEBUG,
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL,
        }
        return mapping[self]


# ============================================================
# Error Context
# ============================================================


@dataclass
class ErrorContext:
    """エラーコンテキスト情報

    Attributes:
        error_id: ユニークなエラーID
        timestamp: エラー発生時刻
        component: エラー発生コンポーネント
        operation: 実行中の操作
        details: 追加の詳細情報（インデックス名、タスクIDなど）
        stack_trace: スタックトレース
    """

    error_id: str = field(default_factory=lambda: f"err_{int(time.time() * 1000)}")
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    component: str | None = None
    operation: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    stack_trace: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            "error_id": self.error_id,
            "timestamp": self.timestamp.isoformat(),
            "component": self.component,
            "operation": self.operation,
            "details": self.details,
            "stack_trace": self.stack_trace,
        }


# ============================================================
# Base Exception Classes
# ============================================================


class ShioriError(Exception):
    """SHIORI基底例外クラス

    すべてのSHIORI例外の基底クラス。構造化されたエラー情報を提供。

    Attributes:
        message: エラーメッセージ
        code: エラーコード
        severity: エラー重要度
        context: エラーコンテキスト
        cause: 原因となった例外
    """

    default_code: str = "SHIORI_ERROR"
    default_severity: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        code: str | None = None,
        severity: ErrorSeverity | None = None,
        cause: Exception | None = None,
        component: str | None = None,
        operation: str | None = None,
        **details: Any,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.severity = severity or self.default_severity
        self.cause = cause

        self.context = ErrorContext(
            component=component,
            operation=operation,
            details=details,
            stack_trace=traceback.format_exc() if cause else None,
        )

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.context.component:
            parts.append(f"(component: {self.context.component})")
        if self.context.operation:
            parts.append(f"(operation: {self.context.operation})")
        if self.cause:
            parts.append(f"caused by: {self.cause}")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"severity={self.severity.value!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """辞書に変換"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "severity": self.severity.value,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        message: str | None = None,
        **kwargs: Any,
    ) -> "ShioriError":
        """既存の例外からShioriErrorを作成"""
        return cls(
            message=message or str(exc),
            cause=exc,
            **kwargs,
        )


# ============================================================
# Specific Exception Classes
# ============================================================


class ConfigurationError(ShioriError):
    """設定エラー

    設定ファイルの読み込みや検証に失敗した場合。
    """

    default_code = "CONFIG_ERROR"


class SyncError(ShioriError):
    """同期エラー

    同期パスが中断された場合。失敗したバッチのウォーターマークはコミットされない。
    """

    default_code = "SYNC_ERROR"

    def __init__(
        self,
        message: str,
        index_name: str | None = None,
        task_id: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        if index_name:
            self.context.details["index_name"] = index_name
        if task_id is not None:
            self.context.details["task_id"] = task_id


class IndexEngineError(ShioriError):
    """インデックスエンジンエラー

    物理インデックスの作成・削除・ドキュメント書き込みに失敗した場合。
    """

    default_code = "INDEX_ENGINE_ERROR"

    def __init__(
        self,
        message: str,
        index_name: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        if index_name:
            self.context.details["index_name"] = index_name


class IndexDefinitionError(ShioriError):
    """インデックス定義エラー

    重複した定義の作成や、存在しない定義の編集を行った場合。
    """

    default_code = "INDEX_DEFINITION_ERROR"
    default_severity = ErrorSeverity.WARNING


class StorageError(ShioriError):
    """ストレージエラー

    状態ファイルやタスクログの読み書きに失敗した場合。
    """

    default_code = "STORAGE_ERROR"

    def __init__(
        self,
        message: str,
        path: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        if path:
            self.context.details["path"] = path


class DocumentBuildError(ShioriError):
    """ドキュメント構築エラー

    インデックスハンドラがドキュメントの構築に失敗した場合。
    """

    default_code = "DOCUMENT_BUILD_ERROR"

    def __init__(
        self,
        message: str,
        record_id: str | None = None,
        handler: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        if record_id:
            self.context.details["record_id"] = record_id
        if handler:
            self.context.details["handler"] = handler


class RecordStoreError(ShioriError):
    """レコードストアエラー

    レコードの一括解決に失敗した場合。
    """

    default_code = "RECORD_STORE_ERROR"


class ValidationError(ShioriError):
    """バリデーションエラー

    入力データの検証に失敗した場合。
    """

    default_code = "VALIDATION_ERROR"
    default_severity = ErrorSeverity.WARNING

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        if field:
            self.context.details["field"] = field
        if value is not None:
            self.context.details["value"] = repr(value)


# ============================================================
# Error Handler
# ============================================================


@dataclass
class ErrorHandlerConfig:
    """エラーハンドラ設定"""

    log_errors: bool = True
    include_stack_trace: bool = True
    max_recent_errors: int = 100


class ErrorHandler:
    """統合エラーハンドラ

    エラーのログ記録、変換、集約を管理。

    Example:
        >>> handler = ErrorHandler()
        >>>
        >>> try:
        ...     risky_operation()
        ... except Exception as e:
        ...     handler.handle(e, component="sync", operation="store")
    """

    def __init__(
        self,
        config: ErrorHandlerConfig | None = None,
        logger: logging.Logger | None = None,
    ):
        self.config = config or ErrorHandlerConfig()
        self.logger = logger or logging.getLogger("shiori.errors")

        self._error_counts: dict[str, int] = {}
        self._recent_errors: list[ShioriError] = []

    def handle(
        self,
        error: Exception,
        component: str | None = None,
        operation: str | None = None,
        reraise: bool = True,
        **context: Any,
    ) -> ShioriError:
        """エラーを処理

        Args:
            error: 処理するエラー
            component: コンポーネント名
            operation: 操作名
            reraise: エラーを再送出するか
            **context: 追加のコンテキスト

        Returns:
            変換されたShioriError

        Raises:
            ShioriError: reraise=Trueの場合
        """
        if isinstance(error, ShioriError):
            shiori_error = error
            if component:
                shiori_error.context.component = component
            if operation:
                shiori_error.context.operation = operation
            shiori_error.context.details.update(context)
        else:
            shiori_error = ShioriError.from_exception(
                error,
                component=component,
                operation=operation,
                **context,
            )

        if self.config.log_errors:
            self._log_error(shiori_error)

        self._update_stats(shiori_error)

        if reraise:
            raise shiori_error

        return shiori_error

    def _log_error(self, error: ShioriError) -> None:
        """エラーをログ記録"""
        level = error.severity.to_logging_level()

        message = str(error)
        if self.config.include_stack_trace and error.context.stack_trace:
            message += f"\n{error.context.stack_trace}"

        self.logger.log(level, message, extra={"error": error.to_dict()})

    def _update_stats(self, error: ShioriError) -> None:
        """統計を更新"""
        error_type = error.__class__.__name__
        self._error_counts[error_type] = self._error_counts.get(error_type, 0) + 1

        self._recent_errors.append(error)
        if len(self._recent_errors) > self.config.max_recent_errors:
            self._recent_errors.pop(0)

    def get_stats(self) -> dict[str, Any]:
        """エラー統計を取得"""
        return {
            "error_counts": dict(self._error_counts),
            "total_errors": sum(self._error_counts.values()),
            "recent_error_count": len(self._recent_errors),
        }

    def get_recent_errors(self, limit: int = 10) -> list[dict[str, Any]]:
        """最近のエラーを取得"""
        return [e.to_dict() for e in self._recent_errors[-limit:]]

    def clear_stats(self) -> None:
        """統計をクリア"""
        self._error_counts.clear()
        self._recent_errors.clear()


def create_error_handler(
    config: ErrorHandlerConfig | None = None,
    logger: logging.Logger | None = None,
) -> ErrorHandler:
    """エラーハンドラを作成"""
    return ErrorHandler(config=config, logger=logger)
