# SHIORI Config Manager
"""
shiori.api.config - 設定マネージャー
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from shiori.api.base import EngineBackend, SearchSettings, ShioriConfig
from shiori.errors import ConfigurationError
from shiori.sync.types import PAGE_SIZE, ErrorPolicy

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class ConfigManager:
    """設定マネージャー"""

    def __init__(self, config_path: str | Path | None = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: ShioriConfig | None = None

    @classmethod
    def from_yaml(cls, path: str | Path) -> ConfigManager:
        """YAMLファイルから読み込み"""
        manager = cls(path)
        manager.load()
        return manager

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> ConfigManager:
        """辞書から作成"""
        manager = cls()
        manager._config = cls._parse_config(config_dict)
        return manager

    @classmethod
    def from_config(cls, config: ShioriConfig) -> ConfigManager:
        """ShioriConfigから作成"""
        manager = cls()
        manager._config = config
        return manager

    def load(self) -> ShioriConfig:
        """設定を読み込み"""
        if not self.config_path or not self.config_path.exists():
            self._config = ShioriConfig()
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {self.config_path}",
                cause=e,
                operation="load",
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config root must be a mapping: {self.config_path}",
                operation="load",
            )

        self._config = self._parse_config(data)
        return self._config

    def save(self, path: str | Path | None = None) -> None:
        """設定を保存"""
        if self._config is None:
            return

        save_path = Path(path) if path else self.config_path
        if save_path is None:
            raise ValueError("No path specified for saving config")

        save_path.parent.mkdir(parents=True, exist_ok=True)

        data = self._config_to_dict(self._config)
        with open(save_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True)

    @staticmethod
    def _parse_enum(enum_cls: Any, raw: Any, key: str) -> Any:
        """列挙値をパース"""
        if isinstance(raw, enum_cls):
            return raw
        try:
            return enum_cls(str(raw).lower())
        except ValueError as e:
            valid = ", ".join(member.value for member in enum_cls)
            raise ConfigurationError(
                f"Invalid value for {key}: {raw!r} (expected one of: {valid})",
                cause=e,
                operation="parse",
                key=key,
            ) from e

    @staticmethod
    def _parse_config(data: dict[str, Any]) -> ShioriConfig:
        """設定をパース"""
        engine = ConfigManager._parse_enum(
            EngineBackend, data.get("engine", "memory"), "engine"
        )
        error_policy = ConfigManager._parse_enum(
            ErrorPolicy, data.get("error_policy", "abort"), "error_policy"
        )

        page_size = data.get("page_size", PAGE_SIZE)
        if not isinstance(page_size, int) or page_size < 1:
            raise ConfigurationError(
                f"page_size must be a positive integer: {page_size!r}",
                operation="parse",
                key="page_size",
            )

        log_level = str(data.get("log_level", "info")).lower()
        if log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log_level: {log_level!r}",
                operation="parse",
                key="log_level",
            )

        search_raw = data.get("search") or {}
        search = SearchSettings(
            default_index=search_raw.get("default_index"),
            default_search_fields=list(
                search_raw.get("default_search_fields", ["content.full_text"])
            ),
        )

        return ShioriConfig(
            state_path=Path(data.get("state_path", "./state")),
            task_log_path=data.get("task_log_path"),
            records_path=data.get("records_path"),
            engine=engine,
            lancedb_path=data.get("lancedb_path"),
            page_size=page_size,
            error_policy=error_policy,
            log_level=log_level,
            search=search,
        )

    @staticmethod
    def _config_to_dict(config: ShioriConfig) -> dict[str, Any]:
        """ShioriConfigを辞書に変換"""
        return {
            "state_path": str(config.state_path),
            "task_log_path": str(config.task_log_path),
            "records_path": str(config.records_path),
            "engine": config.engine.value,
            "lancedb_path": str(config.lancedb_path),
            "page_size": config.page_size,
            "error_policy": config.error_policy.value,
            "log_level": config.log_level,
            "search": {
                "default_index": config.search.default_index,
                "default_search_fields": list(config.search.default_search_fields),
            },
        }

    @property
    def config(self) -> ShioriConfig:
        """設定を取得"""
        if self._config is None:
            self._config = self.load()
        return self._config


def load_config(path: str | Path | None = None) -> ShioriConfig:
    """設定を読み込むヘルパー関数"""
    manager = ConfigManager(path)
    return manager.load()
