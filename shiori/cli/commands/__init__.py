# SHIORI CLI Commands
"""
コマンドモジュールのエクスポート
"""

from shiori.cli.commands.config_cmd import config_app
from shiori.cli.commands.index import index_app
from shiori.cli.commands.task import task_app

__all__ = [
    "config_app",
    "index_app",
    "task_app",
]
