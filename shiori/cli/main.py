# SHIORI CLI - Main Application
"""
CLI (Command Line Interface)
メインアプリケーション構造
"""

import asyncio
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from shiori.errors import ShioriError

# === アプリケーション初期化 ===

app = typer.Typer(
    name="shiori",
    help="SHIORI - Incremental full-text index synchronizer",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

CONFIG_SEARCH_PATHS = [
    Path("./shiori.yaml"),
    Path("./shiori.yml"),
    Path("./config/shiori.yaml"),
]


# === 出力フォーマット ===

class OutputFormat(str, Enum):
    """出力フォーマット"""
    text = "text"
    json = "json"


# === ユーティリティ関数 ===

def find_config(config_path: Optional[Path] = None) -> Optional[Path]:
    """設定ファイルを探索"""
    for path in [config_path, *CONFIG_SEARCH_PATHS]:
        if path and path.exists():
            return path
    return None


def configure_logging(level: str) -> None:
    """ロギングを設定"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def get_service(config_path: Optional[Path] = None):
    """IndexingServiceインスタンスを取得

    Args:
        config_path: 設定ファイルパス（Noneの場合は探索）

    Returns:
        IndexingService: 初期化済みインスタンス
    """
    from shiori.api import create_indexing_service, load_config

    config = load_config(find_config(config_path))
    configure_logging(config.log_level)
    return create_indexing_service(config)


def run(coro):
    """コルーチンを同期的に実行"""
    return asyncio.run(coro)


def print_error(message: str):
    """エラーメッセージを表示"""
    console.print(f"[red]✗ Error:[/red] {message}")


def print_success(message: str):
    """成功メッセージを表示"""
    console.print(f"[green]✓[/green] {message}")


def print_warning(message: str):
    """警告メッセージを表示"""
    console.print(f"[yellow]⚠[/yellow] {message}")


# === バージョンコマンド ===

@app.command()
def version():
    """Show version information"""
    from shiori import __version__

    console.print(Panel.fit(
        f"[bold cyan]SHIORI[/bold cyan] v{__version__}\n"
        "[dim]Incremental full-text index synchronizer[/dim]",
        border_style="cyan"
    ))


# === syncコマンド ===

@app.command()
def sync(
    index: Optional[str] = typer.Option(
        None, "--index", "-i", help="Synchronize a single index (default: all)"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.text, "--output", "-o", help="Output format"
    ),
):
    """Synchronize indices with the task log

    Examples:
        shiori sync
        shiori sync --index articles
    """
    try:
        service = get_service(config)

        with console.status("[bold green]Synchronizing...", spinner="dots"):
            result = run(service.synchronize(index))

        if output == OutputFormat.json:
            console.print_json(json.dumps(result.to_dict()))
            return

        if not result.indices:
            print_warning(f"No index to synchronize{f': {index}' if index else ''}")
            return

        table = Table(title="Synchronization Result")
        table.add_column("Index", style="cyan")
        table.add_column("Watermark", justify="right")
        for name, last_task_id in sorted(result.watermarks.items()):
            table.add_row(name, str(last_task_id))
        console.print(table)

        console.print(
            f"\n[bold]Tasks:[/bold] {result.tasks:,} in {result.batches} batches  "
            f"[bold]Stored:[/bold] {result.documents_stored:,}  "
            f"[bold]Deleted:[/bold] {result.documents_deleted:,}"
        )
        if result.failures:
            print_warning(f"{result.failures} records failed and were skipped")
        console.print(f"[dim]Time: {result.duration_ms:.0f}ms[/dim]")

    except ShioriError as e:
        print_error(str(e))
        raise typer.Exit(1)


# === サブコマンドのインポートとアタッチ ===

def attach_commands():
    """サブコマンドをアタッチ"""
    from shiori.cli.commands import config_app, index_app, task_app

    app.add_typer(index_app, name="index")
    app.add_typer(task_app, name="task")
    app.add_typer(config_app, name="config")


attach_commands()
