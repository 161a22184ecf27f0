# SHIORI CLI - Index Commands
"""
CLI - index コマンド群
インデックスの状態確認・リセット・再構築
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from shiori.cli.main import (
    OutputFormat,
    get_service,
    print_error,
    print_success,
    print_warning,
)
from shiori.errors import ShioriError

console = Console()
index_app = typer.Typer(help="Index management commands")


def _require_index(service, name: str) -> None:
    """インデックスが定義されていなければ終了"""
    if not service.registry.list_definitions(name):
        print_error(f"Index not defined: {name}")
        raise typer.Exit(1)


@index_app.command("status")
def index_status(
    name: Optional[str] = typer.Argument(None, help="Index name (default: all)"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.text, "--output", "-o", help="Output format"
    ),
):
    """Show index definitions and watermarks"""

    try:
        service = get_service(config)
        statuses = service.get_status(name)

        if output == OutputFormat.json:
            console.print_json(json.dumps([s.to_dict() for s in statuses]))
            return

        if not statuses:
            print_warning("No indices defined")
            return

        table = Table(title="SHIORI Index Status")
        table.add_column("Index", style="cyan")
        table.add_column("Content Types")
        table.add_column("Latest")
        table.add_column("Watermark", justify="right")
        table.add_column("Documents", justify="right")

        for status in statuses:
            definition = status.definition
            types = ", ".join(sorted(definition.included_types)) or "[dim](none)[/dim]"
            documents = f"{status.document_count:,}" if status.exists else "[red]missing[/red]"
            table.add_row(
                definition.name,
                types,
                "yes" if definition.index_latest else "no",
                str(status.last_task_id),
                documents,
            )

        console.print(table)

    except ShioriError as e:
        print_error(str(e))
        raise typer.Exit(1)


@index_app.command("reset")
def index_reset(
    name: str = typer.Argument(..., help="Index name"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
):
    """Reset an index watermark so the next sync reprocesses every task"""

    try:
        service = get_service(config)
        _require_index(service, name)
        service.reset_index(name)
        print_success(f"Index reset: {name}")
        console.print("Run [cyan]shiori sync[/cyan] to reprocess the task log")

    except ShioriError as e:
        print_error(str(e))
        raise typer.Exit(1)


@index_app.command("rebuild")
def index_rebuild(
    name: str = typer.Argument(..., help="Index name"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmation"
    ),
):
    """Drop and recreate an index, then reset its watermark"""

    if not force:
        confirm = typer.confirm(f"Drop all documents in index '{name}'?")
        if not confirm:
            console.print("Cancelled")
            raise typer.Exit(0)

    try:
        service = get_service(config)
        _require_index(service, name)
        service.rebuild_index(name)
        print_success(f"Index rebuilt: {name}")
        console.print("Run [cyan]shiori sync[/cyan] to repopulate it")

    except ShioriError as e:
        print_error(str(e))
        raise typer.Exit(1)
