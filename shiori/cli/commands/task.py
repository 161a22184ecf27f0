# SHIORI CLI - Task Commands
"""
CLI - task コマンド群
タスクログへの手動追加と消費済みタスクの破棄
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from shiori.cli.main import (
    OutputFormat,
    get_service,
    print_error,
    print_success,
    print_warning,
)
from shiori.errors import ShioriError
from shiori.index.types import TaskKind, min_watermark

console = Console()
task_app = typer.Typer(help="Task log commands")


@task_app.command("add")
def task_add(
    record_id: str = typer.Argument(..., help="Record identifier"),
    delete: bool = typer.Option(
        False, "--delete", "-d", help="Append a delete task instead of an update"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.text, "--output", "-o", help="Output format"
    ),
):
    """Append an indexing task to the task log"""

    try:
        service = get_service(config)
        kind = TaskKind.DELETE if delete else TaskKind.UPDATE
        task = service.orchestrator.task_log.append(record_id, kind)

        if output == OutputFormat.json:
            console.print_json(json.dumps(task.to_dict()))
        else:
            print_success(f"Task {task.id} added: {kind.value} {record_id}")

    except ShioriError as e:
        print_error(str(e))
        raise typer.Exit(1)


@task_app.command("prune")
def task_prune(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
):
    """Discard tasks every index has already consumed"""

    try:
        service = get_service(config)
        definitions = service.registry.list_definitions()
        if not definitions:
            print_warning("No indices defined, nothing to prune")
            return

        up_to = min_watermark(service.watermarks.get(d.name) for d in definitions)
        removed = service.orchestrator.task_log.truncate(up_to)
        print_success(f"Pruned {removed} tasks up to task {up_to}")

    except ShioriError as e:
        print_error(str(e))
        raise typer.Exit(1)
