# SHIORI CLI - Config Commands
"""
CLI - config コマンド群
設定ファイルの生成・表示
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from shiori.cli.main import find_config, print_error, print_success, print_warning
from shiori.errors import ShioriError

console = Console()
config_app = typer.Typer(help="Configuration commands")


# デフォルト設定テンプレート
DEFAULT_CONFIG = """# SHIORI Configuration File
# Incremental full-text index synchronizer

# ======================================
# State
# ======================================

# Directory for registry.json and watermarks.json
state_path: ./state

# Task log (JSON Lines) and record store (JSON)
task_log_path: ./state/tasks.jsonl
records_path: ./state/records.json

# ======================================
# Index Engine
# ======================================

# Engine backend: memory or lancedb
engine: lancedb

# LanceDB database directory
lancedb_path: ./state/lancedb

# ======================================
# Synchronization
# ======================================

# Tasks fetched per batch
page_size: 100

# Failure policy: abort (stop and keep watermarks) or skip (log and continue)
error_policy: abort

# Log level: debug, info, warning, error, critical
log_level: info

# ======================================
# Search Settings
# ======================================

search:
  default_index: null
  default_search_fields:
    - content.full_text
"""


@config_app.command("init")
def config_init(
    output_path: Path = typer.Option(
        Path("./shiori.yaml"),
        "--output", "-o",
        help="Output path for config file",
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite existing file"
    ),
):
    """Initialize a new configuration file"""

    if output_path.exists() and not force:
        print_warning(f"Config file already exists: {output_path}")
        console.print("Use --force to overwrite")
        raise typer.Exit(1)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(DEFAULT_CONFIG)

        print_success(f"Configuration file created: {output_path}")
        console.print("\nEdit the file to customize your settings:")
        console.print(f"  [cyan]$EDITOR {output_path}[/cyan]")
        console.print("\nThen synchronize your indices:")
        console.print("  [cyan]shiori sync[/cyan]")

    except OSError as e:
        print_error(f"Failed to create config file: {e}")
        raise typer.Exit(1)


@config_app.command("show")
def config_show(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file path"
    ),
    raw: bool = typer.Option(
        False, "--raw", help="Print the file as written instead of resolved values"
    ),
):
    """Show current configuration"""

    config_path = find_config(config)

    if config_path is None:
        print_warning("No configuration file found")
        console.print("\nCreate one with:")
        console.print("  [cyan]shiori config init[/cyan]")
        raise typer.Exit(1)

    try:
        if raw:
            content = config_path.read_text(encoding="utf-8")
            syntax = Syntax(content, "yaml", theme="monokai", line_numbers=True)
            console.print(Panel(syntax, title=str(config_path), border_style="cyan"))
            return

        from shiori.api import load_config

        cfg = load_config(config_path)

        table = Table(title=f"Configuration ({config_path})")
        table.add_column("Setting", style="cyan")
        table.add_column("Value")

        rows = [
            ("State Path", str(cfg.state_path)),
            ("Task Log", str(cfg.task_log_path)),
            ("Records", str(cfg.records_path)),
            ("Engine", cfg.engine.value),
            ("LanceDB Path", str(cfg.lancedb_path)),
            ("Page Size", str(cfg.page_size)),
            ("Error Policy", cfg.error_policy.value),
            ("Log Level", cfg.log_level),
            ("Default Index", cfg.search.default_index or "-"),
            ("Search Fields", ", ".join(cfg.search.default_search_fields)),
        ]
        for name, value in rows:
            table.add_row(name, value)

        console.print(table)

    except (OSError, ShioriError) as e:
        print_error(f"Failed to read config file: {e}")
        raise typer.Exit(1)
