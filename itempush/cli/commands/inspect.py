"""
Read-only inspection commands: categories, candidates and environment.
"""
import sys
from typing import Optional

import typer
from rich.table import Table

from itempush.core.uploader import UploadService
from itempush.upload.exceptions import ConfigurationError


def _load(service: UploadService, config_path: Optional[str], candidates_path: Optional[str] = None) -> dict:
    try:
        return service.load_config(config_path, candidates_path)
    except (ConfigurationError, FileNotFoundError) as e:
        service.console.print(f"❌ Configuration error: {str(e)}", style="bold red")
        sys.exit(1)


def categories_command(
    config_path: Optional[str] = typer.Option(None, "-c", "--config", help="Path to config YAML"),
):
    """List supported category keys."""
    service = UploadService()
    config = _load(service, config_path)
    try:
        category_map = service.config_manager.build_category_map(config)
    except ConfigurationError as e:
        service.console.print(f"❌ Configuration error: {str(e)}", style="bold red")
        sys.exit(1)

    table = Table(title="Categories")
    table.add_column("Key")
    table.add_column("Platform id")
    for key, category_id in category_map.items():
        table.add_row(key, category_id)
    service.console.print(table)


def candidates_command(
    config_path: Optional[str] = typer.Option(None, "-c", "--config", help="Path to config YAML"),
    candidates_path: Optional[str] = typer.Option(None, "--candidates", help="Endpoint candidates YAML"),
):
    """List upload endpoint candidates in trial order."""
    service = UploadService()
    config = _load(service, config_path, candidates_path)
    try:
        candidates = service.config_manager.build_candidates(config)
    except ConfigurationError as e:
        service.console.print(f"❌ Configuration error: {str(e)}", style="bold red")
        sys.exit(1)

    table = Table(title="Upload endpoint candidates")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Method")
    table.add_column("URL")
    for index, candidate in enumerate(candidates, start=1):
        table.add_row(str(index), candidate.name, candidate.method, candidate.url)
    service.console.print(table)


def env_command():
    """Show itempush environment variables."""
    service = UploadService()
    summary = service.detector.get_environment_summary()
    for var, value in summary["detected_variables"].items():
        service.console.print(f"{var}: {value if value else '(not set)'}")
    if summary["missing_variables"]:
        service.console.print(f"Missing: {', '.join(summary['missing_variables'])}", style="yellow")
