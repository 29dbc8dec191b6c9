"""
Upload command implementation.

Thin wrapper around UploadService that handles CLI argument parsing
and delegates business logic to the service layer.
"""
import sys
from typing import Optional

import typer

from itempush.core.uploader import UploadService


def upload_command(
    file_path: str = typer.Argument(..., help="Package file to upload"),
    account: str = typer.Option(..., "-a", "--account", help="Linked account id"),
    category: str = typer.Option(..., "--category", help="Category key (e.g. top, hair)"),
    accounts_path: Optional[str] = typer.Option(None, "--accounts", help="Accounts YAML (overrides ITEMPUSH_ACCOUNTS_FILE)"),
    config_path: Optional[str] = typer.Option(None, "-c", "--config", help="Path to config YAML"),
    candidates_path: Optional[str] = typer.Option(None, "--candidates", help="Endpoint candidates YAML (overrides ITEMPUSH_CANDIDATES_FILE)"),
):
    """Upload a package and publish it as a catalog item."""

    upload_service = UploadService()
    exit_code = upload_service.execute_upload(
        file_path=file_path,
        account_id=account,
        category=category,
        accounts_path=accounts_path,
        config_path=config_path,
        candidates_path=candidates_path,
    )

    if exit_code != 0:
        sys.exit(exit_code)
