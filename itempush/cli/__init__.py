"""
CLI module for itempush.

Provides the command-line interface on top of the upload service layer.
Log verbosity for the upload clients comes from ``ITEMPUSH_LOG_LEVEL``.
"""
import os

from itempush.cli.app import app as _app
from itempush.rich_utils.ui_helpers import configure_logging
from itempush.upload.environment_detector import StudioEnvironmentDetector


def app():
    """Console script entry point: set up logging, then run the Typer app."""
    configure_logging(os.getenv(StudioEnvironmentDetector.LOG_LEVEL_VAR))
    _app()


__all__ = ['app']
