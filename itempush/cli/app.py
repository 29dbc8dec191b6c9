"""
Main CLI application for itempush.

Defines the Typer application structure and command routing; commands stay
thin and delegate to the service layer.
"""
import typer

from itempush.cli.commands.upload import upload_command
from itempush.cli.commands.inspect import categories_command, candidates_command, env_command


# Initialize Typer app
app = typer.Typer(help="itempush - publish content packages to the creator platform")

# Register commands
app.command("upload", help="Upload a package and publish it as a catalog item.")(upload_command)
app.command("categories", help="List supported category keys.")(categories_command)
app.command("candidates", help="List upload endpoint candidates in trial order.")(candidates_command)
app.command("env", help="Show itempush environment variables.")(env_command)
