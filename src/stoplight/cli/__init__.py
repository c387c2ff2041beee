"""CLI package for the Stoplight connector.

The main Typer app is created in app.py and commands are registered from each module.
"""

# Import command modules to register commands with the app
import stoplight.cli.commands_source  # noqa: F401, E402
from stoplight.cli.app import app

__all__ = ["app"]
