"""CLI command modules for gammafit.

Each module exports a command function carrying its Typer annotations;
``gammafit.cli.app`` registers them.
"""

from gammafit.cli.commands.fit import fit_command
from gammafit.cli.commands.init import init_command

__all__ = ["fit_command", "init_command"]
