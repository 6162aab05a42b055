"""Version display for the gammafit UI."""

from __future__ import annotations

from gammafit.ui.console import VERSION, console


def show_version() -> None:
    """Show version information (for --version flag)."""
    console.print(f"[header]gammafit[/header] [dim]v{VERSION}[/dim]")
