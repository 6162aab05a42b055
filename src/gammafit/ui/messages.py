"""UI messages and status indicators."""

from __future__ import annotations

from gammafit.ui.console import console, icon

__all__ = ["action", "error", "info", "show_header", "success", "warning"]


def show_header(text: str) -> None:
    """Display a prominent section header."""
    console.print(f"\n[header]{text}[/header]")


def success(message: str, indent: int = 0) -> None:
    spaces = "  " * indent
    console.print(f"{spaces}[success]{icon('check')}[/success] {message}")


def warning(message: str, indent: int = 0) -> None:
    spaces = "  " * indent
    console.print(f"{spaces}[warning]{icon('warn')}[/warning]  {message}")


def error(message: str, indent: int = 0) -> None:
    spaces = "  " * indent
    console.print(f"{spaces}[error]{icon('error')}[/error] {message}")


def info(message: str, indent: int = 0) -> None:
    spaces = "  " * indent
    console.print(f"{spaces}[dim]{icon('info')}[/dim] {message}")


def action(message: str) -> None:
    """Display an action/process message with visual separation."""
    console.print(f"\n[bold yellow]{icon('play')}[/bold yellow] {message}")
