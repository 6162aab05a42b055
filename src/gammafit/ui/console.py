"""Console configuration and theme for the gammafit UI.

This module provides the central console instance and theme used throughout
the application for consistent styling.
"""

import os
import sys

from rich.console import Console
from rich.theme import Theme

from gammafit import __version__

GAMMAFIT_THEME = Theme(
    {
        # --- Semantic Status ---
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
        "info": "cyan",
        "neutral": "dim white",
        # --- UI Structure ---
        "header": "bold cyan",
        "subheader": "bold white",
        "panel.border": "blue",
        # --- Data & Values ---
        "key": "cyan",
        "value": "green",
        "metric": "bold green",
        "number": "green",
        "path": "blue underline",
        # --- Fit Flags ---
        "flag": "bold magenta",
        "dim": "dim",
        "emphasis": "bold",
    }
)

# Single console instance for entire application
console = Console(theme=GAMMAFIT_THEME)

VERSION = __version__

_EMOJI_DISABLED = os.getenv("GAMMAFIT_NO_EMOJI", "").lower() in {"1", "true", "yes"}


def _supports_emoji() -> bool:
    """Best-effort detection if the terminal supports Unicode symbols."""
    if _EMOJI_DISABLED:
        return False
    enc = getattr(console, "encoding", None) or sys.getdefaultencoding()
    return "utf" in enc.lower()


def icon(name: str) -> str:
    """Return a UI icon string based on terminal capabilities.

    Names: check, warn, error, info, bullet, play
    """
    use_emoji = _supports_emoji()
    mapping = {
        "check": "✓" if use_emoji else "+",
        "warn": "⚠" if use_emoji else "!",
        "error": "✗" if use_emoji else "x",
        "info": "▸" if use_emoji else ">",
        "bullet": "‣" if use_emoji else "-",
        "play": "▶" if use_emoji else ">",
    }
    return mapping.get(name, mapping["bullet"])


__all__ = ["GAMMAFIT_THEME", "VERSION", "console", "icon"]
