"""Console-based reporter implementation using Rich.

Adapts the Reporter protocol to the styled console messages of the UI.
"""

from __future__ import annotations

from rich.markup import escape

from gammafit.core.shared.reporter import Reporter
from gammafit.ui.messages import action, error, info, success, warning


class ConsoleReporter:
    """Reporter implementation using Rich console output.

    Messages are plain text, so they are escaped before reaching the markup
    renderer.

    Example:
        >>> from gammafit.ui.reporter import ConsoleReporter
        >>> reporter = ConsoleReporter()
        >>> reporter.action("Fitting region 20 -> 80...")
        >>> reporter.success("Best fit from cycle 2")
    """

    def action(self, message: str) -> None:
        action(escape(message))

    def info(self, message: str) -> None:
        info(escape(message), indent=1)

    def warning(self, message: str) -> None:
        warning(escape(message), indent=1)

    def error(self, message: str) -> None:
        error(escape(message))

    def success(self, message: str) -> None:
        success(escape(message))


# Verify protocol compliance at import time
if not isinstance(ConsoleReporter(), Reporter):
    raise TypeError("ConsoleReporter must satisfy Reporter protocol")
