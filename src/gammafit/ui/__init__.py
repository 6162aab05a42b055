"""UI and terminal output styling for gammafit.

Submodules:
- console: Theme and console instance
- logging: File and console logging
- branding: Version display
- messages: Status messages (success, error, warning, etc.)
- reporter: Reporter implementation on the console
- tables: Fit result tables
"""

from gammafit.ui.branding import show_version
from gammafit.ui.console import GAMMAFIT_THEME, VERSION, console, icon
from gammafit.ui.logging import close_logging, setup_logging
from gammafit.ui.messages import action, error, info, show_header, success, warning
from gammafit.ui.reporter import ConsoleReporter
from gammafit.ui.tables import create_table, fit_record_table, print_fit_records, print_summary

__all__ = [
    "GAMMAFIT_THEME",
    "VERSION",
    "ConsoleReporter",
    "action",
    "close_logging",
    "console",
    "create_table",
    "error",
    "fit_record_table",
    "icon",
    "info",
    "print_fit_records",
    "print_summary",
    "setup_logging",
    "show_header",
    "show_version",
    "success",
    "warning",
]
