"""Status messages of region fits.

``fit_region`` announces the region, every cycle's chi-squared, each peak
it adds or deletes and why the cycle loop stopped; ``build_initial_state``
warns when the width calibration falls back to one channel. They only ever
see a :class:`Reporter`, which defaults to :class:`NullReporter` for library
calls. ``gammafit fit`` passes a :class:`CompositeReporter` that sends each
message both to the console (``gammafit.ui.reporter``) and, through
:class:`LoggingReporter`, to the ``gammafit`` logger, which also writes the
``--log-file`` when one is given.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable


@runtime_checkable
class Reporter(Protocol):
    """Protocol for progress and status reporting.

    All methods take a plain string to avoid coupling to any output format
    or styling system.
    """

    def action(self, message: str) -> None:
        """Report an action being performed (e.g. 'Fitting cycle 2...')."""
        ...

    def info(self, message: str) -> None:
        """Report an informational message."""
        ...

    def warning(self, message: str) -> None:
        """Report a non-fatal problem the user should be aware of."""
        ...

    def error(self, message: str) -> None:
        """Report an error that affects the results."""
        ...

    def success(self, message: str) -> None:
        """Report successful completion of an operation."""
        ...


class NullReporter:
    """Silent reporter that discards all messages.

    Example:
        >>> reporter = NullReporter()
        >>> reporter.action("Fitting region...")  # No output
    """

    def action(self, message: str) -> None:
        """Discard action message."""

    def info(self, message: str) -> None:
        """Discard info message."""

    def warning(self, message: str) -> None:
        """Discard warning message."""

    def error(self, message: str) -> None:
        """Discard error message."""

    def success(self, message: str) -> None:
        """Discard success message."""


class LoggingReporter:
    """Reporter that writes to Python logging.

    Example:
        >>> reporter = LoggingReporter("gammafit.fitting")
        >>> reporter.action("Fitting cycle 1...")  # INFO level
        >>> reporter.warning("Cycle 3 failed")  # WARNING level
    """

    def __init__(self, logger_name: str = "gammafit") -> None:
        """Initialize with a logger name.

        Args:
            logger_name: Name for the logger (default: 'gammafit')
        """
        self._logger = logging.getLogger(logger_name)

    def action(self, message: str) -> None:
        """Log action at INFO level with prefix."""
        self._logger.info("[ACTION] %s", message)

    def info(self, message: str) -> None:
        """Log info at INFO level."""
        self._logger.info(message)

    def warning(self, message: str) -> None:
        """Log warning at WARNING level."""
        self._logger.warning(message)

    def error(self, message: str) -> None:
        """Log error at ERROR level."""
        self._logger.error(message)

    def success(self, message: str) -> None:
        """Log success at INFO level with prefix."""
        self._logger.info("[SUCCESS] %s", message)


class CompositeReporter:
    """Reporter that delegates to multiple reporters."""

    def __init__(self, reporters: list[Reporter]) -> None:
        self._reporters = reporters

    def action(self, message: str) -> None:
        for reporter in self._reporters:
            reporter.action(message)

    def info(self, message: str) -> None:
        for reporter in self._reporters:
            reporter.info(message)

    def warning(self, message: str) -> None:
        for reporter in self._reporters:
            reporter.warning(message)

    def error(self, message: str) -> None:
        for reporter in self._reporters:
            reporter.error(message)

    def success(self, message: str) -> None:
        for reporter in self._reporters:
            reporter.success(message)
