"""Command-line interface for gammafit."""

from gammafit.cli.app import app

__all__ = ["app"]
