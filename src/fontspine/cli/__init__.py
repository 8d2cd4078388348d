"""fontspine command-line interface."""

from fontspine.cli.app import app, main

__all__ = ["app", "main"]
