"""wfstudio CLI module."""

from .main import cli_main

__all__ = ["cli_main"]
