"""
CLI Utilities - Shared helper functions for command line operations.

Formatted printing plus config and snapshot loading used by every command.
"""

import sys
from typing import Optional, Tuple

import click

from ..config import RetraceConfig
from ..core.errors import RetraceError
from ..core.session import Session, load_session


def echo_error(message: str) -> None:
    """Print an error message with a red cross."""
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    """Print a warning message with a yellow alert symbol."""
    click.echo(click.style(f"⚠️  {message}", fg="yellow"))


def load_or_exit(snapshot: Optional[str]) -> Tuple[Session, RetraceConfig]:
    """
    Load project config and a session snapshot, exiting with status 1 on failure.

    Args:
        snapshot: Path given on the command line. When omitted, the snapshot
            path from retrace.toml (or the default) is used.
    """
    try:
        config = RetraceConfig.load()
        session = load_session(snapshot or config.snapshot)
    except RetraceError as e:
        echo_error(str(e))
        sys.exit(1)
    return session, config
