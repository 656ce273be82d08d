"""
CLI Error Handling
==================

Consistent error reporting and exit codes for the command-line tools.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from cellasm.errors import CellAsmError


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Parse or layout error
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None,
) -> NoReturn:
    """
    Report an exception and exit with the matching code.

    Args:
        error: The exception that was raised
        verbose: If True, print the traceback for internal errors
        error_type: Optional prefix for the message (e.g., "Layout")

    Raises:
        SystemExit: Always
    """
    if isinstance(error, CellAsmError):
        # AssemblerError messages already carry "error:" and the location
        prefix = f"{error_type} failed:\n" if error_type else ""
        click.echo(f"{prefix}{error}", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, click.BadParameter):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, (FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
