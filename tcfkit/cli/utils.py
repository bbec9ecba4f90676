"""Shared utilities for the tcf CLI.

This module provides common functionality for:
- Reading a consent string from stdin, a file, or the argument itself
- Loading a local GVL file for analysis commands
- Exit codes
"""

import os
import sys
from pathlib import Path

import typer

from tcfkit.gvl import GlobalVendorList, load_gvl
from tcfkit.tcf import GVLError

# Exit codes
EXIT_SUCCESS = 0
EXIT_VALIDATION_FAILURE = 1
EXIT_PARSE_ERROR = 2
EXIT_IO_ERROR = 3


def read_input(source: str, encoding: str = "utf-8") -> str:
    """Read input from stdin, file, or argument.

    Args:
        source: Input source - "-" for stdin, file path, or literal value
        encoding: Text encoding for files

    Returns:
        The input with surrounding whitespace removed

    Raises:
        typer.Exit: On I/O errors with EXIT_IO_ERROR
    """
    try:
        if source == "-":
            return sys.stdin.read().strip()

        # os.path.isfile tolerates names longer than NAME_MAX.
        if os.path.isfile(source):
            return Path(source).read_text(encoding=encoding).strip()

        # Treat as literal consent string
        return source.strip()

    except OSError as e:
        typer.echo(f"Error reading input: {e}", err=True)
        raise typer.Exit(EXIT_IO_ERROR) from e


def read_gvl(path: Path) -> GlobalVendorList:
    """Load a local GVL JSON file, exiting with EXIT_IO_ERROR on failure."""
    try:
        return load_gvl(path)
    except GVLError as e:
        typer.echo(f"Error loading GVL: {e.message}", err=True)
        raise typer.Exit(EXIT_IO_ERROR) from e
