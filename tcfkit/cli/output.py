"""Output formatting for the tcf CLI.

``json`` and ``pretty`` print the command result as compact or indented
JSON.  ``table`` renders vendor rows (a list of dicts) as a rich table with
one row per vendor, and single records (a dict) as a two-column
field/value table.
"""

import json
import sys
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import typer
from rich.console import Console
from rich.table import Table


class OutputFormat(str, Enum):
    """Output format options."""

    json = "json"
    pretty = "pretty"
    table = "table"


def output_json(data: Any, pretty: bool = False) -> None:
    """Print *data* as JSON; non-JSON values fall back to ``str()``."""
    typer.echo(json.dumps(data, indent=2 if pretty else None, default=str))


def _cell(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(_cell(v) for v in value)
    if isinstance(value, dict):
        if "label" in value:
            return f"{value.get('purposeId')}: {value['label']}"
        return ", ".join(f"{k}={_cell(v)}" for k, v in value.items())
    return str(value)


def _print_table(headers: List[str], rows: List[List[str]], title: Optional[str]) -> None:
    table = Table(title=title, show_header=True, header_style="bold")
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*row)
    Console().print(table)


def output(
    data: Union[Dict[str, Any], List[Dict[str, Any]]],
    format: OutputFormat = OutputFormat.json,
    table_title: Optional[str] = None,
) -> None:
    """Print a command result in *format*.

    Args:
        data: Vendor rows, or a single record
        format: Output format (json, pretty, or table)
        table_title: Title for table format
    """
    if format != OutputFormat.table:
        output_json(data, pretty=format == OutputFormat.pretty)
        return

    if isinstance(data, dict):
        rows = [[str(key), _cell(value)] for key, value in data.items()]
        _print_table(["field", "value"], rows, table_title)
        return

    if not data:
        typer.echo("No vendors to display.", err=True)
        return
    headers = list(data[0].keys())
    _print_table(headers, [[_cell(row.get(h, "")) for h in headers] for row in data], table_title)


def output_error(code: str, message: str, exit_code: int = 1) -> None:
    """Print an error as JSON to stderr and exit with *exit_code*."""
    print(json.dumps({"error": True, "code": code, "message": message}), file=sys.stderr)
    raise typer.Exit(exit_code)
