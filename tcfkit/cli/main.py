"""tcf CLI - Main entry point with subcommand registration.

This module defines the main typer app and registers all subcommands.
"""

import typer

from tcfkit import __version__
from tcfkit.cli import consent, gvl

# Main app
app = typer.Typer(
    name="tcf",
    help="TCF CLI Tools - Decode and analyze IAB TCF consent strings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"tcf version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """TCF CLI Tools - Decode and analyze IAB TCF consent strings.

    All commands accept the consent string literally, as a file path, or
    from stdin using '-'.  Output is JSON by default for easy piping.

    Examples:
        tcf consent decode "CPBZjR9PBZjR9AKAZADEBUCsAP_AAH_AAAqI..."
        cat tc.txt | tcf consent vendor - 136
        tcf gvl analyze tc.txt --gvl vendor-list.json
    """
    pass


app.add_typer(consent.app, name="consent", help="Decode TCF consent strings")
app.add_typer(gvl.app, name="gvl", help="Analyze consent strings against a local GVL")


if __name__ == "__main__":
    app()
