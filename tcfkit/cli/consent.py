"""Consent string commands.

Commands:
    tcf consent decode <input>            Decode the Core segment
    tcf consent vendor <input> <id>       Resolve one vendor
    tcf consent bits <input>              Dump the Core segment bits
"""

from typing import Any, List, Optional

import typer

from tcfkit.cli.output import OutputFormat, output, output_error
from tcfkit.cli.utils import EXIT_PARSE_ERROR, read_input
from tcfkit.tcf import (
    TCFDecodeError,
    core_segment_bits,
    decode,
    decode_report,
    format_bits,
    resolve,
    restriction_entries,
    vendor_restrictions,
)

app = typer.Typer(
    name="consent",
    help="Decode TCF consent strings.",
    no_args_is_help=True,
)


@app.command("decode")
def decode_cmd(
    source: str = typer.Argument(
        ...,
        help="Consent string, file path, or '-' for stdin",
    ),
    vendor: Optional[List[int]] = typer.Option(
        None,
        "--vendor",
        "-v",
        help="Vendor id to report on (repeatable; defaults to TCF_DEFAULT_VENDOR_IDS)",
    ),
    lenient: bool = typer.Option(
        False,
        "--lenient",
        help="Read missing trailing bits as zero instead of failing",
    ),
    format: OutputFormat = typer.Option(
        OutputFormat.json,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """Decode the Core segment of a TCF consent string.

    Reports the Core fields and, for each vendor, whether it has consent
    or legitimate interest and which purposes remain after publisher
    restrictions.

    Examples:
        tcf consent decode "CPBZjR9PBZjR9AKAZADEBUCsAP_AAH_AAAqI..."
        tcf consent decode tc.txt -v 136 -v 755
        cat tc.txt | tcf consent decode - --format pretty
    """
    tc_string = read_input(source)

    try:
        report = decode_report(tc_string, vendor or None, lenient=lenient)
    except TCFDecodeError as e:
        output_error(code=e.code, message=e.message, exit_code=EXIT_PARSE_ERROR)
        return

    if format == OutputFormat.table:
        rows = [
            {
                "vendor": v.vendor_id,
                "consent": v.info.has_consent,
                "legInt": v.info.has_legitimate_interest,
                "purposes": sorted(v.info.effective_purpose_consents),
                "liPurposes": sorted(v.info.effective_legitimate_interests),
                "restrictions": [f"{p}: {t.label}" for p, t in v.restrictions],
            }
            for v in report.vendors
        ]
        output(rows, format, table_title=f"TCF v{report.version_tag}")
        return

    output(report.to_dict(), format)


@app.command("vendor")
def vendor_cmd(
    source: str = typer.Argument(
        ...,
        help="Consent string, file path, or '-' for stdin",
    ),
    vendor_id: int = typer.Argument(..., help="Vendor id to resolve"),
    lenient: bool = typer.Option(False, "--lenient", help="Read missing trailing bits as zero"),
    format: OutputFormat = typer.Option(
        OutputFormat.json,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """Resolve one vendor's effective consent after publisher restrictions.

    Examples:
        tcf consent vendor tc.txt 136
    """
    tc_string = read_input(source)

    try:
        model = decode(tc_string, lenient=lenient)
    except TCFDecodeError as e:
        output_error(code=e.code, message=e.message, exit_code=EXIT_PARSE_ERROR)
        return

    result: dict[str, Any] = resolve(model, vendor_id).to_dict()
    result["restrictions"] = restriction_entries(vendor_restrictions(model, vendor_id))
    output(result, format)


@app.command("bits")
def bits_cmd(
    source: str = typer.Argument(
        ...,
        help="Consent string, file path, or '-' for stdin",
    ),
) -> None:
    """Print the Core segment as grouped bits (8 per group, 64 per line).

    Examples:
        tcf consent bits tc.txt
    """
    tc_string = read_input(source)

    try:
        bits = core_segment_bits(tc_string)
    except TCFDecodeError as e:
        output_error(code=e.code, message=e.message, exit_code=EXIT_PARSE_ERROR)
        return

    typer.echo(format_bits(bits))


if __name__ == "__main__":
    app()
