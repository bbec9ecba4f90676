"""GVL-backed analysis commands.

Commands:
    tcf gvl analyze <input> --gvl PATH    Analyze vendors against a local GVL
    tcf gvl vendor <id> --gvl PATH        Show one GVL vendor record
"""

from pathlib import Path
from typing import List, Optional

import typer

from tcfkit.analysis import analyze_vendors, summarize_vendors
from tcfkit.cli.output import OutputFormat, output, output_error
from tcfkit.cli.utils import EXIT_PARSE_ERROR, EXIT_VALIDATION_FAILURE, read_gvl, read_input
from tcfkit.tcf import TCFDecodeError, decode

app = typer.Typer(
    name="gvl",
    help="Analyze consent strings against a local Global Vendor List.",
    no_args_is_help=True,
)

_GVL_OPTION_HELP = "Path to an already-downloaded vendor-list.json"


@app.command("analyze")
def analyze_cmd(
    source: str = typer.Argument(
        ...,
        help="Consent string, file path, or '-' for stdin",
    ),
    gvl_path: Path = typer.Option(..., "--gvl", help=_GVL_OPTION_HELP),
    vendor: Optional[List[int]] = typer.Option(
        None,
        "--vendor",
        "-v",
        help="Extra vendor id to include (repeatable)",
    ),
    lenient: bool = typer.Option(False, "--lenient", help="Read missing trailing bits as zero"),
    summary_only: bool = typer.Option(False, "--summary", help="Only print the vendor summary"),
    format: OutputFormat = typer.Option(
        OutputFormat.json,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """Analyze every consenting vendor against the GVL.

    For each vendor present in the GVL, lists its declared purposes and
    whether the string grants consent or legitimate interest for each,
    after publisher restrictions and flexible-purpose rules.

    Examples:
        tcf gvl analyze tc.txt --gvl vendor-list.json
        tcf gvl analyze tc.txt --gvl vendor-list.json --summary -f pretty
    """
    tc_string = read_input(source)
    gvl = read_gvl(gvl_path)

    try:
        model = decode(tc_string, lenient=lenient)
    except TCFDecodeError as e:
        output_error(code=e.code, message=e.message, exit_code=EXIT_PARSE_ERROR)
        return

    analyses = analyze_vendors(model, gvl, vendor or None)
    summary = summarize_vendors(analyses).to_dict()
    if summary_only:
        output(summary, format)
        return

    if format == OutputFormat.table:
        rows = [
            {
                "id": a.id,
                "name": a.name,
                "consent": a.has_consent,
                "legInt": a.has_legitimate_interest,
                "purposes": [p.id for p in a.purposes if p.has_consent],
                "liPurposes": [p.id for p in a.purposes if p.has_legitimate_interest],
            }
            for a in analyses
        ]
        output(rows, format, table_title=f"GVL v{gvl.vendor_list_version}")
        return

    output(
        {
            "version": model.version_tag,
            "vendors": [a.to_dict() for a in analyses],
            "summary": summary,
        },
        format,
    )


@app.command("vendor")
def vendor_cmd(
    vendor_id: int = typer.Argument(..., help="GVL vendor id"),
    gvl_path: Path = typer.Option(..., "--gvl", help=_GVL_OPTION_HELP),
    format: OutputFormat = typer.Option(
        OutputFormat.json,
        "--format",
        "-f",
        help="Output format",
    ),
) -> None:
    """Show the GVL record for one vendor.

    Examples:
        tcf gvl vendor 136 --gvl vendor-list.json
    """
    gvl = read_gvl(gvl_path)
    record = gvl.vendor(vendor_id)
    if record is None:
        output_error(
            code="GVL_VENDOR_NOT_FOUND",
            message=f"Vendor {vendor_id} is not in GVL version {gvl.vendor_list_version}",
            exit_code=EXIT_VALIDATION_FAILURE,
        )
        return

    data = record.model_dump(by_alias=True, exclude={"urls"})
    data["policyUrl"] = record.privacy_url
    data["purposeNames"] = {pid: gvl.purpose_name(pid) for pid in record.purposes}
    output(data, format)


if __name__ == "__main__":
    app()
