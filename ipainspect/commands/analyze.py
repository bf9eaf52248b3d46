import json
import sys
from pathlib import Path

from rich import box
from rich.console import Console
from rich.table import Table

from ipainspect.logger import get_console
from ipainspect.src.core.analyzer import IPAAnalyzer
from ipainspect.src.core.errors import AnalysisError
from ipainspect.src.core.models import AnalysisResult
from ipainspect.src.utils.config_loader import get_analysis_limits


def verify_ipa_exists(ipa_path: Path, console) -> bool:
    """Verify IPA file exists and return status."""
    if not ipa_path.is_file():
        console.print(f"[red]Error:[/] IPA file not found: {ipa_path}")
        return False
    if ipa_path.suffix.lower() != ".ipa":
        console.print(f"[yellow]Warning:[/] {ipa_path.name} does not have an .ipa extension")
    return True


def format_size(size: int) -> str:
    return f"{size / 1024 / 1024:.2f} MB"


def build_summary_table(result: AnalysisResult) -> Table:
    """Render the headline fields of a result"""
    table = Table(title=f"IPA Analysis: {result.bundle_name}", box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    status = "[bold green]SIGNED[/]" if result.is_signed else "[bold red]NOT SIGNED[/]"
    table.add_row("Signing Status", status)
    table.add_row("File Size", format_size(result.file_size))
    table.add_row("Architectures", ", ".join(result.architectures) or "Unknown")
    table.add_row("Frameworks", str(result.embedded_framework_count))
    table.add_row("Plugins", str(result.plugin_count))
    table.add_row("Info.plist", f"{result.info_plist_size} bytes" if result.has_info_plist else "missing")

    identity = result.signature.signer_identity
    if identity:
        if identity.bundle_identifier:
            table.add_row("Bundle ID", identity.bundle_identifier)
        if identity.team_identifier:
            table.add_row("Team ID", identity.team_identifier)
        table.add_row("Format", identity.signature_format)
        table.add_row("Signature", "adhoc" if identity.is_ad_hoc else f"{identity.signature_size} bytes")
        if identity.authorities:
            table.add_row("Signing Authorities", "\n".join(f"• {a}" for a in identity.authorities))

    if result.signature.entitlements is not None:
        table.add_row("Entitlements", str(len(result.signature.entitlements)))
    if result.error:
        table.add_row("Diagnostics", f"[yellow]{result.error}[/]")
    return table


def build_certificate_table(result: AnalysisResult) -> Table:
    table = Table(title="Certificates", box=box.SIMPLE)
    table.add_column("Subject")
    table.add_column("Issuer")
    table.add_column("Valid From")
    table.add_column("Valid To")
    table.add_column("Key Identifier")

    for cert in result.signature.certificates or ():
        table.add_row(
            cert.subject or "-",
            cert.issuer or "-",
            cert.valid_from or "-",
            cert.valid_to or "-",
            cert.subject_key_identifier or "-",
        )
    return table


def print_result(output: Console, result: AnalysisResult, as_json: bool) -> None:
    if as_json:
        output.print_json(json.dumps(result.to_dict(), default=str))
        return

    output.print(build_summary_table(result))
    if result.signature.certificates:
        output.print(build_certificate_table(result))


def main(parsed_args) -> int:
    """Analyze one IPA and print the result."""
    console = get_console()
    args = parsed_args

    if not verify_ipa_exists(args.ipa_path, console):
        return 1

    try:
        limits = get_analysis_limits(
            max_total_size=args.max_total_size, max_entries=args.max_entries
        )
    except ValueError as e:
        console.print(f"[red]Configuration error:[/] {e}")
        return 1

    try:
        result = IPAAnalyzer(limits).analyze(args.ipa_path)
    except AnalysisError as e:
        console.print(f"[red]Error analyzing IPA:[/] {e}")
        return 1

    print_result(Console(file=sys.stdout), result, args.json)
    return 0


def run_analyze_command(args):
    """Entry point for the analyze command from CLI"""
    return main(parsed_args=args)
