import argparse
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme
from rich_argparse import RichHelpFormatter

from ipainspect.arguments import add_analysis_arguments
from ipainspect.src.constants.cli_constants import (
    __version__,
    get_banner_text,
    APP_DESCRIPTION,
)


class IPAInspectHelpFormatter(RichHelpFormatter):
    """Custom formatter for the ipainspect CLI with rich styling."""

    def __init__(self, prog):
        super().__init__(prog, max_help_position=30, width=100)
        self.console = Console(
            theme=Theme(
                {
                    "command": "bold cyan",
                    "argument": "green",
                    "option": "yellow",
                    "version": "blue",
                    "title": "bold magenta",
                }
            )
        )

    def start_section(self, heading):
        heading_text = Text(heading, style="title")
        super().start_section(str(heading_text))


def display_banner():
    """Display the ipainspect banner."""
    console = Console()
    version_info = Text(f"v{__version__}", style="blue")
    tagline = Text(APP_DESCRIPTION, style="italic")

    panel = Panel.fit(
        Text.assemble(get_banner_text(), "\n", tagline, "\n", version_info),
        border_style="green",
        padding=(1, 2),
    )
    console.print(panel)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ipainspect",
        description=f"ipainspect: {APP_DESCRIPTION}",
        formatter_class=IPAInspectHelpFormatter,
        add_help=True,
    )
    parser.add_argument(
        "--version", action="version", version=f"ipainspect {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command")

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze an IPA file",
        formatter_class=IPAInspectHelpFormatter,
        description="Check whether an IPA is signed and show its signing details.",
    )
    add_analysis_arguments(analyze_parser)
    return parser


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv or "-h" in argv or "--help" in argv:
        display_banner()

    # Environment overrides for limits and scratch dir may live in .env
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "analyze":
        from ipainspect.commands.analyze import run_analyze_command

        return run_analyze_command(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
