from pathlib import Path


def add_analysis_arguments(parser):
    """Add all analysis-related arguments to an existing parser."""
    parser.add_argument("ipa_path", type=Path, help="Path to the IPA file to analyze")

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the analysis result as JSON [default: table]",
    )

    parser.add_argument(
        "--max-size",
        type=int,
        dest="max_total_size",
        help="Maximum total uncompressed size in bytes [default: from config, 2 GiB]",
    )

    parser.add_argument(
        "--max-entries",
        type=int,
        help="Maximum number of archive entries [default: from config, 100000]",
    )
