"""Argument parsing functionality for depstage."""

import argparse
from constants import Constants


def build_parser() -> argparse.ArgumentParser:
    """Build the depstage argument parser."""
    parser = argparse.ArgumentParser(
        prog="depstage",
        description=(
            "depstage - resolve dependency coordinates to pre-staged local artifacts"
        ),
        add_help=True,
    )

    parser.add_argument("-m", "--metadata-dir",
                        dest="METADATA_DIRS",
                        help="Directory holding descriptor (POM) files; may be repeated",
                        action="append", type=str,
                        default=[])
    parser.add_argument("-j", "--artifact-dir",
                        dest="ARTIFACT_DIRS",
                        help="Directory holding artifact binaries; may be repeated",
                        action="append", type=str,
                        default=[])
    parser.add_argument("-n", "--native-dir",
                        dest="NATIVE_DIR",
                        help="Directory holding native shared libraries",
                        action="store", type=str)

    input_group = parser.add_argument_group("roots")
    input_group.add_argument("-p", "--package",
                             dest="SINGLE",
                             help="Root coordinate group:artifact[:type[:classifier]]:version; may be repeated",
                             action="append", type=str,
                             default=[])
    input_group.add_argument("-l", "--load_list",
                             dest="LIST_FROM_FILE",
                             help="Load root coordinates from a file (one per line)",
                             action="append", type=str,
                             default=[])

    parser.add_argument("-s", "--scope",
                        dest="SCOPES",
                        help="Scope to include in the result (default: compile and runtime); may be repeated",
                        action="append", type=str.lower,
                        choices=["compile", "runtime", "provided", "test", "system"])
    parser.add_argument("-D",
                        dest="PROPERTIES",
                        metavar="KEY=VALUE",
                        help="Override a descriptor property; may be repeated",
                        action="append", type=str,
                        default=[])
    parser.add_argument("-P", "--profile",
                        dest="PROFILES",
                        help="Activate a profile by id; may be repeated",
                        action="append", type=str,
                        default=[])
    parser.add_argument("-x", "--exclude",
                        dest="EXCLUDES",
                        metavar="GROUP:ARTIFACT",
                        help="Exclude group:artifact (wildcard *) from the whole graph; may be repeated",
                        action="append", type=str,
                        default=[])

    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output manifest (JSON or CSV); stdout when omitted",
                        action="store",
                        type=str)
    parser.add_argument("-f", "--format",
                        dest="OUTPUT_FORMAT",
                        help="Output format (json or csv). If not specified, inferred from --output extension; defaults to json.",
                        action="store",
                        type=str.lower,
                        choices=Constants.OUTPUT_FORMATS)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="YAML or JSON configuration file",
                        action="store",
                        type=str)

    parser.add_argument("--workers",
                        dest="WORKERS",
                        help="Parallel workers for scanning and model building",
                        action="store",
                        type=int)
    parser.add_argument("--max-parent-depth",
                        dest="MAX_PARENT_DEPTH",
                        help=f"Maximum parent chain length (default: {Constants.MAX_PARENT_DEPTH})",
                        action="store",
                        type=int)
    parser.add_argument("--scan-depth",
                        dest="SCAN_DEPTH",
                        help="Maximum directory depth scanned below each root",
                        action="store",
                        type=int)

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output logs to console.",
                        action="store_true")
    parser.add_argument("--error-on-unresolved",
                        dest="ERROR_ON_UNRESOLVED",
                        help="Exit with a non-zero status code if any artifact is unresolved.",
                        action="store_true")
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
