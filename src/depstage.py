#!/usr/bin/env python3
"""depstage: resolve dependency coordinates against pre-staged local artifacts.

    Scans descriptor, artifact and native-library trees, expands the
    dependency graph of the requested roots and writes a manifest mapping
    every coordinate to a file on disk.
"""

import logging
import signal
import sys
from typing import List, Optional, Sequence, Tuple

from args import parse_args
from cli_config import load_settings
from common.errors import ConfigError, ResolutionCancelledError, ResolutionError
from common.logging_utils import Timer, configure_logging, extra_context, is_debug_enabled
from constants import ExitCodes
from descriptor.models import Dependency
from repository.scanner import scan_repository
from resolution.context import ResolutionConfig, ResolutionContext
from resolution.graph import GraphResolver
from resolution.locator import ArtifactLocator
from resolution.manifest import build_manifest, write_csv, write_json
from resolution.models import ResolvedGraph
from resolution.schema import SchemaError

logger = logging.getLogger(__name__)


def create_context(config: ResolutionConfig) -> ResolutionContext:
    """Scan the configured trees and return a fresh resolution context."""
    index = scan_repository(
        config.metadata_dirs,
        config.artifact_dirs,
        config.native_dir,
        workers=config.scan_workers,
        max_depth=config.scan_depth,
    )
    return ResolutionContext(config, index)


def resolve(context: ResolutionContext, roots: Sequence[Dependency]) -> Tuple[ResolvedGraph, ExitCodes]:
    """Resolve and locate ``roots``; returns the graph and the run outcome.

    A failing root or a cancelled run still yields the partial graph so the
    manifest can report what was resolved.
    """
    outcome = ExitCodes.SUCCESS
    try:
        graph = GraphResolver(context).resolve(roots)
    except ResolutionCancelledError as e:
        logger.error("Resolution cancelled; writing partial manifest")
        graph, outcome = e.graph or ResolvedGraph(cancelled=True), ExitCodes.CANCELLED
    except ResolutionError as e:
        logger.error("%s", e.message)
        graph, outcome = e.graph or ResolvedGraph(), ExitCodes.ROOT_FAILURE
    ArtifactLocator(context.index, context.config.native_aliases).locate(graph)
    missing_roots = [str(n.coordinate) for n in graph.nodes if n.root and not n.resolved]
    if missing_roots and outcome == ExitCodes.SUCCESS:
        logger.error("No artifact found for root(s): %s", ", ".join(missing_roots))
        outcome = ExitCodes.ROOT_FAILURE
    return graph, outcome


def _output_format(args) -> str:
    fmt = getattr(args, "OUTPUT_FORMAT", None)
    if fmt:
        return fmt
    output = getattr(args, "OUTPUT", None) or ""
    return "csv" if output.lower().endswith(".csv") else "json"


def _install_cancel_handler(context: ResolutionContext):
    """Route SIGINT to cooperative cancellation; returns the previous handler."""
    def _handler(signum, _frame):
        logger.warning("Received signal %s; cancelling", signum)
        context.cancel()

    return signal.signal(signal.SIGINT, _handler)


def main(argv: Optional[List[str]] = None) -> None:
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, getattr(args, "LOG_FILE", None), getattr(args, "QUIET", False))

    if is_debug_enabled(logger):
        logger.debug("CLI start", extra=extra_context(event="function_entry", component="cli", action="main"))
    logging.info("Arguments parsed.")

    try:
        config, roots = load_settings(args)
    except ConfigError as e:
        logging.error("%s", e.message)
        sys.exit(ExitCodes.FILE_ERROR.value)

    with Timer() as t:
        context = create_context(config)
        previous = _install_cancel_handler(context)
        try:
            graph, outcome = resolve(context, roots)
        finally:
            if previous is not None:
                signal.signal(signal.SIGINT, previous)

    manifest = build_manifest(graph)
    try:
        if _output_format(args) == "csv":
            write_csv(manifest, args.OUTPUT)
        else:
            write_json(manifest, args.OUTPUT)
    except (OSError, SchemaError) as e:
        logging.error("Manifest couldn't be written: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    unresolved = len(graph.unresolved)
    logger.info(
        "%d coordinates, %d unresolved, %d failures",
        len(graph.nodes), unresolved, len(graph.failures),
    )
    if is_debug_enabled(logger):
        logger.debug("CLI finished", extra=extra_context(
            event="function_exit", component="cli", action="main",
            outcome=outcome.name.lower(), duration_ms=t.duration_ms()
        ))

    if outcome != ExitCodes.SUCCESS:
        sys.exit(outcome.value)
    if unresolved and getattr(args, "ERROR_ON_UNRESOLVED", False):
        logging.error("Unresolved artifacts present; failing as requested.")
        sys.exit(ExitCodes.EXIT_UNRESOLVED.value)
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
