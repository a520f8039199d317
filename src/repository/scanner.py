"""Repository scanner: walk staged directories and build the index."""
from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from common.errors import MissingFieldError, ParseError
from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants
from descriptor.loader import load_identity
from .index import IndexBuilder, RepositoryIndex
from .naming import is_artifact_file, is_descriptor_file, is_native_file

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _scan_file(path: Path, root: Path, builder: IndexBuilder, natives: bool) -> None:
    if natives:
        if is_native_file(path):
            builder.add_native(path)
        return
    if is_descriptor_file(path):
        try:
            builder.add_identity(load_identity(path))
        except (ParseError, MissingFieldError) as e:
            logger.debug("Skipping descriptor %s: %s", path, e.message)
            builder.add_warning(f"{path}: {e.message}")
    elif is_artifact_file(path):
        builder.add_binary(path, root)


def _walk(
    root: Path,
    start: Path,
    builder: IndexBuilder,
    natives: bool,
    max_depth: Optional[int],
) -> int:
    """Walk ``start`` (a subdirectory of ``root``), returning the file count."""
    count = 0
    for dirpath, dirnames, filenames in os.walk(start):
        current = Path(dirpath)
        depth = len(current.relative_to(root).parts)
        if max_depth is not None and depth >= max_depth:
            dirnames[:] = []
        else:
            dirnames.sort()
        for name in sorted(filenames):
            _scan_file(current / name, root, builder, natives)
            count += 1
    return count


def _scan_root(
    root: Path,
    builder: IndexBuilder,
    executor: ThreadPoolExecutor,
    natives: bool,
    max_depth: Optional[int],
) -> List:
    """Scan files directly under ``root`` and submit its subdirectories."""
    if not root.is_dir():
        logger.debug("Scan root %s does not exist; treating it as empty", root)
        return []
    futures = []
    for entry in sorted(root.iterdir()):
        if entry.is_dir():
            if max_depth is None or max_depth >= 1:
                futures.append(executor.submit(_walk, root, entry, builder, natives, max_depth))
        elif entry.is_file():
            _scan_file(entry, root, builder, natives)
    return futures


def scan_repository(
    metadata_dirs: Sequence[PathLike],
    artifact_dirs: Iterable[PathLike] = (),
    native_dir: Optional[PathLike] = None,
    workers: int = Constants.SCAN_WORKERS,
    max_depth: Optional[int] = None,
) -> RepositoryIndex:
    """Scan descriptor, artifact and native-library trees once.

    Args:
        metadata_dirs: Directories holding descriptors (and possibly binaries).
        artifact_dirs: Additional directories holding binaries.
        native_dir: Directory holding native shared libraries.
        workers: Upper bound on parallel directory walkers.
        max_depth: Maximum number of directory levels below each root.

    Returns:
        RepositoryIndex: immutable lookup tables for the run.
    """
    builder = IndexBuilder()
    roots = []
    for directory in list(metadata_dirs) + list(artifact_dirs):
        root = Path(directory)
        if root not in roots:
            roots.append(root)

    with Timer() as t:
        with ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix="scan") as executor:
            futures = []
            for root in roots:
                futures.extend(_scan_root(root, builder, executor, False, max_depth))
            if native_dir is not None:
                futures.extend(_scan_root(Path(native_dir), builder, executor, True, max_depth))
            files = sum(f.result() for f in futures)
        index = builder.build()

    logger.info(
        "Indexed %d descriptors, %d artifacts, %d native libraries",
        index.stats()["descriptors"],
        index.stats()["artifacts"] + index.stats()["unpaired"],
        index.stats()["natives"],
    )
    if is_debug_enabled(logger):
        logger.debug("Scan complete", extra=extra_context(
            event="complete", component="scanner", action="scan_repository",
            outcome="success", count=files, duration_ms=t.duration_ms()
        ))
    for warning in index.warnings:
        logger.warning("Scan: %s", warning)
    return index
