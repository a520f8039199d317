"""Map resolved coordinates to binaries and native libraries on disk."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Mapping, Optional

from common.errors import MissingArtifactError
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants
from repository.index import RepositoryIndex
from repository.naming import artifact_stems
from versioning.models import Coordinate
from .models import NodeFailure, ResolvedGraph

logger = logging.getLogger(__name__)

_NATIVE_SUFFIXES_TO_DROP = ("-java", "-jni")


class ArtifactLocator:
    """Locate artifact binaries for every node of a graph.

    Args:
        index: Repository index of the run.
        native_aliases: ``artifact`` or ``group:artifact`` to native library name.
    """

    def __init__(self, index: RepositoryIndex, native_aliases: Optional[Mapping[str, str]] = None):
        self.index = index
        self.native_aliases = dict(native_aliases or {})

    def locate(self, graph: ResolvedGraph) -> ResolvedGraph:
        """Fill paths and status in place; missing binaries become failures."""
        for node in graph.nodes:
            coord = node.coordinate
            node.artifact_path = self.find_artifact(coord)
            node.native_library_path = self.find_native(coord)
            if node.artifact_path is not None:
                node.status = "resolved"
                continue
            node.status = "unresolved"
            error = MissingArtifactError("artifact file not found", coordinate=coord, path_to_root=node.path)
            graph.failures.append(NodeFailure(str(coord), error, node.path, root=node.root))
            logger.warning("No artifact found for %s", coord)
        if is_debug_enabled(logger):
            logger.debug("Artifacts located", extra=extra_context(
                event="complete", component="locator", action="locate",
                count=len(graph.nodes), outcome=f"unresolved={len(graph.unresolved)}"
            ))
        return graph

    def find_artifact(self, coordinate: Coordinate) -> Optional[Path]:
        extension = Constants.TYPE_EXTENSIONS.get(coordinate.type, coordinate.type)
        if extension == "pom" or (
            coordinate.classifier is None and self.index.packaging(coordinate) == "pom"
        ):
            return self.index.descriptor_path(coordinate)

        indexed = self.index.artifact_path(coordinate, coordinate.classifier, extension)
        if indexed is not None:
            return indexed
        for stem in artifact_stems(coordinate):
            candidate = self.index.unpaired_path(stem)
            if candidate is not None and candidate.suffix == f".{extension}":
                return candidate
        return None

    def native_candidates(self, coordinate: Coordinate) -> List[str]:
        artifact = coordinate.artifact
        names = [artifact]
        for suffix in _NATIVE_SUFFIXES_TO_DROP:
            if artifact.endswith(suffix):
                names.append(artifact[: -len(suffix)])
        for key in (f"{coordinate.group}:{artifact}", artifact):
            alias = self.native_aliases.get(key)
            if alias and alias not in names:
                names.append(alias)
        return names

    def find_native(self, coordinate: Coordinate) -> Optional[Path]:
        for name in self.native_candidates(coordinate):
            path = self.index.native_path(name)
            if path is not None:
                return path
        return None
