"""Repository index: where descriptors, binaries and native libraries live."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from descriptor.models import Identity
from versioning.comparator import sort_versions
from versioning.models import Coordinate, GroupArtifact
from .naming import extension_of, layout_coordinates, simplify_native_name, strip_jpp_prefix

logger = logging.getLogger(__name__)

# (classifier, extension)
ArtifactKey = Tuple[Optional[str], str]


class RepositoryIndex:
    """Immutable lookup tables produced by one scan."""

    def __init__(
        self,
        descriptors: Dict[Coordinate, Path],
        packagings: Dict[Coordinate, str],
        artifacts: Dict[Coordinate, Dict[ArtifactKey, Path]],
        unpaired: Dict[str, Path],
        natives: Dict[str, Path],
        warnings: List[str],
    ):
        self._descriptors = dict(descriptors)
        self._packagings = dict(packagings)
        self._artifacts = {k: dict(v) for k, v in artifacts.items()}
        self._unpaired = dict(unpaired)
        self._natives = dict(natives)
        self._warnings = tuple(warnings)
        versions: Dict[GroupArtifact, List[str]] = {}
        for coord in self._descriptors:
            versions.setdefault(coord.ga, []).append(coord.version)
        self._versions = {ga: sort_versions(v) for ga, v in versions.items()}

    @classmethod
    def empty(cls) -> "RepositoryIndex":
        return cls({}, {}, {}, {}, {}, [])

    def descriptor_path(self, coordinate: Coordinate) -> Optional[Path]:
        return self._descriptors.get(coordinate.gav)

    def has_descriptor(self, coordinate: Coordinate) -> bool:
        return coordinate.gav in self._descriptors

    def packaging(self, coordinate: Coordinate) -> Optional[str]:
        return self._packagings.get(coordinate.gav)

    def versions(self, ga: GroupArtifact) -> List[str]:
        """Indexed versions of ``ga``, oldest first."""
        return list(self._versions.get(ga, []))

    def artifact_path(self, coordinate: Coordinate, classifier: Optional[str], extension: str) -> Optional[Path]:
        return self._artifacts.get(coordinate.gav, {}).get((classifier, extension))

    def unpaired_path(self, stem: str) -> Optional[Path]:
        return self._unpaired.get(stem)

    def native_path(self, name: str) -> Optional[Path]:
        return self._natives.get(name)

    def coordinates(self) -> List[Coordinate]:
        return sorted(self._descriptors, key=str)

    @property
    def warnings(self) -> Tuple[str, ...]:
        return self._warnings

    def stats(self) -> Dict[str, int]:
        return {
            "descriptors": len(self._descriptors),
            "artifacts": sum(len(v) for v in self._artifacts.values()),
            "unpaired": len(self._unpaired),
            "natives": len(self._natives),
            "warnings": len(self._warnings),
        }


class IndexBuilder:
    """Thread-safe accumulator for scan results.

    Workers append in any order; ``build`` sorts by path so that, when two
    files claim the same key, the lexicographically last path wins
    regardless of worker timing.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._identities: List[Identity] = []
        self._binaries: List[Tuple[Path, Path]] = []
        self._natives: List[Path] = []
        self._warnings: List[str] = []

    def add_identity(self, identity: Identity) -> None:
        with self._lock:
            self._identities.append(identity)

    def add_binary(self, path: Path, root: Path) -> None:
        with self._lock:
            self._binaries.append((path, root))

    def add_native(self, path: Path) -> None:
        with self._lock:
            self._natives.append(path)

    def add_warning(self, message: str) -> None:
        with self._lock:
            self._warnings.append(message)

    def build(self) -> RepositoryIndex:
        with self._lock:
            identities = sorted(self._identities, key=lambda i: str(i.path))
            binaries = sorted(self._binaries, key=lambda b: str(b[0]))
            natives = sorted(self._natives, key=str)
            warnings = sorted(self._warnings)

        descriptors: Dict[Coordinate, Path] = {}
        packagings: Dict[Coordinate, str] = {}
        by_path: Dict[Path, Coordinate] = {}
        by_layout: Dict[Tuple[Path, str, str], Coordinate] = {}
        for identity in identities:
            coord = identity.coordinate
            if coord in descriptors:
                warnings.append(
                    f"duplicate descriptor for {coord}: {descriptors[coord]} replaced by {identity.path}"
                )
            descriptors[coord] = identity.path
            packagings[coord] = identity.packaging
            by_path[identity.path] = coord
            by_layout[(identity.path.parent, coord.artifact, coord.version)] = coord

        artifacts: Dict[Coordinate, Dict[ArtifactKey, Path]] = {}
        unpaired: Dict[str, Path] = {}
        for path, root in binaries:
            paired = self._pair(path, root, by_path, by_layout)
            if paired is None:
                unpaired[path.stem] = path
                stripped = strip_jpp_prefix(path.stem)
                if stripped != path.stem:
                    unpaired.setdefault(stripped, path)
                continue
            coord, classifier = paired
            artifacts.setdefault(coord, {})[(classifier, extension_of(path))] = path

        native_index: Dict[str, Path] = {}
        for path in natives:
            native_index[simplify_native_name(path.name)] = path

        index = RepositoryIndex(descriptors, packagings, artifacts, unpaired, native_index, warnings)
        logger.debug("Index built: %s", index.stats())
        return index

    @staticmethod
    def _pair(
        path: Path,
        root: Path,
        by_path: Dict[Path, Coordinate],
        by_layout: Dict[Tuple[Path, str, str], Coordinate],
    ) -> Optional[Tuple[Coordinate, Optional[str]]]:
        """Associate a binary with a descriptor coordinate.

        Repository layout first, then a same-stem descriptor in the same
        directory. Returns None for binaries that stay unpaired.
        """
        layout = layout_coordinates(path)
        if layout is not None:
            artifact, version, classifier = layout
            coord = by_layout.get((path.parent, artifact, version))
            if coord is not None:
                return coord, classifier
            try:
                group_parts = path.parent.parent.parent.relative_to(root).parts
            except ValueError:
                group_parts = ()
            if group_parts:
                return Coordinate(".".join(group_parts), artifact, version), classifier

        sibling = path.with_suffix(".pom")
        coord = by_path.get(sibling)
        if coord is not None:
            return coord, None
        return None
