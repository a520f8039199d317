"""Data models produced by the resolution pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from common.errors import DepstageError
from descriptor.models import Dependency, Exclusion
from versioning.models import Coordinate, ManagementKey


@dataclass(frozen=True)
class ProfileActivation:
    """Activation decision for one profile of one descriptor."""
    coordinate: Coordinate
    profile_id: str
    active: bool
    reason: str


@dataclass
class EffectiveModel:
    """Fully merged, interpolated metadata for one coordinate."""
    coordinate: Coordinate
    packaging: str
    descriptor_path: Optional[Path]
    properties: Dict[str, str]
    dependencies: List[Dependency]
    management: Dict[ManagementKey, Dependency]
    activations: List[ProfileActivation] = field(default_factory=list)
    rejected: List[DepstageError] = field(default_factory=list)

    @property
    def active_profiles(self) -> List[str]:
        return [a.profile_id for a in self.activations if a.active]


@dataclass(frozen=True)
class DependencyEdge:
    source: Coordinate
    target: Coordinate
    scope: str
    exclusions: Tuple[Exclusion, ...] = ()
    optional: bool = False
    depth: int = 1


@dataclass
class ResolvedNode:
    """One coordinate of the mediated graph."""
    coordinate: Coordinate
    scope: str
    depth: int
    path: Tuple[Coordinate, ...]
    root: bool = False
    artifact_path: Optional[Path] = None
    native_library_path: Optional[Path] = None
    status: str = "pending"

    @property
    def resolved(self) -> bool:
        return self.status == "resolved"


@dataclass(frozen=True)
class MediationLoss:
    """A version discarded in favor of a nearer or earlier one."""
    ga: Tuple[str, str]
    winner: str
    loser: str
    depth: int
    path: Tuple[Coordinate, ...]


@dataclass(frozen=True)
class ManagedOverride:
    """A transitive version or scope replaced by an ancestor's management."""
    ga: Tuple[str, str]
    declared: Optional[str]
    managed: str
    manager: Coordinate


@dataclass(frozen=True)
class VersionOverride:
    """An exact version absent from disk replaced by the installed one."""
    ga: Tuple[str, str]
    requested: str
    selected: str
    path: Tuple[Coordinate, ...]


@dataclass(frozen=True)
class NodeFailure:
    """A node-local error with the path that reached it."""
    coordinate: str
    error: DepstageError
    path: Tuple[Coordinate, ...] = ()
    root: bool = False

    @property
    def kind(self) -> str:
        return self.error.kind


@dataclass
class ResolvedGraph:
    """Terminal output of one resolution run."""
    roots: List[Coordinate] = field(default_factory=list)
    nodes: List[ResolvedNode] = field(default_factory=list)
    edges: List[DependencyEdge] = field(default_factory=list)
    losses: List[MediationLoss] = field(default_factory=list)
    overrides: List[ManagedOverride] = field(default_factory=list)
    version_overrides: List[VersionOverride] = field(default_factory=list)
    failures: List[NodeFailure] = field(default_factory=list)
    activations: List[ProfileActivation] = field(default_factory=list)
    scan_warnings: List[str] = field(default_factory=list)
    diagnostics: List[Any] = field(default_factory=list)
    cancelled: bool = False

    def node(self, coordinate: Coordinate) -> Optional[ResolvedNode]:
        for node in self.nodes:
            if node.coordinate == coordinate:
                return node
        return None

    def find(self, group: str, artifact: str) -> List[ResolvedNode]:
        return [n for n in self.nodes if n.coordinate.ga == (group, artifact)]

    @property
    def unresolved(self) -> List[ResolvedNode]:
        return [n for n in self.nodes if n.status != "resolved"]
