"""Raw descriptor models, as parsed from a single POM file."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from constants import Constants, Scopes
from versioning.models import Coordinate, GroupArtifact, ManagementKey


@dataclass(frozen=True)
class Exclusion:
    """``group:artifact`` pattern removed from a dependency's subtree."""
    group: str
    artifact: str

    def matches(self, ga: GroupArtifact) -> bool:
        return (self.group in ("*", ga[0])) and (self.artifact in ("*", ga[1]))

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}"


@dataclass(frozen=True)
class Dependency:
    """A dependency or dependency-management declaration.

    ``version`` may be a literal, a ``${...}`` expression or a version
    range. ``scope`` is None until management or defaults fill it in.
    """
    group: str
    artifact: str
    version: Optional[str] = None
    classifier: Optional[str] = None
    type: str = Constants.DEFAULT_TYPE
    scope: Optional[str] = None
    optional: bool = False
    exclusions: Tuple[Exclusion, ...] = ()

    @property
    def ga(self) -> GroupArtifact:
        return (self.group, self.artifact)

    @property
    def management_key(self) -> ManagementKey:
        return (self.group, self.artifact, self.classifier, self.type)

    @property
    def is_import(self) -> bool:
        return self.scope == Scopes.IMPORT.value and self.type == "pom"

    @property
    def effective_scope(self) -> str:
        return self.scope or Constants.DEFAULT_SCOPE

    def coordinate(self, version: Optional[str] = None) -> Coordinate:
        """Coordinate for this declaration at ``version`` (default: declared)."""
        return Coordinate(
            group=self.group,
            artifact=self.artifact,
            version=version if version is not None else (self.version or ""),
            classifier=self.classifier,
            type=self.type,
        )

    def evolve(self, **changes) -> "Dependency":
        return replace(self, **changes)

    def __str__(self) -> str:
        return str(self.coordinate()) if self.version else f"{self.group}:{self.artifact}"


@dataclass(frozen=True)
class ParentRef:
    group: str
    artifact: str
    version: str
    relative_path: str = Constants.DEFAULT_RELATIVE_PATH

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.group, self.artifact, self.version)


@dataclass(frozen=True)
class Activation:
    """Profile activation predicate; all declared conditions must hold."""
    active_by_default: bool = False
    property_name: Optional[str] = None
    property_value: Optional[str] = None
    file_exists: Optional[str] = None
    file_missing: Optional[str] = None
    unsupported: Tuple[str, ...] = ()

    @property
    def has_conditions(self) -> bool:
        return bool(
            self.property_name or self.file_exists or self.file_missing or self.unsupported
        )


@dataclass
class Profile:
    """A profile: activation plus the model fragment it injects."""
    id: str
    activation: Optional[Activation] = None
    properties: Dict[str, str] = field(default_factory=dict)
    dependencies: List[Dependency] = field(default_factory=list)
    management: List[Dependency] = field(default_factory=list)


@dataclass
class RawModel:
    """One descriptor file, unmerged and uninterpolated."""
    path: Optional[Path]
    group: Optional[str]
    artifact: str
    version: Optional[str]
    packaging: str = Constants.DEFAULT_PACKAGING
    parent: Optional[ParentRef] = None
    properties: Dict[str, str] = field(default_factory=dict)
    dependencies: List[Dependency] = field(default_factory=list)
    management: List[Dependency] = field(default_factory=list)
    profiles: List[Profile] = field(default_factory=list)

    @property
    def effective_group(self) -> Optional[str]:
        if self.group:
            return self.group
        return self.parent.group if self.parent else None

    @property
    def effective_version(self) -> Optional[str]:
        if self.version:
            return self.version
        return self.parent.version if self.parent else None

    @property
    def basedir(self) -> Optional[Path]:
        return self.path.parent if self.path is not None else None

    def copy(self) -> "RawModel":
        return replace(
            self,
            properties=dict(self.properties),
            dependencies=list(self.dependencies),
            management=list(self.management),
            profiles=list(self.profiles),
        )


@dataclass(frozen=True)
class Identity:
    """Cheap identity read used while indexing."""
    path: Path
    group: str
    artifact: str
    version: str
    packaging: str = Constants.DEFAULT_PACKAGING

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.group, self.artifact, self.version)
