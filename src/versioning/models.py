"""Data models for coordinates and version requests."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from constants import Constants


class ResolutionMode(Enum):
    """How a requested version is matched against indexed versions."""
    EXACT = "exact"
    RANGE = "range"
    LATEST = "latest"


@dataclass(frozen=True)
class VersionSpec:
    """Normalized representation of a version request."""
    raw: str
    mode: ResolutionMode


# group, artifact
GroupArtifact = Tuple[str, str]
# group, artifact, classifier, type
ManagementKey = Tuple[str, str, Optional[str], str]


@dataclass(frozen=True)
class Coordinate:
    """Identity of one artifact; key for every cache and graph node."""
    group: str
    artifact: str
    version: str
    classifier: Optional[str] = None
    type: str = Constants.DEFAULT_TYPE

    @property
    def ga(self) -> GroupArtifact:
        return (self.group, self.artifact)

    @property
    def gav(self) -> "Coordinate":
        """Descriptor identity: same group/artifact/version, default type."""
        if self.classifier is None and self.type == Constants.DEFAULT_TYPE:
            return self
        return Coordinate(self.group, self.artifact, self.version)

    @property
    def management_key(self) -> ManagementKey:
        return (self.group, self.artifact, self.classifier, self.type)

    def with_version(self, version: str) -> "Coordinate":
        return replace(self, version=version)

    def __str__(self) -> str:
        # Same field order as dependency:list output: G:A[:P[:C]]:V
        parts = [self.group, self.artifact]
        if self.classifier:
            parts.extend([self.type, self.classifier])
        elif self.type != Constants.DEFAULT_TYPE:
            parts.append(self.type)
        parts.append(self.version)
        return ":".join(parts)


def ga_string(ga: GroupArtifact) -> str:
    return f"{ga[0]}:{ga[1]}"
