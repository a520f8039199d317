"""Error kinds raised by the resolution pipeline.

Every error carries the coordinate it concerns and, once known, the path
from a root to that coordinate so a failure can be reproduced from the
diagnostics alone.
"""
from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple


class DepstageError(Exception):
    """Base class for all resolver errors."""

    kind = "error"

    def __init__(
        self,
        message: str,
        coordinate: Optional[Any] = None,
        path_to_root: Sequence[Any] = (),
    ):
        super().__init__(message)
        self.message = message
        self.coordinate = coordinate
        self.path_to_root: Tuple[Any, ...] = tuple(path_to_root)

    def with_path(self, path_to_root: Sequence[Any]) -> "DepstageError":
        """Attach the path to root unless one was recorded already."""
        if not self.path_to_root:
            self.path_to_root = tuple(path_to_root)
        return self

    def __str__(self) -> str:
        if self.coordinate is None:
            return self.message
        return f"{self.coordinate}: {self.message}"


class ConfigError(DepstageError):
    """Invalid run configuration."""

    kind = "config"


class ParseError(DepstageError):
    """Malformed descriptor file."""

    kind = "parse"


class MissingFieldError(DepstageError):
    """Descriptor lacks a required identity field."""

    kind = "missing_field"


class UnresolvedParentError(DepstageError):
    """Declared parent descriptor cannot be found."""

    kind = "unresolved_parent"


class CyclicInheritanceError(DepstageError):
    """Parent chain re-enters a descriptor still being resolved."""

    kind = "cyclic_inheritance"

    def __init__(self, chain: Sequence[Any], coordinate: Optional[Any] = None):
        self.chain = tuple(chain)
        rendered = " -> ".join(str(c) for c in self.chain)
        super().__init__(f"cyclic parent chain: {rendered}", coordinate=coordinate)


class InheritanceDepthError(DepstageError):
    """Parent chain exceeds the configured maximum depth."""

    kind = "inheritance_depth"


class InterpolationDepthError(DepstageError):
    """Placeholder expansion did not settle within the pass limit."""

    kind = "interpolation_depth"


class UnresolvedExpressionError(DepstageError):
    """A field used for resolution still holds an unresolved placeholder."""

    kind = "unresolved_expression"


class CyclicImportError(DepstageError):
    """Import-scoped management references form a cycle."""

    kind = "cyclic_import"


class NoMatchingVersionError(DepstageError):
    """No indexed version satisfies the requested version or range."""

    kind = "no_matching_version"


class MissingArtifactError(DepstageError):
    """Metadata is present but the artifact binary is not on disk."""

    kind = "missing_artifact"


class ReentrantComputationError(DepstageError):
    """A cached computation would wait on itself."""

    kind = "reentrant"

    def __init__(self, key: Any, chain: Sequence[Any] = ()):
        self.key = key
        self.chain = tuple(chain)
        super().__init__(f"computation for {key} re-entered itself")


class ResolutionError(DepstageError):
    """One or more root coordinates could not be resolved."""

    kind = "resolution"

    def __init__(self, message: str, failures: Sequence[Any] = (), graph: Optional[Any] = None):
        super().__init__(message)
        self.failures = list(failures)
        self.graph = graph


class ResolutionCancelledError(DepstageError):
    """The run was cancelled before the graph was complete."""

    kind = "cancelled"

    def __init__(self, message: str, graph: Optional[Any] = None):
        super().__init__(message)
        self.graph = graph
