"""Run configuration and the per-run resolution context.

Everything a resolution run reads or memoizes hangs off one
``ResolutionContext``: the frozen ``ResolutionConfig``, the repository index,
the raw/inherited/effective model caches, the diagnostics collector and the
cancellation token. Nothing is kept at module level.
"""
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from constants import Constants
from descriptor import loader
from descriptor.models import Exclusion, RawModel
from repository.index import RepositoryIndex
from versioning.models import Coordinate
from .cache import SingleFlightCache, WaitGraph
from .models import EffectiveModel

if TYPE_CHECKING:
    from .inheritance import InheritedModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionConfig:
    """Immutable parameters of one run."""
    metadata_dirs: Tuple[Path, ...] = ()
    artifact_dirs: Tuple[Path, ...] = ()
    native_dir: Optional[Path] = None
    native_aliases: Mapping[str, str] = field(default_factory=dict)
    overrides: Mapping[str, str] = field(default_factory=dict)
    active_profiles: Tuple[str, ...] = ()
    scope_filter: Tuple[str, ...] = Constants.DEFAULT_SCOPE_FILTER
    exclusions: Tuple[Exclusion, ...] = ()
    workers: int = Constants.RESOLUTION_WORKERS
    scan_workers: int = Constants.SCAN_WORKERS
    scan_depth: Optional[int] = None
    max_parent_depth: int = Constants.MAX_PARENT_DEPTH
    max_interpolation_passes: int = Constants.MAX_INTERPOLATION_PASSES
    environment: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))


class CancellationToken:
    """Cooperative cancellation flag checked between node expansions."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class Diagnostic:
    """One reportable event; ``kind`` matches the error kinds."""
    kind: str
    message: str
    coordinate: Optional[str] = None
    path: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "coordinate": self.coordinate,
            "message": self.message,
            "path": list(self.path),
        }


class DiagnosticsCollector:
    """Lock-guarded, append-only diagnostics list."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: List[Diagnostic] = []

    def add(self, kind: str, message: str, coordinate: Optional[Any] = None, path: Tuple[Any, ...] = ()) -> None:
        item = Diagnostic(
            kind=kind,
            message=message,
            coordinate=str(coordinate) if coordinate is not None else None,
            path=tuple(str(p) for p in path),
        )
        with self._lock:
            self._items.append(item)

    def snapshot(self) -> List[Diagnostic]:
        """All diagnostics, deduplicated and in a stable order."""
        with self._lock:
            items = list(self._items)
        unique = {}
        for item in items:
            unique.setdefault((item.kind, item.coordinate or "", item.message, item.path), item)
        return [unique[key] for key in sorted(unique)]


class ResolutionContext:
    """Per-run owner of configuration, index, caches and diagnostics."""

    def __init__(self, config: ResolutionConfig, index: Optional[RepositoryIndex] = None):
        self.config = config
        self.index = index or RepositoryIndex.empty()
        self.diagnostics = DiagnosticsCollector()
        self.token = CancellationToken()
        waits = WaitGraph()
        self.raw_models: SingleFlightCache[RawModel] = SingleFlightCache("raw", waits)
        self.inherited_models: SingleFlightCache[InheritedModel] = SingleFlightCache("inherited", waits)
        self.effective_models: SingleFlightCache[EffectiveModel] = SingleFlightCache("effective", waits)
        # Local import: the builder imports this module for type hints.
        from .effective import EffectiveModelBuilder  # pylint: disable=import-outside-toplevel
        self.builder = EffectiveModelBuilder(self)

    def cancel(self) -> None:
        """Request cooperative cancellation of the running resolution."""
        logger.info("Cancellation requested")
        self.token.cancel()

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def raw_model(self, path: Path) -> RawModel:
        """Parse ``path`` once per run; returns a private copy."""
        return self.raw_models.get(Path(path), loader.load).copy()

    def effective_model(self, coordinate: Coordinate) -> EffectiveModel:
        """Memoized effective model of ``coordinate`` (descriptor identity)."""
        return self.builder.build(coordinate.gav)
