"""Parent-chain resolution and the pure inheritance merge.

The chain of a coordinate is walked first using raw loads only, so cycles
and overly deep chains are reported before any memoized work starts. The
levels are then merged from the topmost ancestor down; every level has its
active profiles injected before it is merged.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple

from common.errors import (
    CyclicInheritanceError,
    DepstageError,
    InheritanceDepthError,
    NoMatchingVersionError,
    UnresolvedParentError,
)
from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants
from descriptor.models import ParentRef, RawModel
from versioning.models import Coordinate
from .management import overlay
from .models import ProfileActivation
from .profiles import apply_profiles, select_profiles

if TYPE_CHECKING:
    from .context import ResolutionContext

logger = logging.getLogger(__name__)


def merge_models(parent: RawModel, child: RawModel) -> RawModel:
    """Merge one inheritance level into its parent; pure and associative.

    Child identity fills over the parent's, child properties override,
    management entries and dependencies are layered by management key (an
    inherited declaration is replaced in place, new ones are appended).
    """
    properties = dict(parent.properties)
    properties.update(child.properties)
    return RawModel(
        path=child.path,
        group=child.group or parent.group,
        artifact=child.artifact,
        version=child.version or parent.version,
        packaging=child.packaging,
        parent=child.parent,
        properties=properties,
        dependencies=overlay(parent.dependencies, child.dependencies),
        management=overlay(parent.management, child.management),
        profiles=list(child.profiles),
    )


@dataclass
class InheritedModel:
    """Merged chain of one coordinate with its profile decisions."""
    model: RawModel
    chain: List[Coordinate]
    activations: List[ProfileActivation] = field(default_factory=list)


class InheritanceResolver:
    """Resolve parent chains against the index and the file system."""

    def __init__(self, context: "ResolutionContext"):
        self.context = context

    def resolve(self, coordinate: Coordinate) -> RawModel:
        """Merged, still uninterpolated model of ``coordinate``."""
        return self.resolve_inherited(coordinate).model

    def resolve_inherited(self, coordinate: Coordinate) -> InheritedModel:
        return self.context.inherited_models.get(coordinate.gav, self._compute)

    def chain(self, coordinate: Coordinate) -> List[Tuple[Coordinate, RawModel]]:
        """Raw levels from ``coordinate`` up to its topmost ancestor.

        Raises:
            NoMatchingVersionError: ``coordinate`` itself is not indexed.
            UnresolvedParentError: a declared parent cannot be located.
            CyclicInheritanceError: the chain re-enters one of its members.
            InheritanceDepthError: more than ``max_parent_depth`` ancestors.
        """
        path = self.context.index.descriptor_path(coordinate)
        if path is None:
            raise NoMatchingVersionError("no descriptor indexed", coordinate=coordinate)
        max_depth = self.context.config.max_parent_depth
        model = self.context.raw_model(path)
        levels = [(coordinate.gav, model)]
        visiting = [coordinate.gav]
        while model.parent is not None:
            ref = model.parent
            parent_coord = ref.coordinate
            if parent_coord in visiting:
                raise CyclicInheritanceError(visiting + [parent_coord], coordinate=coordinate)
            if len(levels) > max_depth:
                raise InheritanceDepthError(
                    f"parent chain exceeds {max_depth} levels", coordinate=coordinate
                )
            parent_path = self.locate_parent(model, ref)
            if parent_path is None:
                raise UnresolvedParentError(f"parent {parent_coord} not found", coordinate=coordinate)
            model = self.context.raw_model(parent_path)
            levels.append((parent_coord, model))
            visiting.append(parent_coord)
        return levels

    def locate_parent(self, child: RawModel, ref: ParentRef) -> Optional[Path]:
        """Index first, then the ``relativePath`` hint, then a sibling file."""
        indexed = self.context.index.descriptor_path(ref.coordinate)
        if indexed is not None:
            return indexed
        basedir = child.basedir
        if basedir is None:
            return None
        candidates = []
        if ref.relative_path:
            hinted = basedir / ref.relative_path
            candidates.append(hinted / Constants.POM_XML_FILE if hinted.is_dir() else hinted)
        candidates.append(basedir / f"{ref.artifact}{Constants.POM_SUFFIX}")
        candidates.append(basedir / f"{ref.artifact}-{ref.version}{Constants.POM_SUFFIX}")
        for candidate in candidates:
            if candidate == child.path or not candidate.is_file():
                continue
            if self._matches(candidate, ref):
                return candidate
        return None

    def _matches(self, path: Path, ref: ParentRef) -> bool:
        try:
            model = self.context.raw_model(path)
        except DepstageError as e:
            logger.debug("Ignoring parent candidate %s: %s", path, e)
            return False
        return (
            model.artifact == ref.artifact
            and model.effective_group == ref.group
            and model.effective_version == ref.version
        )

    def _compute(self, coordinate: Coordinate) -> InheritedModel:
        with Timer() as t:
            levels = self.chain(coordinate)
            config = self.context.config
            merged: Optional[RawModel] = None
            activations: List[ProfileActivation] = []
            for level_coord, level in reversed(levels):
                props = dict(merged.properties) if merged is not None else {}
                props.update(level.properties)
                profiles, report = select_profiles(
                    level, level_coord, config.active_profiles, config.overrides, props
                )
                activations.extend(report)
                level = apply_profiles(level, profiles)
                level.profiles = []
                merged = level if merged is None else merge_models(merged, level)

        if is_debug_enabled(logger):
            logger.debug("Inheritance resolved", extra=extra_context(
                event="complete", component="inheritance", action="resolve",
                target=str(coordinate), count=len(levels), duration_ms=t.duration_ms()
            ))
        return InheritedModel(
            model=merged,
            chain=[c for c, _ in levels],
            activations=activations,
        )
