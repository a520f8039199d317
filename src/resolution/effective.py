"""Effective-model builder: inheritance, profiles, management, interpolation.

``EffectiveModelBuilder.build`` is memoized per coordinate in the run's
single-flight cache. Import-scoped management entries recurse into the
builder for the imported coordinate; a re-entrant request is reported as
``CyclicImportError``.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from common.errors import (
    CyclicImportError,
    DepstageError,
    InterpolationDepthError,
    ReentrantComputationError,
    UnresolvedExpressionError,
)
from common.logging_utils import Timer, extra_context, is_debug_enabled
from descriptor.models import Dependency, Exclusion, RawModel
from versioning.comparator import highest_version
from versioning.models import Coordinate
from versioning.ranges import MavenRangeResolver
from .inheritance import InheritanceResolver
from .interpolation import Interpolator, builtin_properties, has_placeholder
from .management import ManagementTable, build_management_table, inject
from .models import EffectiveModel

if TYPE_CHECKING:
    from .context import ResolutionContext

logger = logging.getLogger(__name__)

_CHECKED_FIELDS = ("group", "artifact", "version", "scope", "classifier", "type")


def interpolate_dependency(dep: Dependency, interpolator: Interpolator) -> Dependency:
    """Expand placeholders in every resolution-relevant field of ``dep``.

    Raises:
        UnresolvedExpressionError: a field still holds ``${...}`` afterwards.
        InterpolationDepthError: expansion did not settle.
    """
    expand = interpolator.interpolate
    result = dep.evolve(
        group=expand(dep.group),
        artifact=expand(dep.artifact),
        version=expand(dep.version),
        scope=expand(dep.scope),
        classifier=expand(dep.classifier),
        type=expand(dep.type),
        exclusions=tuple(Exclusion(expand(ex.group), expand(ex.artifact)) for ex in dep.exclusions),
    )
    for name in _CHECKED_FIELDS:
        value = getattr(result, name)
        if has_placeholder(value):
            raise UnresolvedExpressionError(
                f"unresolved expression '{value}' in {name} of {dep.group}:{dep.artifact}"
            )
    return result


class EffectiveModelBuilder:
    """Build and memoize ``EffectiveModel``s for one resolution context."""

    def __init__(self, context: "ResolutionContext"):
        self.context = context
        self.inheritance = InheritanceResolver(context)
        self._ranges = MavenRangeResolver()

    def build(self, coordinate: Coordinate) -> EffectiveModel:
        return self.context.effective_models.get(coordinate.gav, self._compute)

    def interpolator_for(self, model: RawModel) -> Interpolator:
        config = self.context.config
        builtins = builtin_properties(
            group=model.group,
            artifact=model.artifact,
            version=model.version,
            packaging=model.packaging,
            parent_group=model.parent.group if model.parent else None,
            parent_version=model.parent.version if model.parent else None,
            basedir=model.basedir,
        )
        return Interpolator(
            overrides=config.overrides,
            properties=model.properties,
            builtins=builtins,
            environment=config.environment,
            max_passes=config.max_interpolation_passes,
        )

    def _compute(self, coordinate: Coordinate) -> EffectiveModel:
        with Timer() as t:
            inherited = self.inheritance.resolve_inherited(coordinate)
            raw = inherited.model
            interpolator = self.interpolator_for(raw)

            for value in (raw.group, raw.artifact, raw.version):
                if has_placeholder(interpolator.interpolate(value)):
                    raise UnresolvedExpressionError(
                        f"unresolved expression '{value}' in descriptor identity", coordinate=coordinate
                    )

            rejected: List[DepstageError] = []
            managed_entries = []
            for entry in raw.management:
                try:
                    managed_entries.append(interpolate_dependency(entry, interpolator))
                except (UnresolvedExpressionError, InterpolationDepthError) as e:
                    e.coordinate = coordinate
                    rejected.append(e)

            table, _ = build_management_table(
                managed_entries, lambda entry: self._import_table(coordinate, entry)
            )

            dependencies: List[Dependency] = []
            for dep in raw.dependencies:
                try:
                    expanded = interpolate_dependency(dep, interpolator)
                except (UnresolvedExpressionError, InterpolationDepthError) as e:
                    e.coordinate = coordinate
                    rejected.append(e)
                    continue
                dependencies.append(inject(expanded, table))

        model = EffectiveModel(
            coordinate=coordinate.gav,
            packaging=raw.packaging,
            descriptor_path=self.context.index.descriptor_path(coordinate) or raw.path,
            properties=dict(raw.properties),
            dependencies=dependencies,
            management=table,
            activations=list(inherited.activations),
            rejected=rejected,
        )
        if is_debug_enabled(logger):
            logger.debug("Effective model built", extra=extra_context(
                event="complete", component="effective", action="build", target=str(coordinate),
                count=len(dependencies), outcome="rejected" if rejected else "success",
                profiles=",".join(model.active_profiles) or None, duration_ms=t.duration_ms()
            ))
        return model

    def _import_table(self, owner: Coordinate, entry: Dependency) -> Optional[ManagementTable]:
        """Management table of an imported BOM, or None when it is skipped."""
        target = self._import_coordinate(entry)
        if target is None:
            self.context.diagnostics.add(
                "missing_import", f"imported {entry} is not indexed", coordinate=owner
            )
            logger.warning("%s: imported %s not found; skipping", owner, entry)
            return None
        try:
            return self.build(target).management
        except CyclicImportError:
            raise
        except ReentrantComputationError as e:
            raise CyclicImportError(f"import cycle through {target}", coordinate=owner) from e
        except DepstageError as e:
            self.context.diagnostics.add(
                "missing_import", f"imported {target} failed: {e}", coordinate=owner
            )
            logger.warning("%s: imported %s failed (%s); skipping", owner, target, e)
            return None

    def _import_coordinate(self, entry: Dependency) -> Optional[Coordinate]:
        versions = self.context.index.versions(entry.ga)
        if not versions:
            return None
        if entry.version is None:
            version = highest_version(versions)
        else:
            version, _, _ = self._ranges.pick(entry.version, versions)
        if version is None:
            return None
        return Coordinate(entry.group, entry.artifact, version)
