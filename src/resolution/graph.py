"""Breadth-first dependency graph expansion with nearest-wins mediation.

Effective models of one BFS level are computed concurrently; the level is
then processed in a fixed order (root order, then declaration order) so the
mediated graph never depends on worker timing.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from common.errors import (
    DepstageError,
    NoMatchingVersionError,
    ResolutionCancelledError,
    ResolutionError,
)
from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants
from descriptor.models import Dependency, Exclusion
from versioning.comparator import highest_version
from versioning.models import Coordinate, GroupArtifact, ManagementKey, ResolutionMode
from versioning.parser import determine_resolution_mode
from versioning.ranges import MavenRangeResolver
from .context import ResolutionContext
from .management import ManagementTable
from .models import (
    DependencyEdge,
    EffectiveModel,
    ManagedOverride,
    MediationLoss,
    NodeFailure,
    ResolvedGraph,
    ResolvedNode,
    VersionOverride,
)

logger = logging.getLogger(__name__)

RootRequest = Union[Coordinate, Dependency]


def narrower_scope(a: str, b: str) -> str:
    """Return the narrower of two scopes (compile < runtime < provided < test)."""
    rank = Constants.SCOPE_RANK
    return a if rank.get(a, 0) >= rank.get(b, 0) else b


def is_wider(candidate: str, current: str) -> bool:
    rank = Constants.SCOPE_RANK
    return rank.get(candidate, 0) < rank.get(current, 0)


@dataclass
class _Pending:
    """A node waiting for its model to be expanded."""
    node: ResolvedNode
    exclusions: Tuple[Exclusion, ...]
    # (coordinate, management table) of every node on the path, root first.
    managers: Tuple[Tuple[Coordinate, ManagementTable], ...] = ()
    # Re-expansion after the node's scope was widened.
    revisit: bool = False


class GraphResolver:
    """Expand root requests into a mediated ``ResolvedGraph``."""

    def __init__(self, context: ResolutionContext):
        self.context = context
        self._ranges = MavenRangeResolver()

    def resolve(
        self,
        roots: Sequence[RootRequest],
        scope_filter: Optional[Iterable[str]] = None,
        exclusions: Iterable[Exclusion] = (),
    ) -> ResolvedGraph:
        """Resolve ``roots`` to a mediated graph.

        Raises:
            ResolutionError: one or more roots could not be resolved; carries
                the partial graph and every failure.
            ResolutionCancelledError: the context was cancelled; carries the
                partial graph marked ``cancelled``.
        """
        config = self.context.config
        scopes = tuple(scope_filter) if scope_filter is not None else tuple(config.scope_filter)
        run_exclusions = tuple(config.exclusions) + tuple(exclusions)
        graph = ResolvedGraph(scan_warnings=list(self.context.index.warnings))
        state = _State(graph)

        with Timer() as t:
            level = self._seed(roots, run_exclusions, state)
            with ThreadPoolExecutor(
                max_workers=max(1, config.workers), thread_name_prefix="resolve"
            ) as executor:
                while level:
                    level = self._expand_level(level, scopes, state, executor)

        graph.diagnostics = self.context.diagnostics.snapshot()
        logger.info(
            "Resolved %d nodes from %d roots (%d failures)",
            len(graph.nodes), len(graph.roots), len(graph.failures),
        )
        if is_debug_enabled(logger):
            logger.debug("Graph resolved", extra=extra_context(
                event="complete", component="graph", action="resolve",
                count=len(graph.nodes), duration_ms=t.duration_ms()
            ))

        root_failures = [f for f in graph.failures if f.root]
        if root_failures:
            names = ", ".join(f.coordinate for f in root_failures)
            raise ResolutionError(f"unable to resolve root(s): {names}", failures=graph.failures, graph=graph)
        return graph

    def _check_cancelled(self, graph: ResolvedGraph) -> None:
        if self.context.cancelled:
            graph.cancelled = True
            graph.diagnostics = self.context.diagnostics.snapshot()
            logger.warning("Resolution cancelled with %d nodes resolved", len(graph.nodes))
            raise ResolutionCancelledError("resolution cancelled", graph=graph)

    def select_version(self, dep: Dependency) -> str:
        """Pick the version for ``dep`` from the index.

        A missing version picks the highest indexed version and a range picks
        the highest match. An exact version is taken as declared when it is
        indexed, or when nothing of its group:artifact is; otherwise the
        installed (highest release) version replaces it.

        Raises:
            NoMatchingVersionError: nothing indexed satisfies the request.
        """
        mode = determine_resolution_mode(dep.version)
        candidates = self.context.index.versions(dep.ga)
        if mode == ResolutionMode.EXACT:
            requested = dep.version.strip()
            if not candidates or requested in candidates:
                return requested
            return highest_version(candidates, include_snapshots=False)
        version, _, error = self._ranges.pick(dep.version, candidates)
        if version is None:
            raise NoMatchingVersionError(
                error or "no matching version", coordinate=f"{dep.group}:{dep.artifact}:{dep.version or ''}"
            )
        return version

    def _seed(self, roots: Sequence[RootRequest], exclusions: Tuple[Exclusion, ...], state: "_State") -> List[_Pending]:
        level: List[_Pending] = []
        for request in roots:
            dep = _as_request(request)
            try:
                version = self.select_version(dep)
            except NoMatchingVersionError as e:
                state.fail(str(dep), e, (), root=True)
                continue
            coord = dep.coordinate(version)
            state.note_substitution(dep, version, (coord,))
            scope = dep.scope or Constants.DEFAULT_SCOPE
            winner = state.winners.get(coord.ga)
            if winner is not None and winner != version:
                state.add_loss(MediationLoss(coord.ga, winner, version, 0, (coord,)))
                continue
            node = state.add_node(coord, scope, 0, (coord,), root=True)
            if node is None:
                continue
            state.graph.roots.append(coord)
            level.append(_Pending(node, exclusions + tuple(dep.exclusions)))
        return level

    def _expand_level(
        self,
        level: List[_Pending],
        scopes: Tuple[str, ...],
        state: "_State",
        executor: ThreadPoolExecutor,
    ) -> List[_Pending]:
        self._check_cancelled(state.graph)
        futures = [executor.submit(self._model, p.node.coordinate) for p in level]
        next_level: List[_Pending] = []
        for pending, future in zip(level, futures):
            self._check_cancelled(state.graph)
            node = pending.node
            try:
                model = future.result()
            except DepstageError as e:
                state.fail(str(node.coordinate), e, node.path, root=node.root)
                continue
            if not pending.revisit:
                state.record_model(model, node)
            state.expanded[node.coordinate.management_key] = pending
            managers = pending.managers + ((node.coordinate, model.management),)
            for dep in model.dependencies:
                child = self._follow(pending, managers, dep, scopes, state)
                if child is not None:
                    next_level.append(child)
        return next_level

    def _model(self, coordinate: Coordinate) -> EffectiveModel:
        return self.context.effective_model(coordinate)

    def _follow(
        self,
        pending: _Pending,
        managers: Tuple[Tuple[Coordinate, ManagementTable], ...],
        dep: Dependency,
        scopes: Tuple[str, ...],
        state: "_State",
    ) -> Optional[_Pending]:
        """Apply the edge rules to one declaration; returns a node to expand."""
        parent = pending.node
        transitive = not parent.root
        declared_scope = dep.scope or Constants.DEFAULT_SCOPE
        if transitive and declared_scope in Constants.NON_TRANSITIVE_SCOPES:
            return None
        if dep.optional and transitive:
            return None
        if any(ex.matches(dep.ga) for ex in pending.exclusions):
            if is_debug_enabled(logger):
                logger.debug("Excluded %s below %s", dep, parent.coordinate)
            return None

        if transitive:
            dep = self._apply_ancestor_management(dep, managers[:-1], state)
            declared_scope = dep.scope or Constants.DEFAULT_SCOPE

        scope = narrower_scope(parent.scope, declared_scope)
        if scope not in scopes:
            return None

        depth = parent.depth + 1
        try:
            version = self.select_version(dep)
        except NoMatchingVersionError as e:
            state.fail(str(dep), e, parent.path + (dep.coordinate(),))
            return None

        coord = dep.coordinate(version)
        path = parent.path + (coord,)
        state.note_substitution(dep, version, path)
        winner = state.winners.get(coord.ga)
        if winner is not None:
            if winner != version:
                state.add_loss(MediationLoss(coord.ga, winner, version, depth, path))
                coord = coord.with_version(winner)
            state.add_edge(DependencyEdge(parent.coordinate, coord, scope, dep.exclusions, dep.optional, depth))
            existing = state.by_key.get(coord.management_key)
            if existing is None:
                # New classifier/type variant of the winning version; kept as a leaf.
                state.add_node(coord, scope, depth, parent.path + (coord,))
            elif winner == version and is_wider(scope, existing.scope):
                existing.scope = scope
                expanded = state.expanded.get(coord.management_key)
                if expanded is not None:
                    # Children were reached with the narrower scope; walk them again.
                    return replace(expanded, revisit=True)
            return None

        node = state.add_node(coord, scope, depth, path)
        state.add_edge(DependencyEdge(parent.coordinate, coord, scope, dep.exclusions, dep.optional, depth))
        return _Pending(node, pending.exclusions + tuple(dep.exclusions), managers)

    @staticmethod
    def _apply_ancestor_management(
        dep: Dependency,
        managers: Tuple[Tuple[Coordinate, ManagementTable], ...],
        state: "_State",
    ) -> Dependency:
        """First matching management entry along the path, root first, wins."""
        for manager, table in managers:
            managed = table.get(dep.management_key)
            if managed is None or managed.is_import:
                continue
            changes = {}
            if managed.version and managed.version != dep.version:
                changes["version"] = managed.version
            if managed.scope and managed.scope != dep.scope:
                changes["scope"] = managed.scope
            if changes:
                state.add_override(ManagedOverride(
                    dep.ga, dep.version, managed.version or dep.version or "", manager
                ))
                return dep.evolve(**changes)
            return dep
        return dep


class _State:
    """Mutable bookkeeping of one ``resolve`` call (single-threaded).

    A revisited node repeats its edges and findings; the ``add_*`` helpers
    record each of them once.
    """

    def __init__(self, graph: ResolvedGraph):
        self.graph = graph
        self.winners: Dict[GroupArtifact, str] = {}
        self.by_key: Dict[ManagementKey, ResolvedNode] = {}
        self.expanded: Dict[ManagementKey, _Pending] = {}
        self._edge_index: Dict[Tuple[Coordinate, Coordinate], int] = {}
        self._seen = set()
        self._seen_activations = set()

    def add_node(
        self,
        coord: Coordinate,
        scope: str,
        depth: int,
        path: Tuple[Coordinate, ...],
        root: bool = False,
    ) -> Optional[ResolvedNode]:
        if coord.management_key in self.by_key:
            return None
        node = ResolvedNode(coord, scope, depth, path, root=root)
        self.by_key[coord.management_key] = node
        self.winners.setdefault(coord.ga, coord.version)
        self.graph.nodes.append(node)
        return node

    def _first(self, item) -> bool:
        if item in self._seen:
            return False
        self._seen.add(item)
        return True

    def add_edge(self, edge: DependencyEdge) -> None:
        key = (edge.source, edge.target)
        if key in self._edge_index:
            self.graph.edges[self._edge_index[key]] = edge
            return
        self._edge_index[key] = len(self.graph.edges)
        self.graph.edges.append(edge)

    def add_loss(self, loss: MediationLoss) -> None:
        if self._first(loss):
            self.graph.losses.append(loss)

    def add_override(self, override: ManagedOverride) -> None:
        if self._first(override):
            self.graph.overrides.append(override)

    def note_substitution(self, dep: Dependency, version: str, path: Tuple[Coordinate, ...]) -> None:
        requested = (dep.version or "").strip()
        if determine_resolution_mode(requested) != ResolutionMode.EXACT or requested == version:
            return
        override = VersionOverride(dep.ga, requested, version, path)
        if not self._first(override):
            return
        self.graph.version_overrides.append(override)
        logger.info("Override version: %s:%s:%s -> %s", dep.group, dep.artifact, requested, version)

    def fail(self, coordinate: str, error: DepstageError, path: Tuple[Coordinate, ...], root: bool = False) -> None:
        if not self._first((coordinate, error.kind, error.message, tuple(path))):
            return
        error.with_path(path)
        self.graph.failures.append(NodeFailure(coordinate, error, tuple(path), root=root))
        logger.warning("Failed to resolve %s: %s", coordinate, error.message)

    def record_model(self, model: EffectiveModel, node: ResolvedNode) -> None:
        for activation in model.activations:
            key = (activation.coordinate, activation.profile_id)
            if key not in self._seen_activations:
                self._seen_activations.add(key)
                self.graph.activations.append(activation)
        for error in model.rejected:
            self.fail(str(node.coordinate), error, node.path)


def _as_request(request: RootRequest) -> Dependency:
    if isinstance(request, Dependency):
        return request
    return Dependency(
        group=request.group,
        artifact=request.artifact,
        version=request.version or None,
        classifier=request.classifier,
        type=request.type,
    )
