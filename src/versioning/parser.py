"""Token parsing utilities for coordinates, exclusions and version specs."""

from typing import Optional

from constants import Constants
from descriptor.models import Dependency, Exclusion
from .models import ResolutionMode, VersionSpec


def determine_resolution_mode(spec: Optional[str]) -> ResolutionMode:
    """Determine resolution mode from a version string."""
    if spec is None or spec.strip() == '' or spec.strip().lower() == 'latest':
        return ResolutionMode.LATEST
    range_ops = ['[', ']', '(', ')', ',']
    if any(op in spec for op in range_ops):
        return ResolutionMode.RANGE
    return ResolutionMode.EXACT


def parse_version_spec(spec: Optional[str]) -> Optional[VersionSpec]:
    """Build a VersionSpec, or None for 'latest'."""
    mode = determine_resolution_mode(spec)
    if mode == ResolutionMode.LATEST:
        return None
    return VersionSpec(raw=spec.strip(), mode=mode)


def parse_coordinate_token(token: str, scope: Optional[str] = None) -> Dependency:
    """Parse a CLI/list token into a root dependency request.

    Accepted forms (``dependency:list`` order):
    ``g:a``, ``g:a:v``, ``g:a:type:v`` and ``g:a:type:classifier:v``.
    A missing or ``latest`` version asks for the highest indexed version.

    Raises:
        ValueError: when the token does not name a group and an artifact.
    """
    parts = [p.strip() for p in token.strip().split(':')]
    if len(parts) < 2 or len(parts) > 5 or not parts[0] or not parts[1]:
        raise ValueError(f"Invalid coordinate '{token}'; expected group:artifact[:type[:classifier]]:version")

    group, artifact = parts[0], parts[1]
    dep_type = Constants.DEFAULT_TYPE
    classifier = None
    version = None
    if len(parts) == 3:
        version = parts[2]
    elif len(parts) == 4:
        dep_type, version = parts[2] or dep_type, parts[3]
    elif len(parts) == 5:
        dep_type, classifier, version = parts[2] or dep_type, parts[3] or None, parts[4]

    if version is not None and determine_resolution_mode(version) == ResolutionMode.LATEST:
        version = None

    return Dependency(
        group=group,
        artifact=artifact,
        version=version,
        classifier=classifier,
        type=dep_type,
        scope=scope,
    )


def parse_exclusion_token(token: str) -> Exclusion:
    """Parse ``group:artifact`` (either side may be ``*``)."""
    parts = [p.strip() for p in token.strip().split(':')]
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Invalid exclusion '{token}'; expected group:artifact")
    return Exclusion(parts[0], parts[1])
