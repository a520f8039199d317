"""Profile activation and injection into a raw model."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from descriptor.models import Activation, Profile, RawModel
from versioning.models import Coordinate
from .management import overlay
from .models import ProfileActivation

logger = logging.getLogger(__name__)

ALWAYS_ACTIVE = "no condition"


def _property_holds(activation: Activation, lookup) -> Tuple[bool, str]:
    name = activation.property_name
    negated = name.startswith("!")
    if negated:
        name = name[1:]
    actual = lookup(name)
    if negated:
        return actual is None, f"property !{name}"
    if actual is None:
        return False, f"property {name} not set"
    expected = activation.property_value
    if expected is None:
        return True, f"property {name} set"
    if expected.startswith("!"):
        return actual != expected[1:], f"property {name}!={expected[1:]}"
    return actual == expected, f"property {name}={expected}"


def _file_path(spec: str, basedir: Optional[Path]) -> Path:
    base = str(basedir) if basedir is not None else "."
    expanded = spec.replace("${basedir}", base).replace("${project.basedir}", base)
    path = Path(expanded)
    if not path.is_absolute() and basedir is not None:
        path = basedir / path
    return path


def evaluate_activation(
    profile: Profile,
    active_ids: Iterable[str],
    overrides: Mapping[str, str],
    properties: Mapping[str, str],
    basedir: Optional[Path],
) -> Tuple[Optional[bool], str]:
    """Decide one profile in isolation.

    Returns ``(True, reason)`` when explicitly named, unconditioned or all
    conditions hold, ``(None, reason)`` for an ``activeByDefault`` candidate,
    and ``(False, reason)`` otherwise.
    """
    if profile.id in set(active_ids):
        return True, "explicit"
    activation = profile.activation
    if activation is None:
        return True, ALWAYS_ACTIVE
    if not activation.has_conditions:
        if activation.active_by_default:
            return None, "activeByDefault"
        return True, ALWAYS_ACTIVE
    if activation.unsupported:
        return False, "unsupported condition: " + ", ".join(activation.unsupported)

    def lookup(name: str) -> Optional[str]:
        if name in overrides:
            return overrides[name]
        return properties.get(name)

    reasons = []
    if activation.property_name:
        holds, reason = _property_holds(activation, lookup)
        if not holds:
            return False, reason
        reasons.append(reason)
    if activation.file_exists:
        if not _file_path(activation.file_exists, basedir).exists():
            return False, f"file {activation.file_exists} missing"
        reasons.append(f"file {activation.file_exists} exists")
    if activation.file_missing:
        if _file_path(activation.file_missing, basedir).exists():
            return False, f"file {activation.file_missing} exists"
        reasons.append(f"file {activation.file_missing} missing")
    return True, "; ".join(reasons)


def select_profiles(
    model: RawModel,
    coordinate: Coordinate,
    active_ids: Iterable[str],
    overrides: Mapping[str, str],
    properties: Optional[Mapping[str, str]] = None,
) -> Tuple[List[Profile], List[ProfileActivation]]:
    """Pick the active profiles of one descriptor.

    ``activeByDefault`` profiles stay active only when no other profile of
    the same descriptor is activated explicitly or by its conditions;
    unconditioned profiles do not supersede them.
    """
    active_ids = list(active_ids)
    props = model.properties if properties is None else properties
    decisions = [
        (profile, *evaluate_activation(profile, active_ids, overrides, props, model.basedir))
        for profile in model.profiles
    ]
    any_active = any(
        decision is True and reason != ALWAYS_ACTIVE for _, decision, reason in decisions
    )

    selected: List[Profile] = []
    report: List[ProfileActivation] = []
    for profile, decision, reason in decisions:
        if decision is None:
            active = not any_active
            reason = reason if active else "activeByDefault superseded"
        else:
            active = decision
        if active:
            selected.append(profile)
        report.append(ProfileActivation(coordinate, profile.id, active, reason))

    if is_debug_enabled(logger) and report:
        logger.debug("Profiles evaluated", extra=extra_context(
            event="decision", component="profiles", action="select",
            target=str(coordinate), outcome=",".join(p.id for p in selected) or "none"
        ))
    return selected, report


def apply_profiles(model: RawModel, profiles: Iterable[Profile]) -> RawModel:
    """Inject profile fragments into a copy of ``model``; profiles win over base."""
    result = model.copy()
    for profile in profiles:
        result.properties.update(profile.properties)
        result.dependencies = overlay(result.dependencies, profile.dependencies)
        result.management = overlay(result.management, profile.management)
    return result
