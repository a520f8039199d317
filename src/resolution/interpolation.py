"""Bounded ``${name}`` placeholder expansion.

Lookup order for a name: run overrides, model properties, built-in
properties derived from the model, ``env.*`` from the run's environment
snapshot. Unknown names are left untouched. Every pass substitutes all
resolvable placeholders; a string that is still being rewritten after
``max_passes`` passes raises ``InterpolationDepthError``.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Mapping, Optional

from common.errors import InterpolationDepthError
from constants import Constants

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")


def builtin_properties(
    group: Optional[str],
    artifact: Optional[str],
    version: Optional[str],
    packaging: Optional[str] = None,
    parent_group: Optional[str] = None,
    parent_version: Optional[str] = None,
    basedir: Optional[Path] = None,
) -> Dict[str, str]:
    """Closed set of properties derived from a model's own identity."""
    props: Dict[str, str] = {
        "project.build.sourceEncoding": Constants.DEFAULT_SOURCE_ENCODING,
        "project.reporting.outputEncoding": Constants.DEFAULT_SOURCE_ENCODING,
    }
    identity = {
        "groupId": group,
        "artifactId": artifact,
        "version": version,
        "packaging": packaging or Constants.DEFAULT_PACKAGING,
    }
    for name, value in identity.items():
        if value:
            props[f"project.{name}"] = value
            props[f"pom.{name}"] = value
            props[name] = value
    if parent_group:
        props["project.parent.groupId"] = parent_group
    if parent_version:
        props["project.parent.version"] = parent_version
    if basedir is not None:
        props["project.basedir"] = str(basedir)
        props["basedir"] = str(basedir)
    return props


class Interpolator:
    """Expand placeholders in resolution-relevant strings."""

    def __init__(
        self,
        overrides: Optional[Mapping[str, str]] = None,
        properties: Optional[Mapping[str, str]] = None,
        builtins: Optional[Mapping[str, str]] = None,
        environment: Optional[Mapping[str, str]] = None,
        max_passes: int = Constants.MAX_INTERPOLATION_PASSES,
    ):
        self.overrides = overrides or {}
        self.properties = properties or {}
        self.builtins = builtins or {}
        self.environment = environment or {}
        self.max_passes = max_passes

    def lookup(self, name: str) -> Optional[str]:
        """Value for ``name`` or None when unresolved."""
        if name in self.overrides:
            return self.overrides[name]
        if name in self.properties:
            return self.properties[name]
        if name in self.builtins:
            return self.builtins[name]
        if name.startswith("env."):
            return self.environment.get(name[4:])
        return None

    def interpolate(self, text: Optional[str]) -> Optional[str]:
        """Return ``text`` with every resolvable placeholder expanded.

        Raises:
            InterpolationDepthError: when expansion keeps substituting past
                ``max_passes`` (self- or mutually-referential properties).
        """
        if not text or "${" not in text:
            return text

        current = text
        for _ in range(self.max_passes):
            substituted = False

            def _replace(match: "re.Match[str]") -> str:
                nonlocal substituted
                value = self.lookup(match.group(1))
                if value is None:
                    return match.group(0)
                substituted = True
                return value

            current = _PLACEHOLDER_RE.sub(_replace, current)
            if not substituted:
                return current
        if _PLACEHOLDER_RE.search(current) and any(
            self.lookup(name) is not None for name in _PLACEHOLDER_RE.findall(current)
        ):
            raise InterpolationDepthError(
                f"expansion of '{text}' did not settle within {self.max_passes} passes"
            )
        return current


def has_placeholder(value: Optional[str]) -> bool:
    return bool(value) and _PLACEHOLDER_RE.search(value) is not None
