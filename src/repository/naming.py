"""File-name conventions of distribution-packaged Java trees."""
from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Tuple

from constants import Constants
from versioning.comparator import is_version_string
from versioning.models import Coordinate

_NATIVE_VERSION_SUFFIX_RE = re.compile(r"(\.\d+)+$")
_NAME_VERSION_SUFFIX_RE = re.compile(r"-\d[0-9A-Za-z._+]*$")


def is_descriptor_file(path: Path) -> bool:
    return path.name == Constants.POM_XML_FILE or path.suffix == Constants.POM_SUFFIX


def is_artifact_file(path: Path) -> bool:
    return path.suffix in Constants.ARTIFACT_SUFFIXES


def native_suffix(name: str) -> Optional[str]:
    """Return the shared-library suffix of ``name`` (``.so.3`` counts as ``.so``)."""
    stripped = _NATIVE_VERSION_SUFFIX_RE.sub("", name)
    for suffix in Constants.NATIVE_SUFFIXES:
        if stripped.endswith(suffix):
            return suffix
    return None


def is_native_file(path: Path) -> bool:
    return native_suffix(path.name) is not None


def simplify_native_name(name: str) -> str:
    """Reduce a shared-library file name to its lookup key.

    ``libfoo-1.2.so.3`` -> ``foo``, ``libbar.dylib`` -> ``bar``,
    ``baz.dll`` -> ``baz``.
    """
    suffix = native_suffix(name)
    base = _NATIVE_VERSION_SUFFIX_RE.sub("", name)
    if suffix:
        base = base[: -len(suffix)]
    if base.startswith("lib") and len(base) > 3:
        base = base[3:]
    return _NAME_VERSION_SUFFIX_RE.sub("", base)


def strip_jpp_prefix(stem: str) -> str:
    for prefix in Constants.JPP_PREFIXES:
        if stem.startswith(prefix):
            return stem[len(prefix):]
    return stem


def name_variants(group: str, artifact: str) -> List[str]:
    """File-name variants under which packagers install an artifact.

    Order: ``artifact``, ``<group without first segment>-artifact``
    (dots become dashes), ``<second group segment>-artifact``. ``JPP-``
    prefixed files are indexed under their unprefixed stem as well.
    """
    variants = [artifact]
    parts = group.split(".")
    if len(parts) > 1:
        variants.append("-".join(parts[1:]) + "-" + artifact)
        if len(parts) > 2 and parts[1] + "-" + artifact not in variants:
            variants.append(parts[1] + "-" + artifact)
    return variants


def artifact_stems(coordinate: Coordinate) -> List[str]:
    """Candidate file stems for an unpaired binary of ``coordinate``."""
    suffix = f"-{coordinate.classifier}" if coordinate.classifier else ""
    stems = []
    for variant in name_variants(coordinate.group, coordinate.artifact):
        stems.append(f"{variant}-{coordinate.version}{suffix}")
        stems.append(f"{variant}{suffix}")
    return stems


def split_layout_name(stem: str, artifact: str, version: str) -> Optional[str]:
    """Classifier of ``<artifact>-<version>[-<classifier>]``, ``""`` when none.

    Returns None when ``stem`` does not follow the repository layout name.
    """
    base = f"{artifact}-{version}"
    if stem == base:
        return ""
    if stem.startswith(base + "-") and len(stem) > len(base) + 1:
        return stem[len(base) + 1:]
    return None


def layout_coordinates(path: Path) -> Optional[Tuple[str, str, Optional[str]]]:
    """Read ``.../<artifact>/<version>/<artifact>-<version>[-<classifier>].<ext>``.

    Returns ``(artifact, version, classifier)`` or None when ``path`` is not
    in repository layout.
    """
    version = path.parent.name
    artifact = path.parent.parent.name
    if not artifact or not is_version_string(version):
        return None
    classifier = split_layout_name(path.stem, artifact, version)
    if classifier is None:
        return None
    return artifact, version, classifier or None


def extension_of(path: Path) -> str:
    return path.suffix[1:]
