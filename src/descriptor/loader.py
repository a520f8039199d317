"""Descriptor (POM) loader.

Two entry points:

* ``load_identity`` - cheap identity-only read used by the repository scanner.
* ``load`` - full parse into a ``RawModel`` (parent, properties, dependencies,
  dependency management, profiles) preserving declaration order.

Neither performs inheritance or management merging; ``load_identity`` only
expands placeholders in the identity fields from the file's own properties.
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from common.errors import InterpolationDepthError, MissingFieldError, ParseError
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants
from resolution.interpolation import Interpolator, builtin_properties
from .models import Activation, Dependency, Exclusion, Identity, ParentRef, Profile, RawModel

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _local(tag: str) -> str:
    """Strip the ``{namespace}`` prefix from an element tag."""
    return tag[tag.find("}") + 1:] if tag.startswith("{") else tag


def _strip_ns(el: ET.Element) -> None:
    """Remove namespace prefixes from elements in place."""
    el.tag = _local(el.tag)
    for child in el:
        _strip_ns(child)


def _text(el: Optional[ET.Element], tag: str) -> Optional[str]:
    if el is None:
        return None
    child = el.find(tag)
    if child is None or child.text is None:
        return None
    value = child.text.strip()
    return value or None


def _parse_exclusions(dep_el: ET.Element) -> Tuple[Exclusion, ...]:
    exclusions = []
    for ex_el in dep_el.findall("exclusions/exclusion"):
        group = _text(ex_el, "groupId")
        artifact = _text(ex_el, "artifactId")
        if group and artifact:
            exclusions.append(Exclusion(group, artifact))
    return tuple(exclusions)


def _parse_dependencies(container: Optional[ET.Element], path: Optional[Path]) -> List[Dependency]:
    """Parse ``<dependency>`` children of a ``<dependencies>`` element."""
    deps: List[Dependency] = []
    if container is None:
        return deps
    for dep_el in container.findall("dependency"):
        group = _text(dep_el, "groupId")
        artifact = _text(dep_el, "artifactId")
        if not group or not artifact:
            logger.warning(
                "Skipping dependency without groupId/artifactId in %s", path or "<string>"
            )
            continue
        deps.append(
            Dependency(
                group=group,
                artifact=artifact,
                version=_text(dep_el, "version"),
                classifier=_text(dep_el, "classifier"),
                type=_text(dep_el, "type") or Constants.DEFAULT_TYPE,
                scope=_text(dep_el, "scope"),
                optional=(_text(dep_el, "optional") or "").lower() == "true",
                exclusions=_parse_exclusions(dep_el),
            )
        )
    return deps


def _parse_properties(el: Optional[ET.Element]) -> Dict[str, str]:
    props: Dict[str, str] = {}
    if el is None:
        return props
    for prop in el:
        if not isinstance(prop.tag, str):
            continue  # comments and processing instructions
        props[prop.tag] = (prop.text or "").strip()
    return props


def _parse_activation(el: Optional[ET.Element]) -> Optional[Activation]:
    if el is None:
        return None
    unsupported = tuple(
        child.tag for child in el
        if isinstance(child.tag, str) and child.tag in ("jdk", "os", "packaging")
    )
    return Activation(
        active_by_default=(_text(el, "activeByDefault") or "").lower() == "true",
        property_name=_text(el.find("property"), "name"),
        property_value=_text(el.find("property"), "value"),
        file_exists=_text(el.find("file"), "exists"),
        file_missing=_text(el.find("file"), "missing"),
        unsupported=unsupported,
    )


def _parse_profiles(root: ET.Element, path: Optional[Path]) -> List[Profile]:
    profiles = []
    for index, prof_el in enumerate(root.findall("profiles/profile")):
        profiles.append(
            Profile(
                id=_text(prof_el, "id") or f"profile-{index}",
                activation=_parse_activation(prof_el.find("activation")),
                properties=_parse_properties(prof_el.find("properties")),
                dependencies=_parse_dependencies(prof_el.find("dependencies"), path),
                management=_parse_dependencies(prof_el.find("dependencyManagement/dependencies"), path),
            )
        )
    return profiles


def _parse_root(source: PathLike, text: Optional[str] = None) -> ET.Element:
    try:
        root = ET.fromstring(text) if text is not None else ET.parse(str(source)).getroot()
    except ET.ParseError as e:
        raise ParseError(f"malformed descriptor {source}: {e}") from e
    except OSError as e:
        raise ParseError(f"cannot read descriptor {source}: {e}") from e
    _strip_ns(root)
    if root.tag != "project":
        raise ParseError(f"{source} is not a project descriptor (root element <{root.tag}>)")
    return root


def parse_descriptor(root: ET.Element, path: Optional[Path] = None) -> RawModel:
    """Build a RawModel from an already parsed, namespace-free ``<project>``."""
    parent = None
    parent_el = root.find("parent")
    if parent_el is not None:
        p_group = _text(parent_el, "groupId")
        p_artifact = _text(parent_el, "artifactId")
        p_version = _text(parent_el, "version")
        if not (p_group and p_artifact and p_version):
            raise MissingFieldError(f"incomplete <parent> in {path or '<string>'}")
        parent = ParentRef(
            group=p_group,
            artifact=p_artifact,
            version=p_version,
            relative_path=_text(parent_el, "relativePath") or Constants.DEFAULT_RELATIVE_PATH,
        )

    artifact = _text(root, "artifactId")
    group = _text(root, "groupId")
    if not artifact:
        raise MissingFieldError(f"descriptor {path or '<string>'} has no artifactId")
    if not group and parent is None:
        raise MissingFieldError(f"descriptor {path or '<string>'} has no groupId and no parent")

    return RawModel(
        path=path,
        group=group,
        artifact=artifact,
        version=_text(root, "version"),
        packaging=_text(root, "packaging") or Constants.DEFAULT_PACKAGING,
        parent=parent,
        properties=_parse_properties(root.find("properties")),
        dependencies=_parse_dependencies(root.find("dependencies"), path),
        management=_parse_dependencies(root.find("dependencyManagement/dependencies"), path),
        profiles=_parse_profiles(root, path),
    )


def load(path: PathLike) -> RawModel:
    """Fully parse one descriptor file.

    Raises:
        ParseError: malformed XML or not a ``<project>`` document.
        MissingFieldError: the descriptor lacks its identity.
    """
    pom_path = Path(path)
    if is_debug_enabled(logger):
        logger.debug("Loading descriptor", extra=extra_context(
            event="function_entry", component="loader", action="load", target=str(pom_path)
        ))
    return parse_descriptor(_parse_root(pom_path), pom_path)


def loads(text: str, path: Optional[PathLike] = None) -> RawModel:
    """Parse descriptor XML from a string."""
    pom_path = Path(path) if path is not None else None
    return parse_descriptor(_parse_root(pom_path or "<string>", text), pom_path)


_IDENTITY_PATHS = {
    ("project", "groupId"): "group",
    ("project", "artifactId"): "artifact",
    ("project", "version"): "version",
    ("project", "packaging"): "packaging",
    ("project", "parent", "groupId"): "parent_group",
    ("project", "parent", "version"): "parent_version",
}


def load_identity(path: PathLike) -> Identity:
    """Read only the identity of a descriptor.

    Streams the document and keeps nothing but the identity fields and the
    top-level ``<properties>``; the full model is parsed later, on demand.

    Raises:
        ParseError: malformed XML, or identity placeholders cannot be expanded.
        MissingFieldError: no artifactId, or no groupId/version to inherit.
    """
    pom_path = Path(path)
    fields: Dict[str, str] = {}
    properties: Dict[str, str] = {}
    stack: List[str] = []
    try:
        for event, el in ET.iterparse(str(pom_path), events=("start", "end")):
            tag = _local(el.tag)
            if event == "start":
                stack.append(tag)
                if len(stack) == 1 and tag != "project":
                    raise ParseError(f"{pom_path} is not a project descriptor (root element <{tag}>)")
                continue
            key = _IDENTITY_PATHS.get(tuple(stack))
            if key is not None and el.text and el.text.strip():
                fields[key] = el.text.strip()
            elif len(stack) == 3 and stack[1] == "properties":
                properties[tag] = (el.text or "").strip()
            stack.pop()
            if len(stack) <= 1:
                el.clear()
    except ET.ParseError as e:
        raise ParseError(f"malformed descriptor {pom_path}: {e}") from e
    except OSError as e:
        raise ParseError(f"cannot read descriptor {pom_path}: {e}") from e

    artifact = fields.get("artifact")
    group = fields.get("group") or fields.get("parent_group")
    version = fields.get("version") or fields.get("parent_version")
    if not artifact or not group or not version:
        raise MissingFieldError(f"descriptor {pom_path} lacks groupId/artifactId/version")

    interpolator = Interpolator(
        properties=properties,
        builtins=builtin_properties(
            group=group,
            artifact=artifact,
            version=version,
            packaging=fields.get("packaging"),
            parent_group=fields.get("parent_group"),
            parent_version=fields.get("parent_version"),
            basedir=pom_path.parent,
        ),
    )
    try:
        group, artifact, version = (interpolator.interpolate(v) for v in (group, artifact, version))
    except InterpolationDepthError as e:
        raise ParseError(f"identity of {pom_path} does not settle: {e.message}") from e
    for value in (group, artifact, version):
        if "${" in value:
            raise ParseError(f"identity of {pom_path} has unresolved expression '{value}'")

    return Identity(
        path=pom_path,
        group=group,
        artifact=artifact,
        version=version,
        packaging=fields.get("packaging") or Constants.DEFAULT_PACKAGING,
    )
