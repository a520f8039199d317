"""Shared fixtures: a throwaway staged repository built under tmp_path."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence

import pytest

from repository.scanner import scan_repository
from resolution.context import ResolutionConfig, ResolutionContext
from resolution.graph import GraphResolver


def dep_xml(
    group: str,
    artifact: str,
    version: Optional[str] = None,
    scope: Optional[str] = None,
    optional: bool = False,
    classifier: Optional[str] = None,
    type: Optional[str] = None,  # pylint: disable=redefined-builtin
    exclusions: Iterable[str] = (),
) -> str:
    parts = [f"<groupId>{group}</groupId>", f"<artifactId>{artifact}</artifactId>"]
    if version is not None:
        parts.append(f"<version>{version}</version>")
    if type is not None:
        parts.append(f"<type>{type}</type>")
    if classifier is not None:
        parts.append(f"<classifier>{classifier}</classifier>")
    if scope is not None:
        parts.append(f"<scope>{scope}</scope>")
    if optional:
        parts.append("<optional>true</optional>")
    excl = list(exclusions)
    if excl:
        items = "".join(
            f"<exclusion><groupId>{e.split(':')[0]}</groupId><artifactId>{e.split(':')[1]}</artifactId></exclusion>"
            for e in excl
        )
        parts.append(f"<exclusions>{items}</exclusions>")
    return "<dependency>" + "".join(parts) + "</dependency>"


def pom_xml(
    group: Optional[str],
    artifact: str,
    version: Optional[str],
    parent: Optional[str] = None,
    packaging: Optional[str] = None,
    properties: Optional[Dict[str, str]] = None,
    dependencies: Sequence[str] = (),
    management: Sequence[str] = (),
    extra: str = "",
) -> str:
    """Render a descriptor. ``parent`` is ``group:artifact:version``."""
    body = ['<modelVersion>4.0.0</modelVersion>']
    if parent:
        pg, pa, pv = parent.split(":")
        body.append(
            f"<parent><groupId>{pg}</groupId><artifactId>{pa}</artifactId><version>{pv}</version></parent>"
        )
    if group:
        body.append(f"<groupId>{group}</groupId>")
    body.append(f"<artifactId>{artifact}</artifactId>")
    if version:
        body.append(f"<version>{version}</version>")
    if packaging:
        body.append(f"<packaging>{packaging}</packaging>")
    if properties:
        props = "".join(f"<{k}>{v}</{k}>" for k, v in properties.items())
        body.append(f"<properties>{props}</properties>")
    if management:
        body.append(
            "<dependencyManagement><dependencies>" + "".join(management) + "</dependencies></dependencyManagement>"
        )
    if dependencies:
        body.append("<dependencies>" + "".join(dependencies) + "</dependencies>")
    body.append(extra)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<project xmlns="http://maven.apache.org/POM/4.0.0">\n  '
        + "\n  ".join(body)
        + "\n</project>\n"
    )


class StagedRepo:
    """Flat packaging layout: ``poms/<artifact>-<version>.pom`` + ``jars/<artifact>-<version>.jar``."""

    def __init__(self, root: Path):
        self.root = root
        self.poms = root / "poms"
        self.jars = root / "jars"
        self.natives = root / "lib"
        for d in (self.poms, self.jars, self.natives):
            d.mkdir(parents=True, exist_ok=True)

    def pom(self, group, artifact, version, jar: bool = True, filename: Optional[str] = None, **kwargs) -> Path:
        path = self.poms / (filename or f"{artifact}-{version}.pom")
        path.write_text(pom_xml(group, artifact, version, **kwargs), encoding="utf-8")
        if jar and kwargs.get("packaging") != "pom":
            self.jar(f"{artifact}-{version}")
        return path

    def jar(self, stem: str, suffix: str = ".jar") -> Path:
        path = self.jars / f"{stem}{suffix}"
        path.write_bytes(b"PK\x03\x04")
        return path

    def native(self, name: str) -> Path:
        path = self.natives / name
        path.write_bytes(b"\x7fELF")
        return path

    def config(self, **kwargs) -> ResolutionConfig:
        kwargs.setdefault("metadata_dirs", (self.poms,))
        kwargs.setdefault("artifact_dirs", (self.jars,))
        kwargs.setdefault("native_dir", self.natives)
        kwargs.setdefault("environment", {})
        return ResolutionConfig(**kwargs)

    def context(self, **kwargs) -> ResolutionContext:
        config = self.config(**kwargs)
        index = scan_repository(
            config.metadata_dirs, config.artifact_dirs, config.native_dir, workers=2
        )
        return ResolutionContext(config, index)

    def resolve(self, *roots, **kwargs):
        context = self.context(**kwargs)
        return GraphResolver(context).resolve(list(roots))


@pytest.fixture
def repo(tmp_path):
    return StagedRepo(tmp_path)
