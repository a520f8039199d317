"""Tests for the repository scanner and index."""
from pathlib import Path

from conftest import pom_xml
from repository.index import IndexBuilder
from repository.naming import artifact_stems, name_variants, simplify_native_name
from repository.scanner import scan_repository
from versioning.models import Coordinate


def _write(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_flat_layout_pairs_same_stem(tmp_path):
    _write(tmp_path / "poms" / "foo.pom", pom_xml("org.example", "foo", "1.0"))
    jar = _write(tmp_path / "poms" / "foo.jar")
    index = scan_repository([tmp_path / "poms"])
    coord = Coordinate("org.example", "foo", "1.0")
    assert index.descriptor_path(coord) == tmp_path / "poms" / "foo.pom"
    assert index.artifact_path(coord, None, "jar") == jar
    assert index.packaging(coord) == "jar"


def test_repository_layout_with_classifiers(tmp_path):
    base = tmp_path / "repo" / "org" / "example" / "lib" / "2.0"
    _write(base / "lib-2.0.pom", pom_xml("org.example", "lib", "2.0"))
    main = _write(base / "lib-2.0.jar")
    sources = _write(base / "lib-2.0-sources.jar")
    index = scan_repository([tmp_path / "repo"])
    coord = Coordinate("org.example", "lib", "2.0")
    assert index.artifact_path(coord, None, "jar") == main
    assert index.artifact_path(coord, "sources", "jar") == sources


def test_repository_layout_binaries_without_descriptor_use_path_group(tmp_path):
    _write(tmp_path / "poms" / "lib.pom", pom_xml("org.example", "lib", "2.0"))
    jar = _write(tmp_path / "jars" / "org" / "example" / "lib" / "2.0" / "lib-2.0.jar")
    index = scan_repository([tmp_path / "poms"], [tmp_path / "jars"])
    assert index.artifact_path(Coordinate("org.example", "lib", "2.0"), None, "jar") == jar


def test_unpaired_and_jpp_names(tmp_path):
    plain = _write(tmp_path / "java" / "commons-io.jar")
    jpp = _write(tmp_path / "java" / "JPP-foo.jar")
    index = scan_repository([tmp_path / "poms"], [tmp_path / "java"])
    assert index.unpaired_path("commons-io") == plain
    assert index.unpaired_path("JPP-foo") == jpp
    assert index.unpaired_path("foo") == jpp


def test_native_libraries_by_simplified_name(tmp_path):
    so = _write(tmp_path / "lib" / "libfoo-1.2.so.3")
    dll = _write(tmp_path / "lib" / "bar.dll")
    _write(tmp_path / "lib" / "README")
    index = scan_repository([], native_dir=tmp_path / "lib")
    assert index.native_path("foo") == so
    assert index.native_path("bar") == dll
    assert index.stats()["natives"] == 2


def test_bad_descriptors_become_warnings(tmp_path):
    _write(tmp_path / "poms" / "broken.pom", "<project><artifactId>x")
    _write(tmp_path / "poms" / "anonymous.pom", "<project><artifactId>x</artifactId></project>")
    _write(tmp_path / "poms" / "good.pom", pom_xml("g", "good", "1"))
    index = scan_repository([tmp_path / "poms"])
    assert index.has_descriptor(Coordinate("g", "good", "1"))
    assert len(index.warnings) == 2
    assert any("broken.pom" in w for w in index.warnings)


def test_missing_root_is_empty(tmp_path):
    index = scan_repository([tmp_path / "nope"], [tmp_path / "also-nope"], tmp_path / "none")
    assert index.stats() == {"descriptors": 0, "artifacts": 0, "unpaired": 0, "natives": 0, "warnings": 0}


def test_scan_depth_bounds_walk(tmp_path):
    _write(tmp_path / "top.pom", pom_xml("g", "top", "1"))
    _write(tmp_path / "a" / "mid.pom", pom_xml("g", "mid", "1"))
    _write(tmp_path / "a" / "b" / "deep.pom", pom_xml("g", "deep", "1"))

    shallow = scan_repository([tmp_path], max_depth=0)
    assert [c.artifact for c in shallow.coordinates()] == ["top"]

    one = scan_repository([tmp_path], max_depth=1)
    assert [c.artifact for c in one.coordinates()] == ["mid", "top"]

    full = scan_repository([tmp_path], workers=3)
    assert [c.artifact for c in full.coordinates()] == ["deep", "mid", "top"]


def test_duplicate_descriptor_last_path_wins(tmp_path):
    _write(tmp_path / "a" / "x.pom", pom_xml("g", "x", "1"))
    _write(tmp_path / "b" / "x.pom", pom_xml("g", "x", "1"))
    index = scan_repository([tmp_path], workers=4)
    assert index.descriptor_path(Coordinate("g", "x", "1")) == tmp_path / "b" / "x.pom"
    assert any("duplicate descriptor" in w for w in index.warnings)


def test_versions_sorted(tmp_path):
    for version in ("1.10", "1.2", "1.9"):
        _write(tmp_path / f"lib-{version}.pom", pom_xml("g", "lib", version))
    index = scan_repository([tmp_path])
    assert index.versions(("g", "lib")) == ["1.2", "1.9", "1.10"]
    assert index.versions(("g", "other")) == []


def test_index_builder_is_order_independent(tmp_path):
    from descriptor.models import Identity

    first = Identity(tmp_path / "a.pom", "g", "x", "1")
    second = Identity(tmp_path / "b.pom", "g", "x", "1")
    forward, backward = IndexBuilder(), IndexBuilder()
    forward.add_identity(first)
    forward.add_identity(second)
    backward.add_identity(second)
    backward.add_identity(first)
    coord = Coordinate("g", "x", "1")
    assert forward.build().descriptor_path(coord) == backward.build().descriptor_path(coord) == second.path


def test_naming_helpers():
    assert simplify_native_name("libfoo-1.2.so.3") == "foo"
    assert simplify_native_name("libbar.dylib") == "bar"
    assert simplify_native_name("baz.jnilib") == "baz"
    assert name_variants("org.apache.commons", "commons-io") == [
        "commons-io", "apache-commons-commons-io", "apache-commons-io",
    ]
    assert name_variants("junit", "junit") == ["junit"]
    assert artifact_stems(Coordinate("junit", "junit", "4.13", classifier="tests")) == [
        "junit-4.13-tests", "junit-tests",
    ]
