"""Tests for parent-chain resolution and model merging."""
import pytest

from common.errors import CyclicInheritanceError, InheritanceDepthError, UnresolvedParentError
from conftest import dep_xml, pom_xml
from descriptor import loader
from resolution.inheritance import InheritanceResolver, merge_models
from versioning.models import Coordinate


def _resolver(repo, **kwargs):
    return InheritanceResolver(repo.context(**kwargs))


def test_three_level_merge(repo):
    repo.pom(
        "org.ex", "grand", "1", packaging="pom",
        properties={"x": "grand", "y": "grand"},
        management=[dep_xml("org.ex", "managed", "1.0")],
    )
    repo.pom(None, "parent", "1", parent="org.ex:grand:1", packaging="pom", properties={"y": "parent"})
    repo.pom(None, "child", "1", parent="org.ex:parent:1", properties={"z": "child"})

    inherited = _resolver(repo).resolve_inherited(Coordinate("org.ex", "child", "1"))
    model = inherited.model
    assert model.properties == {"x": "grand", "y": "parent", "z": "child"}
    assert model.effective_group == "org.ex"
    assert model.packaging == "jar"
    assert [d.artifact for d in model.management] == ["managed"]
    assert inherited.chain == [
        Coordinate("org.ex", "child", "1"),
        Coordinate("org.ex", "parent", "1"),
        Coordinate("org.ex", "grand", "1"),
    ]


def test_child_dependency_replaces_inherited_in_place(repo):
    repo.pom("g", "parent", "1", packaging="pom", dependencies=[dep_xml("g", "a", "1"), dep_xml("g", "b", "1")])
    repo.pom("g", "child", "1", parent="g:parent:1", dependencies=[dep_xml("g", "a", "2"), dep_xml("g", "c", "1")])

    model = _resolver(repo).resolve(Coordinate("g", "child", "1"))
    assert [(d.artifact, d.version) for d in model.dependencies] == [("a", "2"), ("b", "1"), ("c", "1")]


def test_merge_models_is_associative():
    a = loader.loads(pom_xml("g", "a", "1", properties={"p": "a", "q": "a"},
                             dependencies=[dep_xml("g", "x", "1"), dep_xml("g", "y", "1")]))
    b = loader.loads(pom_xml(None, "b", None, parent="g:a:1", properties={"q": "b"},
                             dependencies=[dep_xml("g", "y", "2"), dep_xml("g", "z", "1")]))
    c = loader.loads(pom_xml(None, "c", "3", parent="g:b:1", properties={"r": "c"},
                             dependencies=[dep_xml("g", "x", "3")]))

    left = merge_models(merge_models(a, b), c)
    right = merge_models(a, merge_models(b, c))
    assert left == right
    assert left.version == "3"
    assert [(d.artifact, d.version) for d in left.dependencies] == [("x", "3"), ("y", "2"), ("z", "1")]


def test_cyclic_parents(repo):
    repo.pom("g", "p1", "1", packaging="pom", parent="g:p2:1")
    repo.pom("g", "p2", "1", packaging="pom", parent="g:p1:1")
    repo.pom("g", "child", "1", parent="g:p1:1")

    with pytest.raises(CyclicInheritanceError) as exc:
        _resolver(repo).resolve(Coordinate("g", "child", "1"))
    assert exc.value.chain[-1] == Coordinate("g", "p1", "1")
    assert exc.value.kind == "cyclic_inheritance"


def test_missing_parent(repo):
    repo.pom("g", "child", "1", parent="g:nowhere:1")
    with pytest.raises(UnresolvedParentError):
        _resolver(repo).resolve(Coordinate("g", "child", "1"))


def test_depth_bound(repo):
    repo.pom("g", "p3", "1", packaging="pom")
    repo.pom("g", "p2", "1", packaging="pom", parent="g:p3:1")
    repo.pom("g", "p1", "1", packaging="pom", parent="g:p2:1")
    repo.pom("g", "deep", "1", parent="g:p1:1")
    repo.pom("g", "shallow", "1", parent="g:p2:1")

    resolver = _resolver(repo, max_parent_depth=2)
    assert resolver.resolve(Coordinate("g", "shallow", "1")).artifact == "shallow"
    with pytest.raises(InheritanceDepthError):
        resolver.resolve(Coordinate("g", "deep", "1"))


def test_relative_path_parent_outside_index(repo):
    (repo.root / "pom.xml").write_text(
        pom_xml("g", "outside", "1", packaging="pom", properties={"from": "outside"}), encoding="utf-8"
    )
    repo.pom("g", "child", "1", parent="g:outside:1")

    model = _resolver(repo).resolve(Coordinate("g", "child", "1"))
    assert model.properties["from"] == "outside"


def test_relative_path_candidate_with_wrong_identity_is_ignored(repo):
    (repo.root / "pom.xml").write_text(pom_xml("g", "impostor", "1", packaging="pom"), encoding="utf-8")
    repo.pom("g", "child", "1", parent="g:outside:1")

    with pytest.raises(UnresolvedParentError):
        _resolver(repo).resolve(Coordinate("g", "child", "1"))
