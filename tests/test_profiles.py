"""Tests for profile activation."""
from conftest import dep_xml, pom_xml
from descriptor import loader
from resolution.profiles import apply_profiles, select_profiles
from versioning.models import Coordinate

COORD = Coordinate("g", "a", "1")


def _profile(pid, activation="", properties="", dependencies=""):
    parts = [f"<id>{pid}</id>"]
    if activation:
        parts.append(f"<activation>{activation}</activation>")
    if properties:
        parts.append(f"<properties>{properties}</properties>")
    if dependencies:
        parts.append(f"<dependencies>{dependencies}</dependencies>")
    return "<profile>" + "".join(parts) + "</profile>"


def _model(*profiles, properties=None, path=None):
    xml = pom_xml("g", "a", "1", properties=properties, extra="<profiles>" + "".join(profiles) + "</profiles>")
    return loader.loads(xml, path)


def _active(model, active_ids=(), overrides=None):
    selected, report = select_profiles(model, COORD, active_ids, overrides or {})
    return [p.id for p in selected], {r.profile_id: r for r in report}


DEFAULT = _profile("default", "<activeByDefault>true</activeByDefault>")
BY_PROPERTY = _profile("by-prop", "<property><name>mode</name><value>ci</value></property>")


def test_active_by_default_when_nothing_else_activates():
    ids, report = _active(_model(DEFAULT, BY_PROPERTY))
    assert ids == ["default"]
    assert report["by-prop"].active is False


def test_active_by_default_superseded_by_condition():
    ids, report = _active(_model(DEFAULT, BY_PROPERTY, properties={"mode": "ci"}))
    assert ids == ["by-prop"]
    assert report["default"].reason == "activeByDefault superseded"


def test_explicit_id_activates_and_supersedes_default():
    ids, report = _active(_model(DEFAULT, _profile("manual")), active_ids=["manual"])
    assert ids == ["manual"]
    assert report["manual"].reason == "explicit"


def test_overrides_drive_property_conditions():
    ids, _ = _active(_model(BY_PROPERTY, properties={"mode": "dev"}), overrides={"mode": "ci"})
    assert ids == ["by-prop"]


def test_negated_property_conditions():
    absent = _profile("absent", "<property><name>!skip</name></property>")
    not_value = _profile("not-dev", "<property><name>mode</name><value>!dev</value></property>")
    assert _active(_model(absent, not_value, properties={"mode": "ci"}))[0] == ["absent", "not-dev"]
    assert _active(_model(absent, not_value, properties={"skip": "1", "mode": "dev"}))[0] == []


def test_file_conditions_relative_to_basedir(tmp_path):
    (tmp_path / "marker.txt").write_text("x", encoding="utf-8")
    exists = _profile("exists", "<file><exists>marker.txt</exists></file>")
    missing = _profile("missing", "<file><missing>${basedir}/absent.txt</missing></file>")
    gone = _profile("gone", "<file><exists>absent.txt</exists></file>")
    ids, report = _active(_model(exists, missing, gone, path=tmp_path / "a.pom"))
    assert ids == ["exists", "missing"]
    assert report["gone"].active is False


def test_unsupported_conditions_never_hold():
    ids, report = _active(_model(_profile("jdk", "<jdk>[11,)</jdk>"), _profile("os", "<os><family>unix</family></os>")))
    assert ids == []
    assert report["jdk"].reason.startswith("unsupported condition")


def test_unconditioned_profiles_are_always_active():
    empty = "<profile><id>empty</id><activation/></profile>"
    ids, report = _active(_model(_profile("plain"), empty, BY_PROPERTY))
    assert ids == ["plain", "empty"]
    assert report["plain"].reason == "no condition"
    assert report["empty"].active is True


def test_unconditioned_profile_leaves_active_by_default_alone():
    ids, report = _active(_model(DEFAULT, _profile("plain")))
    assert ids == ["default", "plain"]
    assert report["default"].reason == "activeByDefault"


def test_apply_profiles_injects_fragments():
    model = _model(
        _profile("extra", "<activeByDefault>true</activeByDefault>",
                 properties="<lib.version>2</lib.version>",
                 dependencies=dep_xml("g", "lib", "${lib.version}")),
        properties={"lib.version": "1"},
    )
    selected, _ = select_profiles(model, COORD, (), {})
    applied = apply_profiles(model, selected)
    assert applied.properties["lib.version"] == "2"
    assert [d.artifact for d in applied.dependencies] == ["lib"]
    assert model.properties["lib.version"] == "1"


def test_profile_property_wins_in_effective_model(repo):
    repo.pom(
        "g", "lib", "1",
        properties={"dep.version": "1"},
        dependencies=[dep_xml("g", "dep", "${dep.version}")],
        extra="<profiles>" + _profile("newer", "<property><name>newer</name></property>",
                                      properties="<dep.version>2</dep.version>") + "</profiles>",
    )
    coord = Coordinate("g", "lib", "1")

    plain = repo.context().effective_model(coord)
    assert plain.dependencies[0].version == "1"
    assert plain.active_profiles == []

    context = repo.context(overrides={"newer": "yes"})
    model = context.effective_model(coord)
    assert model.dependencies[0].version == "2"
    assert model.active_profiles == ["newer"]
