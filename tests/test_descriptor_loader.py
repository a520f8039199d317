"""Tests for the descriptor (POM) loader."""
import pytest

from common.errors import MissingFieldError, ParseError
from descriptor import loader
from descriptor.models import Exclusion

FULL_POM = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <parent>
    <groupId>org.example</groupId>
    <artifactId>parent</artifactId>
    <version>1.0</version>
  </parent>
  <artifactId>app</artifactId>
  <packaging>war</packaging>
  <properties>
    <!-- comment -->
    <zeta>1</zeta>
    <alpha>2</alpha>
  </properties>
  <dependencyManagement>
    <dependencies>
      <dependency>
        <groupId>org.example</groupId>
        <artifactId>bom</artifactId>
        <version>3.0</version>
        <type>pom</type>
        <scope>import</scope>
      </dependency>
    </dependencies>
  </dependencyManagement>
  <dependencies>
    <dependency>
      <groupId>org.example</groupId>
      <artifactId>second</artifactId>
      <version>${second.version}</version>
      <optional>true</optional>
      <exclusions>
        <exclusion>
          <groupId>org.noise</groupId>
          <artifactId>*</artifactId>
        </exclusion>
      </exclusions>
    </dependency>
    <dependency>
      <groupId>org.example</groupId>
      <artifactId>first</artifactId>
      <classifier>natives</classifier>
      <scope>runtime</scope>
    </dependency>
    <dependency>
      <artifactId>no-group</artifactId>
    </dependency>
  </dependencies>
  <profiles>
    <profile>
      <id>ci</id>
      <activation>
        <property><name>env</name><value>ci</value></property>
      </activation>
      <properties><mode>ci</mode></properties>
    </profile>
    <profile>
      <id>old-jdk</id>
      <activation><jdk>1.8</jdk></activation>
    </profile>
    <profile>
      <activation><activeByDefault>true</activeByDefault></activation>
    </profile>
  </profiles>
</project>
"""


def test_loads_full_descriptor_preserves_order():
    model = loader.loads(FULL_POM)
    assert model.group is None
    assert model.effective_group == "org.example"
    assert model.effective_version == "1.0"
    assert model.packaging == "war"
    assert list(model.properties) == ["zeta", "alpha"]
    assert [d.artifact for d in model.dependencies] == ["second", "first"]

    second, first = model.dependencies
    assert second.version == "${second.version}"
    assert second.optional is True
    assert second.scope is None
    assert second.exclusions == (Exclusion("org.noise", "*"),)
    assert first.classifier == "natives"
    assert first.scope == "runtime"
    assert first.version is None

    (bom,) = model.management
    assert bom.is_import


def test_loads_profiles():
    profiles = loader.loads(FULL_POM).profiles
    assert [p.id for p in profiles] == ["ci", "old-jdk", "profile-2"]
    assert profiles[0].activation.property_name == "env"
    assert profiles[0].activation.property_value == "ci"
    assert profiles[0].properties == {"mode": "ci"}
    assert profiles[1].activation.unsupported == ("jdk",)
    assert profiles[2].activation.active_by_default
    assert not profiles[2].activation.has_conditions


def test_load_from_file(tmp_path):
    path = tmp_path / "app.pom"
    path.write_text(FULL_POM, encoding="utf-8")
    model = loader.load(path)
    assert model.path == path
    assert model.basedir == tmp_path
    assert model.parent.relative_path == "../pom.xml"


@pytest.mark.parametrize(
    "xml,error",
    [
        ("<project><groupId>g</groupId><version>1</version></project>", MissingFieldError),
        ("<project><artifactId>a</artifactId></project>", MissingFieldError),
        ("<project><parent><groupId>g</groupId></parent><artifactId>a</artifactId></project>", MissingFieldError),
        ("<project><artifactId>a</artifactId>", ParseError),
        ("<settings><artifactId>a</artifactId></settings>", ParseError),
    ],
)
def test_loads_errors(xml, error):
    with pytest.raises(error):
        loader.loads(xml)


def test_load_missing_file(tmp_path):
    with pytest.raises(ParseError):
        loader.load(tmp_path / "absent.pom")


def test_load_identity_expands_own_properties(tmp_path):
    path = tmp_path / "lib.pom"
    path.write_text(
        """<project xmlns="http://maven.apache.org/POM/4.0.0">
  <parent><groupId>org.example</groupId><artifactId>parent</artifactId><version>7</version></parent>
  <artifactId>lib-${flavor}</artifactId>
  <version>${revision}</version>
  <properties><revision>2.${minor}</revision><minor>1</minor><flavor>core</flavor></properties>
  <dependencies><dependency><groupId>x</groupId><artifactId>ignored</artifactId></dependency></dependencies>
</project>""",
        encoding="utf-8",
    )
    identity = loader.load_identity(path)
    assert (identity.group, identity.artifact, identity.version) == ("org.example", "lib-core", "2.1")
    assert identity.packaging == "jar"


def test_load_identity_uses_parent_version_builtin(tmp_path):
    path = tmp_path / "child.pom"
    path.write_text(
        "<project><parent><groupId>g</groupId><artifactId>p</artifactId><version>5</version></parent>"
        "<artifactId>child</artifactId><version>${project.parent.version}</version></project>",
        encoding="utf-8",
    )
    assert loader.load_identity(path).version == "5"


def test_load_identity_errors(tmp_path):
    missing = tmp_path / "missing.pom"
    missing.write_text("<project><artifactId>a</artifactId></project>", encoding="utf-8")
    with pytest.raises(MissingFieldError):
        loader.load_identity(missing)

    unresolved = tmp_path / "unresolved.pom"
    unresolved.write_text(
        "<project><groupId>g</groupId><artifactId>a</artifactId><version>${nope}</version></project>",
        encoding="utf-8",
    )
    with pytest.raises(ParseError):
        loader.load_identity(unresolved)

    broken = tmp_path / "broken.pom"
    broken.write_text("<project><artifactId>a", encoding="utf-8")
    with pytest.raises(ParseError):
        loader.load_identity(broken)
