"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    EXIT_UNRESOLVED = 3
    ROOT_FAILURE = 4
    CANCELLED = 5


class Scopes(Enum):
    """Dependency scopes understood by the resolver.

    Args:
        Enum (string): Scope names as they appear in descriptors.
    """

    COMPILE = "compile"
    RUNTIME = "runtime"
    PROVIDED = "provided"
    TEST = "test"
    SYSTEM = "system"
    IMPORT = "import"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    POM_NAMESPACE = "http://maven.apache.org/POM/4.0.0"
    POM_XML_FILE = "pom.xml"
    POM_SUFFIX = ".pom"
    ARTIFACT_SUFFIXES = (".jar", ".war", ".ear", ".aar", ".zip")
    NATIVE_SUFFIXES = (".so", ".dylib", ".dll", ".jnilib")
    JPP_PREFIXES = ("JPP-", "JPP.")

    DEFAULT_TYPE = "jar"
    DEFAULT_PACKAGING = "jar"
    DEFAULT_SCOPE = Scopes.COMPILE.value
    DEFAULT_SCOPE_FILTER = (Scopes.COMPILE.value, Scopes.RUNTIME.value)
    DEFAULT_RELATIVE_PATH = "../pom.xml"
    DEFAULT_SOURCE_ENCODING = "UTF-8"

    # Narrowness rank: higher is narrower.
    SCOPE_RANK = {
        Scopes.COMPILE.value: 0,
        Scopes.RUNTIME.value: 1,
        Scopes.PROVIDED.value: 2,
        Scopes.SYSTEM.value: 2,
        Scopes.TEST.value: 3,
    }
    NON_TRANSITIVE_SCOPES = (Scopes.TEST.value, Scopes.PROVIDED.value, Scopes.SYSTEM.value)

    # Extension used on disk for each descriptor dependency type.
    TYPE_EXTENSIONS = {
        "jar": "jar",
        "bundle": "jar",
        "test-jar": "jar",
        "maven-plugin": "jar",
        "ejb": "jar",
        "ejb-client": "jar",
        "java-source": "jar",
        "javadoc": "jar",
        "war": "war",
        "ear": "ear",
        "aar": "aar",
        "zip": "zip",
        "pom": "pom",
    }

    MAX_PARENT_DEPTH = 64
    MAX_INTERPOLATION_PASSES = 10
    SCAN_WORKERS = 4
    RESOLUTION_WORKERS = 4

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    CONFIG_SECTION = "depstage"
    ENV_CONFIG_FILE = "DEPSTAGE_CONFIG"
    ENV_METADATA_DIR = "DEPSTAGE_METADATA_DIR"
    ENV_ARTIFACT_DIR = "DEPSTAGE_ARTIFACT_DIR"
    ENV_NATIVE_DIR = "DEPSTAGE_NATIVE_DIR"
    PATH_SEPARATOR = ","
    OUTPUT_FORMATS = ["json", "csv"]
