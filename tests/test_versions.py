"""Tests for version ordering and Maven range selection."""
import pytest

from versioning.comparator import compare_versions, highest_version, is_version_string, sort_versions
from versioning.ranges import MavenRangeResolver


@pytest.mark.parametrize(
    "older,newer",
    [
        ("1.0", "1.0.1"),
        ("1.9", "1.10"),
        ("1.0-SNAPSHOT", "1.0"),
        ("1.0-alpha-1", "1.0-beta-1"),
        ("1.0-rc1", "1.0"),
        ("1.0", "1.0-1"),
        ("2.0-SNAPSHOT", "2.0.1"),
    ],
)
def test_compare_versions_ordering(older, newer):
    assert compare_versions(older, newer) == -1
    assert compare_versions(newer, older) == 1


def test_compare_versions_equal_and_none():
    assert compare_versions("1.0", "1.0") == 0
    assert compare_versions(None, "1.0") == -1
    assert compare_versions("1.0", None) == 1


def test_sort_and_highest():
    assert sort_versions(["1.10", "1.2", "1.9", "1.2"]) == ["1.2", "1.9", "1.10"]
    assert highest_version(["1.0", "2.0-SNAPSHOT"]) == "2.0-SNAPSHOT"
    assert highest_version(["1.0", "2.0-SNAPSHOT"], include_snapshots=False) == "1.0"
    assert highest_version([]) is None


def test_is_version_string():
    assert is_version_string("1.2.3")
    assert is_version_string("2.0-SNAPSHOT")
    assert not is_version_string("poms")
    assert not is_version_string("")
    assert not is_version_string("1.0 beta")


CANDIDATES = ["0.9", "1.0", "1.5", "2.0"]


@pytest.mark.parametrize(
    "spec,expected",
    [
        (None, "2.0"),
        ("1.5", "1.5"),
        ("[1.0,2.0)", "1.5"),
        ("[1.0,2.0]", "2.0"),
        ("(,1.0]", "1.0"),
        ("[1.0]", "1.0"),
        ("(1.0,)", "2.0"),
        ("[0.1,0.9],[1.1,1.9]", "1.5"),
    ],
)
def test_pick(spec, expected):
    version, count, error = MavenRangeResolver().pick(spec, CANDIDATES)
    assert (version, count, error) == (expected, 4, None)


def test_pick_reports_missing_versions():
    resolver = MavenRangeResolver()
    assert resolver.pick("3.0", CANDIDATES)[0] is None
    version, _, error = resolver.pick("[3.0,)", CANDIDATES)
    assert version is None and "No versions match" in error
    assert resolver.pick(None, [])[2] == "No versions available"


def test_filter_by_range_union_and_errors():
    resolver = MavenRangeResolver()
    assert resolver.filter_by_range("[1.0,1.2],[1.5,)", ["1.0", "1.1", "1.3", "1.5", "2.0"]) == [
        "1.0", "1.1", "1.5", "2.0",
    ]
    with pytest.raises(ValueError):
        resolver.filter_by_range("[1.0,2.0", CANDIDATES)
    version, _, error = resolver.pick("[1.0,2.0", CANDIDATES)
    assert version is None and error.startswith("Range parsing error")
