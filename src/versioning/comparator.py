"""Version ordering for indexed artifacts.

Versions that are valid PEP 440 strings on both sides are compared with
``packaging.version``; anything else (``-SNAPSHOT``, ``.Final``, ``-rc-2``)
falls back to Maven-style token comparison: numeric segments compare as
integers, qualifiers by their well-known rank, and a numeric segment is
newer than a qualifier at the same position.
"""

import re
from functools import cmp_to_key
from typing import Iterable, List, Optional, Union

from packaging import version as pep440

_TOKEN_RE = re.compile(r"\d+|[a-zA-Z]+")
_VERSION_CHARS_RE = re.compile(r"[0-9A-Za-z._+\-]+")

_QUALIFIER_RANK = {
    "alpha": 1, "a": 1,
    "beta": 2, "b": 2,
    "milestone": 3, "m": 3,
    "rc": 4, "cr": 4,
    "snapshot": 5,
    "": 6, "ga": 6, "final": 6, "release": 6,
    "sp": 7,
}
_UNKNOWN_QUALIFIER_RANK = 8

Token = Union[int, str]


def _tokens(value: str) -> List[Token]:
    tokens: List[Token] = []
    for raw in _TOKEN_RE.findall(value):
        tokens.append(int(raw) if raw.isdigit() else raw.lower())
    # Trailing zeros and release markers do not change ordering.
    while tokens and tokens[-1] in (0, "", "ga", "final", "release"):
        tokens.pop()
    return tokens


def _compare_token(a: Optional[Token], b: Optional[Token]) -> int:
    if a is None:
        a = 0 if isinstance(b, int) else ""
    if b is None:
        b = 0 if isinstance(a, int) else ""
    if isinstance(a, int) and isinstance(b, int):
        return (a > b) - (a < b)
    if isinstance(a, int):
        return 1
    if isinstance(b, int):
        return -1
    rank_a = _QUALIFIER_RANK.get(a, _UNKNOWN_QUALIFIER_RANK)
    rank_b = _QUALIFIER_RANK.get(b, _UNKNOWN_QUALIFIER_RANK)
    if rank_a != rank_b:
        return (rank_a > rank_b) - (rank_a < rank_b)
    return (a > b) - (a < b)


def _pep440(value: str) -> Optional[pep440.Version]:
    try:
        return pep440.Version(value)
    except pep440.InvalidVersion:
        return None


def compare_versions(a: Optional[str], b: Optional[str]) -> int:
    """Return -1, 0 or 1 as ``a`` is older than, equal to or newer than ``b``."""
    if a == b:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1

    # "1.0-1" is a Maven build number, not a PEP 440 post release.
    if "-" not in a and "-" not in b:
        parsed_a, parsed_b = _pep440(a), _pep440(b)
        if parsed_a is not None and parsed_b is not None:
            return (parsed_a > parsed_b) - (parsed_a < parsed_b)

    tokens_a, tokens_b = _tokens(a), _tokens(b)
    for i in range(max(len(tokens_a), len(tokens_b))):
        ta = tokens_a[i] if i < len(tokens_a) else None
        tb = tokens_b[i] if i < len(tokens_b) else None
        result = _compare_token(ta, tb)
        if result:
            return result
    # Equal by ordering but different spelling: keep a stable total order.
    return (a > b) - (a < b)


version_key = cmp_to_key(compare_versions)


def sort_versions(versions: Iterable[str], reverse: bool = False) -> List[str]:
    """Return versions sorted oldest first (or newest first with reverse)."""
    return sorted(set(versions), key=version_key, reverse=reverse)


def highest_version(versions: Iterable[str], include_snapshots: bool = True) -> Optional[str]:
    """Pick the highest version, preferring releases over SNAPSHOTs."""
    candidates = sort_versions(versions, reverse=True)
    if not include_snapshots:
        stable = [v for v in candidates if not v.upper().endswith("-SNAPSHOT")]
        if stable:
            return stable[0]
    return candidates[0] if candidates else None


def is_version_string(value: str) -> bool:
    """Return True when ``value`` looks like a version (starts with a digit)."""
    if not value or not value[0].isdigit():
        return False
    return bool(_VERSION_CHARS_RE.fullmatch(value))
