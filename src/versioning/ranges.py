"""Maven version range matching against locally indexed versions."""

from typing import List, Optional, Tuple

from .comparator import compare_versions, highest_version
from .models import ResolutionMode
from .parser import determine_resolution_mode


class MavenRangeResolver:
    """Select versions from a candidate list using Maven range semantics.

    Candidates come from the repository index, so no lookup ever leaves
    the local disk.
    """

    def pick(self, spec: Optional[str], candidates: List[str]) -> Tuple[Optional[str], int, Optional[str]]:
        """Apply Maven version rules to select a version.

        Args:
            spec: Requested version, range, or None for the latest version.
            candidates: Available version strings.

        Returns:
            Tuple of (resolved_version, candidate_count, error_message)
        """
        mode = determine_resolution_mode(spec)
        if mode == ResolutionMode.LATEST:
            return self._pick_latest(candidates)
        if mode == ResolutionMode.EXACT:
            return self._pick_exact(spec.strip(), candidates)
        return self._pick_range(spec.strip(), candidates)

    def _pick_latest(self, candidates: List[str]) -> Tuple[Optional[str], int, Optional[str]]:
        """Pick the highest stable (non-SNAPSHOT) version from candidates."""
        if not candidates:
            return None, 0, "No versions available"
        return highest_version(candidates, include_snapshots=False), len(candidates), None

    def _pick_exact(self, version_str: str, candidates: List[str]) -> Tuple[Optional[str], int, Optional[str]]:
        """Check if exact version exists in candidates."""
        if version_str in candidates:
            return version_str, len(candidates), None
        return None, len(candidates), f"Version {version_str} not found"

    def _pick_range(self, range_spec: str, candidates: List[str]) -> Tuple[Optional[str], int, Optional[str]]:
        """Apply Maven version range and pick highest matching version."""
        try:
            matching_versions = self.filter_by_range(range_spec, candidates)
        except ValueError as e:
            return None, len(candidates), f"Range parsing error: {e}"
        if not matching_versions:
            return None, len(candidates), f"No versions match range '{range_spec}'"
        return highest_version(matching_versions), len(candidates), None

    def filter_by_range(self, range_spec: str, candidates: List[str]) -> List[str]:
        """Filter candidates by a Maven version range.

        Raises:
            ValueError: when brackets are unbalanced.
        """
        ranges = self._split_ranges(range_spec.strip())
        matching = []
        for candidate in candidates:
            if any(self._in_range(r, candidate) for r in ranges):
                matching.append(candidate)
        return matching

    @staticmethod
    def _split_ranges(range_spec: str) -> List[str]:
        """Split comma-separated ranges like [1.0,2.0),[3.0,4.0]."""
        ranges = []
        current = ""
        depth = 0
        for char in range_spec:
            if char in '[(':
                if depth == 0:
                    current = ""
                depth += 1
                current += char
            elif char in '])':
                depth -= 1
                current += char
                if depth == 0:
                    ranges.append(current)
                    current = ""
                elif depth < 0:
                    raise ValueError(f"unbalanced range '{range_spec}'")
            elif depth > 0:
                current += char
            elif char not in ', ':
                raise ValueError(f"unexpected '{char}' outside range '{range_spec}'")
        if depth != 0 or not ranges:
            raise ValueError(f"unbalanced range '{range_spec}'")
        return ranges

    @staticmethod
    def _in_range(bracket_range: str, candidate: str) -> bool:
        """Check one bracket range like [1.0,2.0), (1.0,] or [1.2]."""
        inner = bracket_range[1:-1]
        lower_inclusive = bracket_range.startswith('[')
        upper_inclusive = bracket_range.endswith(']')

        if ',' not in inner:
            # [1.2] pins an exact version.
            return compare_versions(candidate, inner.strip()) == 0

        lower_str, upper_str = (part.strip() for part in inner.split(',', 1))
        if lower_str:
            cmp = compare_versions(candidate, lower_str)
            if cmp < 0 or (cmp == 0 and not lower_inclusive):
                return False
        if upper_str:
            cmp = compare_versions(candidate, upper_str)
            if cmp > 0 or (cmp == 0 and not upper_inclusive):
                return False
        return True
