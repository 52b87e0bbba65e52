"""Version Comparison.

Provides ordering for migration version tokens:
- Lexicographic comparison (default)
- Semantic versioning
- Stable version sorting
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

T = TypeVar("T")

# compare(v1, v2) -> negative / zero / positive
VersionComparator = Callable[[str, str], int]


def lexicographic_compare(v1: str, v2: str) -> int:
    """Compare two version tokens as plain strings.

    Only gives chronological order for fixed-width tokens such as
    ``YYYY-MM-DD``: ``"2023-1-5"`` sorts after ``"2023-01-15"``.
    """
    return (v1 > v2) - (v1 < v2)


@dataclass(frozen=True)
class SemanticVersion:
    """Semantic version (major.minor.patch)."""
    major: int
    minor: int
    patch: int
    prerelease: Optional[str] = None
    build: Optional[str] = None

    @classmethod
    def parse(cls, version_str: str) -> "SemanticVersion":
        """Parse a semantic version string.

        Args:
            version_str: Version string like "1.2.3", "v1.2", "1.2.3-beta.1+build.123"

        Returns:
            SemanticVersion instance.

        Raises:
            ValueError: If version string is invalid.
        """
        if version_str.startswith("v"):
            version_str = version_str[1:]

        # Missing minor/patch parts default to zero
        pattern = r'^(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:-([a-zA-Z0-9.-]+))?(?:\+([a-zA-Z0-9.-]+))?$'
        match = re.match(pattern, version_str)

        if not match:
            raise ValueError(f"Invalid semantic version: {version_str}")

        return cls(
            major=int(match.group(1)),
            minor=int(match.group(2) or 0),
            patch=int(match.group(3) or 0),
            prerelease=match.group(4),
            build=match.group(5),
        )

    def __str__(self) -> str:
        result = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            result += f"-{self.prerelease}"
        if self.build:
            result += f"+{self.build}"
        return result

    def compare(self, other: "SemanticVersion") -> int:
        """Three-way comparison; build metadata is ignored."""
        mine = (self.major, self.minor, self.patch)
        theirs = (other.major, other.minor, other.patch)
        if mine != theirs:
            return -1 if mine < theirs else 1

        # Prerelease versions have lower precedence
        if self.prerelease and not other.prerelease:
            return -1
        if not self.prerelease and other.prerelease:
            return 1
        if self.prerelease and other.prerelease:
            return self._compare_prerelease(self.prerelease, other.prerelease)
        return 0

    @staticmethod
    def _compare_prerelease(a: str, b: str) -> int:
        """Compare prerelease strings."""
        parts_a = a.split(".")
        parts_b = b.split(".")

        for pa, pb in zip(parts_a, parts_b):
            # Numeric parts compare as integers
            if pa.isdigit() and pb.isdigit():
                if int(pa) != int(pb):
                    return -1 if int(pa) < int(pb) else 1
            # Numeric < non-numeric
            elif pa.isdigit():
                return -1
            elif pb.isdigit():
                return 1
            elif pa != pb:
                return -1 if pa < pb else 1

        return (len(parts_a) > len(parts_b)) - (len(parts_a) < len(parts_b))


def semantic_compare(v1: str, v2: str) -> int:
    """Compare two ``major.minor.patch`` tokens numerically.

    Raises:
        ValueError: If either token is not a semantic version.
    """
    return SemanticVersion.parse(v1).compare(SemanticVersion.parse(v2))


COMPARATORS: Dict[str, VersionComparator] = {
    "lexicographic": lexicographic_compare,
    "semantic": semantic_compare,
}


def resolve_comparator(name: str) -> VersionComparator:
    """Look up a comparator by its configuration name."""
    try:
        return COMPARATORS[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown version comparator: {name!r} "
            f"(expected one of {', '.join(sorted(COMPARATORS))})"
        ) from None


def sort_by_version(
    items: Sequence[T],
    comparator: VersionComparator,
    key: Callable[[T], str],
) -> List[T]:
    """Sort items ascending by version.

    The sort is stable, so items sharing a version keep their input order.
    """
    return sorted(
        items,
        key=functools.cmp_to_key(lambda a, b: comparator(key(a), key(b))),
    )
