"""
Recommendation Engine

Turns the violations of a package into additional visibility entries.

For each violating group H with c violating reverse dependencies:
    c >= threshold and H has a package group  ->  the package-group label
    otherwise                                 ->  each violating label

The threshold bounds the size of generated visibility lists: a broad group
reference when many members of a group violate, precise entries when few do.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Set, Tuple

from visibility_policy.domain.models.policy import VisibilityGroup
from visibility_policy.domain.models.results import AnalysisResult, Recommendation

DEFAULT_THRESHOLD = 3

GroupLookup = Callable[[str], VisibilityGroup]


class RecommendationEngine:
    """
    Builds sorted recommendation lists from violation maps.

    Args:
        group_lookup: resolves a group name to its definition, typically
            ``GroupGraph.get_group``
        threshold: minimum number of violations from one group before the
            whole group's package group is recommended
    """

    def __init__(self, group_lookup: GroupLookup, threshold: int = DEFAULT_THRESHOLD) -> None:
        if threshold < 1:
            raise ValueError(f"Recommendation threshold must be at least 1, got {threshold}")
        self.group_lookup = group_lookup
        self.threshold = threshold

    def recommend(
        self,
        violations_for_package: Dict[Optional[str], Set[str]],
        threshold: Optional[int] = None,
    ) -> Tuple[str, ...]:
        """Recommended entries for one package, sorted and deduplicated."""
        limit = self.threshold if threshold is None else threshold
        if limit < 1:
            raise ValueError(f"Recommendation threshold must be at least 1, got {limit}")

        entries: Set[str] = set()
        for group_name, paths in violations_for_package.items():
            package_group = None
            if group_name is not None:
                package_group = self.group_lookup(group_name).package_group
            if package_group and len(paths) >= limit:
                entries.add(package_group)
            else:
                entries.update(paths)
        return tuple(sorted(entries))

    def recommend_all(self, result: AnalysisResult) -> List[Recommendation]:
        """One recommendation per violating package, sorted by package."""
        return [
            Recommendation(target_package=package, entries=self.recommend(result.violations[package]))
            for package in sorted(result.violations)
        ]


def recommend(
    violations_for_package: Dict[Optional[str], Set[str]],
    threshold: int,
    group_lookup: GroupLookup,
) -> Tuple[str, ...]:
    """Functional form of :meth:`RecommendationEngine.recommend`."""
    return RecommendationEngine(group_lookup, threshold).recommend(violations_for_package)
