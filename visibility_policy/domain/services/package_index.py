"""
Package Index

Reverse lookup from a workspace package to the group it belongs to, built
once from the package assignment facts.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from visibility_policy.domain.models.errors import DuplicateAssignmentError
from visibility_policy.domain.models.labels import normalize_package_path, to_label
from visibility_policy.domain.models.policy import PackageAssignment

logger = logging.getLogger(__name__)


class PackageIndex:
    """Immutable package -> group index with a group -> packages view."""

    def __init__(self, group_by_package: Dict[str, str]) -> None:
        self._group_by_package: Mapping[str, str] = MappingProxyType(dict(group_by_package))

        packages_by_group: Dict[str, List[str]] = {}
        for package, group in self._group_by_package.items():
            packages_by_group.setdefault(group, []).append(package)
        self._packages_by_group: Mapping[str, Tuple[str, ...]] = MappingProxyType({
            group: tuple(sorted(packages))
            for group, packages in sorted(packages_by_group.items())
        })

    @classmethod
    def build(cls, assignments: Iterable[PackageAssignment]) -> "PackageIndex":
        """
        Index the assignments.

        A package assigned twice to the same group is accepted; a package
        assigned to two different groups raises ``DuplicateAssignmentError``.
        """
        group_by_package: Dict[str, str] = {}
        for assignment in assignments:
            existing = group_by_package.get(assignment.package_path)
            if existing is not None and existing != assignment.group_name:
                raise DuplicateAssignmentError(assignment.package_path, existing, assignment.group_name)
            group_by_package[assignment.package_path] = assignment.group_name

        logger.debug(f"Indexed {len(group_by_package)} packages")
        return cls(group_by_package)

    def group_of(self, package_path: str) -> Optional[str]:
        """Group name of a package, or ``None`` when it is outside any group."""
        return self._group_by_package.get(normalize_package_path(package_path))

    def packages_of(self, group_name: str) -> Tuple[str, ...]:
        """Sorted member packages of a group (empty when it has none)."""
        return self._packages_by_group.get(group_name, ())

    def groups(self) -> List[str]:
        """Sorted names of groups with at least one package."""
        return list(self._packages_by_group)

    def packages(self) -> List[str]:
        return sorted(self._group_by_package)

    def __contains__(self, package_path: object) -> bool:
        return package_path in self._group_by_package

    def __len__(self) -> int:
        return len(self._group_by_package)

    def membership(self, group_names: Iterable[str], graph) -> Dict[str, List[str]]:
        """
        Member labels (``//pkg``) for each requested group, sorted.

        Every requested group must be defined in ``graph`` (a GroupGraph);
        an undefined group raises ``GroupNotFoundError``.
        """
        result: Dict[str, List[str]] = {}
        for name in sorted(set(group_names)):
            graph.get_group(name)
            result[name] = [to_label(p) for p in self.packages_of(name)]
        return result
