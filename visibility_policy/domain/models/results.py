"""
Analysis Result Models

Immutable outputs of the policy engine, consumed by external renderers.
Every container offers ``to_dict()`` with deterministic ordering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from .errors import AmbiguousMatchError

NO_GROUP = "none"

# package -> group of violating rdep (None = outside any group) -> violating labels
ViolationMap = Dict[str, Dict[Optional[str], Set[str]]]


def group_sort_key(group_name: Optional[str]) -> Tuple[bool, str]:
    """Sort key placing real group names first and "no group" last."""
    return (group_name is None, group_name or "")


@dataclass(frozen=True)
class Violation:
    """A reverse-dependency edge not permitted by the target package's group."""
    source_package: str
    source_group: str
    violating_dependency_path: str
    violating_group: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package": self.source_package,
            "group": self.source_group,
            "rdep": self.violating_dependency_path,
            "rdep_group": self.violating_group,
        }

    def __str__(self) -> str:
        return (
            f"{self.source_package} ({self.source_group}) <<(rdep)<< "
            f"{self.violating_dependency_path} ({self.violating_group or 'no group'})"
        )


@dataclass(frozen=True)
class Recommendation:
    """Additional visibility entries recommended for one target package."""
    target_package: str
    entries: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"package": self.target_package, "additional_visibility": list(self.entries)}


@dataclass(frozen=True)
class PackageOutcome:
    """Result of analysing a single target package."""
    package_path: str
    group_name: Optional[str]
    violations: Dict[Optional[str], Set[str]] = field(default_factory=dict)
    ignored_reason: Optional[str] = None

    @property
    def ignored(self) -> bool:
        return self.ignored_reason is not None


@dataclass
class AnalysisResult:
    """
    Violations found for a set of target packages.

    ``violations`` maps package -> group of the violating reverse dependency
    (``None`` when it is outside any group) -> set of violating labels.
    Only packages with at least one violation appear in it. Packages skipped
    because they have no group, or their group is out of scope, are listed in
    ``ignored`` together with the reason.
    """
    violations: ViolationMap = field(default_factory=dict)
    package_groups: Dict[str, str] = field(default_factory=dict)
    ignored: Dict[str, str] = field(default_factory=dict)
    analyzed: Tuple[str, ...] = ()

    @classmethod
    def from_outcomes(cls, outcomes: List[PackageOutcome]) -> "AnalysisResult":
        result = cls()
        analyzed: List[str] = []
        for outcome in sorted(outcomes, key=lambda o: o.package_path):
            if outcome.ignored:
                result.ignored[outcome.package_path] = outcome.ignored_reason
                continue
            analyzed.append(outcome.package_path)
            result.package_groups[outcome.package_path] = outcome.group_name
            if outcome.violations:
                result.violations[outcome.package_path] = {
                    g: set(outcome.violations[g])
                    for g in sorted(outcome.violations, key=group_sort_key)
                }
        result.analyzed = tuple(analyzed)
        return result

    @property
    def has_violations(self) -> bool:
        return bool(self.violations)

    @property
    def total_violations(self) -> int:
        return sum(len(paths) for by_group in self.violations.values() for paths in by_group.values())

    def violations_for(self, package_path: str) -> Dict[Optional[str], Set[str]]:
        return self.violations.get(package_path, {})

    def flat(self) -> List[Violation]:
        """All violations as records, sorted by package, group and path."""
        records: List[Violation] = []
        for package in sorted(self.violations):
            by_group = self.violations[package]
            for group in sorted(by_group, key=group_sort_key):
                for path in sorted(by_group[group]):
                    records.append(Violation(
                        source_package=package,
                        source_group=self.package_groups[package],
                        violating_dependency_path=path,
                        violating_group=group,
                    ))
        return records

    def to_dict(self) -> Dict[str, Any]:
        return {
            "violations": {
                package: {
                    (group if group is not None else NO_GROUP): sorted(by_group[group])
                    for group in sorted(by_group, key=group_sort_key)
                }
                for package, by_group in sorted(self.violations.items())
            },
            "ignored": dict(sorted(self.ignored.items())),
            "analyzed": list(self.analyzed),
        }


@dataclass
class ClassificationReport:
    """Outcome of classifying a batch of external artifacts."""
    assignments: Dict[str, str] = field(default_factory=dict)
    unclassified: Tuple[str, ...] = ()
    errors: Dict[str, AmbiguousMatchError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def artifacts_of(self, group_name: str) -> Tuple[str, ...]:
        return tuple(sorted(a for a, g in self.assignments.items() if g == group_name))

    def raise_for_errors(self) -> None:
        """Raise the first ambiguity (by artifact name) if any were collected."""
        if self.errors:
            raise self.errors[sorted(self.errors)[0]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assignments": dict(sorted(self.assignments.items())),
            "unclassified": list(self.unclassified),
            "errors": {name: str(err) for name, err in sorted(self.errors.items())},
        }


@dataclass(frozen=True)
class AllowListPlan:
    """
    Packages that need an allow-list exception to use a group's external artifacts.

    An empty ``packages`` tuple means the allow list is no longer needed.
    """
    group_name: str
    allow_list: str
    artifacts: Tuple[str, ...] = ()
    packages: Tuple[str, ...] = ()
    allow_list_defined: bool = True

    @property
    def removable(self) -> bool:
        return not self.packages

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group": self.group_name,
            "allow_list": self.allow_list,
            "allow_list_defined": self.allow_list_defined,
            "artifacts": list(self.artifacts),
            "packages": list(self.packages),
        }
