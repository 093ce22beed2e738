"""
Policy Domain Models

Typed records describing a visibility policy: groups, package assignments
and external-artifact pattern rules.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional

from .labels import group_name_from_reference, normalize_package_path


def _frozen(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    if isinstance(values, str):
        raise ValueError(f"Expected a collection of strings, got the string {values!r}")
    return frozenset(values) if values else frozenset()


@dataclass(frozen=True)
class VisibilityGroup:
    """
    A named policy bucket of packages and artifacts.

    ``visible_to_groups`` lists the groups allowed to depend on members of
    this group. References written as same-package labels (``:name``) are
    reduced to the bare group name.
    """
    name: str
    label: str = ""
    package_group: Optional[str] = None
    allow_list: Optional[str] = None
    visible_to_groups: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Visibility group name must not be empty")
        object.__setattr__(self, "label", self.label or f":{self.name}")
        object.__setattr__(
            self,
            "visible_to_groups",
            frozenset(group_name_from_reference(ref) for ref in _frozen(self.visible_to_groups)),
        )

    def is_visible_to(self, group_name: Optional[str]) -> bool:
        return group_name is not None and group_name in self.visible_to_groups

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "package_group": self.package_group,
            "visibility_allow_list": self.allow_list,
            "visible_to_groups": sorted(self.visible_to_groups),
        }

    def __str__(self) -> str:
        return f"VisibilityGroup [{self.label}]"


@dataclass(frozen=True)
class PackageAssignment:
    """Assignment of one workspace package to a group."""
    package_path: str
    group_name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "package_path", normalize_package_path(self.package_path))
        if not self.group_name:
            raise ValueError(f"Missing group for package '//{self.package_path}'")
        object.__setattr__(self, "group_name", group_name_from_reference(self.group_name))

    def to_dict(self) -> Dict[str, Any]:
        return {"package_name": self.package_path, "group": self.group_name}


@dataclass(frozen=True)
class PatternRule:
    """Include/exclude glob patterns claiming external artifacts for a group."""
    owner_group: str
    include_patterns: FrozenSet[str] = field(default_factory=frozenset)
    exclude_patterns: FrozenSet[str] = field(default_factory=frozenset)
    defining_label: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.owner_group:
            raise ValueError("Pattern rule must name an owner group")
        object.__setattr__(self, "owner_group", group_name_from_reference(self.owner_group))
        object.__setattr__(self, "include_patterns", _frozen(self.include_patterns))
        object.__setattr__(self, "exclude_patterns", _frozen(self.exclude_patterns))

    @property
    def source(self) -> str:
        """Human readable origin of the rule for error messages."""
        return self.defining_label or f"rule of group '{self.owner_group}'"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.defining_label,
            "group": self.owner_group,
            "include_patterns": sorted(self.include_patterns),
            "exclude_patterns": sorted(self.exclude_patterns),
        }

    def __str__(self) -> str:
        if not self.exclude_patterns:
            return f"PatternRule [{self.source} ({self.owner_group})]"
        return f"PatternRule [{self.source} ({self.owner_group})] {sorted(self.exclude_patterns)}"
