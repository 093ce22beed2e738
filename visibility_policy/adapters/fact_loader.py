"""
Fact Loader

Boundary between raw build-graph query results and the typed policy
records. Raw rule attributes arrive as plain mappings (for example the
attributes of ``visibility_group_definition`` targets) or as a YAML/JSON
facts document:

    groups:
      - name: api
        label: //tools/build/visibility:api
        package_group: //tools/build/visibility/groups/api
        visibility_allow_list: //tools/build/visibility/allowlists/api-exceptions
        visible_to_groups: [":impl"]
    packages:
      - {package_name: services/api, group: //tools/build/visibility:api}
    maven_deps:
      - {label: //third_party:guava_info, group: api, include_patterns: ["@com_google_guava_*"]}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import yaml

from visibility_policy.domain.models.errors import InvalidFactError
from visibility_policy.domain.models.labels import group_name_from_reference
from visibility_policy.domain.models.policy import PackageAssignment, PatternRule, VisibilityGroup


def _string_list(record: Mapping[str, Any], key: str, source: str) -> List[str]:
    value = record.get(key)
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise InvalidFactError(f"Attribute '{key}' of {source} must be a list of strings")
    return [str(v) for v in value]


def _required(record: Mapping[str, Any], key: str, source: str) -> str:
    value = record.get(key)
    if value is None or str(value).strip() == "":
        raise InvalidFactError(f"missing attribute '{key}' for {source}")
    return str(value)


def _records(data: Mapping[str, Any], section: str) -> List[Mapping[str, Any]]:
    records = data.get(section) or []
    if isinstance(records, (str, Mapping)) or not isinstance(records, Iterable):
        raise InvalidFactError(f"Section '{section}' must be a list of records, got {records!r}")
    return [_mapping(record, f"record in section '{section}'") for record in records]


def _mapping(record: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise InvalidFactError(f"Invalid {kind}: expected a mapping, got {record!r}")
    return record


def group_from_record(record: Mapping[str, Any]) -> VisibilityGroup:
    """Build a VisibilityGroup from ``visibility_group_definition`` attributes."""
    record = _mapping(record, "group record")
    label = record.get("label")
    source = label or record.get("name") or repr(dict(record))
    name = record.get("name") or (group_name_from_reference(label) if label else None)
    if not name:
        raise InvalidFactError(f"missing attribute 'name' for group {source}")
    try:
        return VisibilityGroup(
            name=str(name),
            label=str(label) if label else "",
            package_group=record.get("package_group") or None,
            allow_list=record.get("visibility_allow_list") or record.get("allow_list") or None,
            visible_to_groups=frozenset(_string_list(record, "visible_to_groups", f"group '{name}'")),
        )
    except ValueError as e:
        raise InvalidFactError(f"Invalid group {source}: {e}") from e


def assignment_from_record(record: Mapping[str, Any]) -> PackageAssignment:
    """Build a PackageAssignment from ``visibility_package_info_definition`` attributes."""
    record = _mapping(record, "package info record")
    source = record.get("label") or repr(dict(record))
    package = record.get("package_name", record.get("package_path"))
    if package is None or str(package).strip() == "":
        raise InvalidFactError(f"missing attribute 'package_name' for {source}")
    group = _required(record, "group", str(source))
    try:
        return PackageAssignment(package_path=str(package), group_name=group)
    except ValueError as e:
        raise InvalidFactError(f"Invalid package info {source}: {e}") from e


def rule_from_record(record: Mapping[str, Any]) -> PatternRule:
    """Build a PatternRule from ``visibility_maven_deps_definition`` attributes."""
    record = _mapping(record, "external dependency info record")
    label = record.get("label")
    source = label or repr(dict(record))
    group = _required(record, "group", str(source))
    try:
        return PatternRule(
            owner_group=group,
            include_patterns=frozenset(_string_list(record, "include_patterns", str(source))),
            exclude_patterns=frozenset(_string_list(record, "exclude_patterns", str(source))),
            defining_label=str(label) if label else None,
        )
    except ValueError as e:
        raise InvalidFactError(f"Invalid external dependency info {source}: {e}") from e


@dataclass
class PolicyFacts:
    """All typed facts needed for one analysis run."""
    groups: List[VisibilityGroup] = field(default_factory=list)
    assignments: List[PackageAssignment] = field(default_factory=list)
    rules: List[PatternRule] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "PolicyFacts":
        data = data or {}
        if not isinstance(data, Mapping):
            raise InvalidFactError("Facts document must be a mapping")
        return cls(
            groups=[group_from_record(r) for r in _records(data, "groups")],
            assignments=[assignment_from_record(r) for r in _records(data, "packages")],
            rules=[rule_from_record(r) for r in _records(data, "maven_deps")],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groups": [g.to_dict() for g in sorted(self.groups, key=lambda g: g.name)],
            "packages": [a.to_dict() for a in sorted(self.assignments, key=lambda a: a.package_path)],
            "maven_deps": [r.to_dict() for r in self.rules],
        }


def load_facts(path: Union[str, Path]) -> PolicyFacts:
    """Load a YAML (or JSON) facts document."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidFactError(f"Unable to parse facts document '{path}': {e}") from e
    return PolicyFacts.from_dict(data)
