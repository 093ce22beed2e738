"""
Labels and Package Paths

Helpers for the path-like identifiers that flow through the policy engine.

    package path : workspace-relative package directory, e.g. ``foo/bar``
    label        : ``//foo/bar`` or ``//foo/bar:target``
    expression   : wildcard package expression, e.g. ``//foo/...`` or ``//foo:all``

Package paths are stored without the ``//`` prefix; violating dependencies
are reported as labels.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ROOT_PREFIX = "//"
RECURSIVE_SUFFIX = "/..."
_ALL_TARGETS = ("all", "*", "all-targets")


def normalize_package_path(path: Optional[str]) -> str:
    """Strip a leading ``//`` and trailing ``/`` from a package path."""
    if path is None:
        raise ValueError("Package path must not be None")
    value = path.strip()
    if value.startswith(ROOT_PREFIX):
        value = value[len(ROOT_PREFIX):]
    value = value.rstrip("/")
    if not value:
        raise ValueError(f"Package path must not be empty: {path!r}")
    if value.startswith("@"):
        raise ValueError(f"Package path must be local to the workspace: {path!r}")
    if ":" in value:
        raise ValueError(f"Package path must not contain a target name: {path!r}")
    return value


def to_label(package_path: str) -> str:
    return ROOT_PREFIX + package_path


def is_nested(first: str, second: str) -> bool:
    """
    True when the two package paths are equal or one contains the other.

    The test is per path segment: ``foo/bar`` is nested in ``foo`` but
    ``foobar`` is not.
    """
    if first == second:
        return True
    return first.startswith(second + "/") or second.startswith(first + "/")


def group_name_from_reference(reference: str) -> str:
    """
    Reduce a group reference to the group name.

        ``:api``                          -> ``api``
        ``//tools/build/visibility:api``  -> ``api``
        ``//tools/build/visibility/api``  -> ``api``
        ``api``                           -> ``api``
    """
    value = reference.strip()
    if ":" in value:
        value = value.rsplit(":", 1)[1]
    elif value.startswith(ROOT_PREFIX) or value.startswith("@"):
        value = value.rstrip("/").rsplit("/", 1)[-1]
    if not value:
        raise ValueError(f"Group reference does not name a group: {reference!r}")
    return value


def simplify_label(label: str) -> str:
    """Drop a target name that repeats the last package segment (``//a/b:b`` -> ``//a/b``)."""
    if ":" not in label:
        return label
    package, target = label.rsplit(":", 1)
    if package.rstrip("/").rsplit("/", 1)[-1] == target:
        return package
    return label


def ensure_target_name(label: str) -> str:
    """Add an explicit ``:<last segment>`` target name when a label has none."""
    if ":" in label:
        return label
    return f"{label}:{label.rstrip('/').rsplit('/', 1)[-1]}"


@dataclass(frozen=True)
class PackageExpression:
    """
    A wildcard package expression.

    ``//...`` covers every package, ``//foo/...`` covers ``foo`` and all of its
    sub-packages, ``//foo:all`` (also ``:*`` and ``:all-targets``) covers just
    ``foo``, and a plain ``//foo`` covers exactly ``foo``.
    """

    expression: str
    package: str
    recursive: bool

    @classmethod
    def parse(cls, expression: str) -> "PackageExpression":
        if not expression or not expression.strip():
            raise ValueError("Package expression must not be empty")
        raw = expression.strip()
        if raw.startswith("-") or raw.startswith("@"):
            raise ValueError(
                f"Invalid package expression '{expression}': only local, positive expressions are supported"
            )
        value = raw[len(ROOT_PREFIX):] if raw.startswith(ROOT_PREFIX) else raw

        if ":" in value:
            value, target = value.rsplit(":", 1)
            if target not in _ALL_TARGETS and not value.endswith("..."):
                raise ValueError(
                    f"Invalid package expression '{expression}': target '{target}' does not select a package"
                )

        recursive = False
        if value == "...":
            value, recursive = "", True
        elif value.endswith(RECURSIVE_SUFFIX):
            value, recursive = value[: -len(RECURSIVE_SUFFIX)], True

        return cls(expression=raw, package=value.rstrip("/"), recursive=recursive)

    def covers(self, package_path: str) -> bool:
        if self.recursive:
            if not self.package:
                return True
            return package_path == self.package or package_path.startswith(self.package + "/")
        return package_path == self.package

    def __str__(self) -> str:
        return self.expression
