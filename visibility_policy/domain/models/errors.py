"""
Policy Errors

Exception taxonomy for the visibility policy engine.

    DefinitionError     : the policy definition itself is broken (fatal, raised
                          while building the model, before any analysis)
    AmbiguousMatchError : more than one group claims an external artifact
    GroupNotFoundError  : lookup of a group that is not defined

Lookup absence (a package or artifact without a group) is a normal outcome
and is returned as ``None``, never raised. Caller contract violations
(empty identifiers and the like) raise a plain ``ValueError``.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple


class VisibilityPolicyError(Exception):
    """Base class for all visibility policy errors."""


# ---------------------------------------------------------------------------
# Definition errors
# ---------------------------------------------------------------------------

class DefinitionError(VisibilityPolicyError, ValueError):
    """The policy definition is invalid and the model must not be used."""


class UndefinedGroupReference(DefinitionError):
    """A group lists a group in ``visible_to_groups`` that is not defined."""

    def __init__(self, group: str, missing: str) -> None:
        self.group = group
        self.missing = missing
        super().__init__(
            f"Invalid reference in visible_to_groups attribute of group '{group}': "
            f"group '{missing}' is not defined!"
        )


class DuplicateGroupError(DefinitionError):
    """Two group definitions share the same name."""

    def __init__(self, name: str, first_label: str, second_label: str) -> None:
        self.name = name
        self.labels = (first_label, second_label)
        super().__init__(
            f"There are duplicate visibility group definitions sharing the same name '{name}'. "
            f"Please change or delete one of the following:\n"
            f" - {first_label}\n - {second_label}"
        )


class DuplicateAssignmentError(DefinitionError):
    """A package is assigned to two different groups."""

    def __init__(self, package_path: str, first_group: str, second_group: str) -> None:
        self.package_path = package_path
        self.groups = (first_group, second_group)
        super().__init__(
            f"Package '//{package_path}' is assigned to more than one group: "
            f"'{first_group}' and '{second_group}'"
        )


class InvalidPatternError(DefinitionError):
    """A pattern rule contains a pattern that is malformed or wrongly scoped."""

    def __init__(self, owner_group: str, pattern: str, reason: str,
                 defining_label: Optional[str] = None) -> None:
        self.owner_group = owner_group
        self.pattern = pattern
        self.defining_label = defining_label
        source = f" ({defining_label})" if defining_label else ""
        super().__init__(
            f"Invalid pattern '{pattern}' in rule for group '{owner_group}'{source}: {reason}"
        )


class InvalidFactError(DefinitionError):
    """A raw fact record could not be turned into a typed policy record."""


# ---------------------------------------------------------------------------
# Classification errors
# ---------------------------------------------------------------------------

class AmbiguousMatchError(VisibilityPolicyError):
    """More than one group's include/exclude combination claims an artifact."""

    def __init__(self, artifact: str, groups: Iterable[str],
                 labels: Iterable[str] = ()) -> None:
        self.artifact = artifact
        self.groups: Tuple[str, ...] = tuple(sorted(set(groups)))
        self.labels: Tuple[str, ...] = tuple(sorted(set(labels)))
        detail = ", ".join(self.groups)
        if self.labels:
            detail += f" (defined by {', '.join(self.labels)})"
        super().__init__(
            f"There is more than one group matching external repository '{artifact}': {detail}"
        )


# ---------------------------------------------------------------------------
# Lookup and run errors
# ---------------------------------------------------------------------------

class GroupNotFoundError(VisibilityPolicyError, LookupError):
    """A group name does not resolve to a defined group."""

    def __init__(self, name: str, message: Optional[str] = None) -> None:
        self.name = name
        super().__init__(message or f"Visibility group '{name}' is not defined!")


class NoPackagesToAnalyzeError(VisibilityPolicyError):
    """The package selection of an analysis run is empty."""


class AnalysisCancelledError(VisibilityPolicyError):
    """The caller aborted an analysis run between two packages."""
