"""
Visibility Matrix

Derives concrete visibility label lists from the group graph:

    default_visibility  : per group, the labels a member package should be
                          visible to (package groups of its visible-to groups
                          plus its own allow list)
    external_visibility : the visibility of an external artifact, derived
                          from the group that claims it
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from visibility_policy.domain.models.labels import simplify_label
from visibility_policy.domain.services.group_graph import GroupGraph
from visibility_policy.domain.services.pattern_classifier import PatternClassifier, normalize_artifact_name

PRIVATE_VISIBILITY = "//visibility:private"
SUBPACKAGES_SUFFIX = "//:__subpackages__"


def default_visibility(graph: GroupGraph, ignored_groups: Iterable[str] = ()) -> Dict[str, List[str]]:
    """
    Visibility labels of every group not in ``ignored_groups``.

    Visible-to groups that are ignored, or that have no package group, do not
    contribute a label.
    """
    ignored = set(ignored_groups)
    matrix: Dict[str, List[str]] = {}
    for group in graph.nodes():
        if group.name in ignored:
            continue
        labels: Set[str] = set()
        for target in graph.visible_to(group.name):
            if target.name not in ignored and target.package_group:
                labels.add(target.package_group)
        if group.allow_list:
            labels.add(group.allow_list)
        matrix[group.name] = sorted(labels)
    return matrix


def external_visibility(
    artifact_name: str,
    classifier: PatternClassifier,
    graph: GroupGraph,
    reverse_deps_of: Optional[Callable[[str], Iterable[str]]] = None,
) -> Tuple[str, ...]:
    """
    Visibility of an external artifact.

    Unclassified artifacts get no visibility entries (empty tuple). A group
    without an allow list makes its artifacts private. Otherwise the artifact
    is visible to the package groups of the group's visible-to groups, to the
    allow list, and to every direct reverse dependency inside the external
    catalog.
    """
    group_name = classifier.classify(artifact_name)
    if group_name is None:
        return ()

    group = graph.get_group(group_name)
    if not group.allow_list:
        return (PRIVATE_VISIBILITY,)

    labels: Set[str] = set()
    for target in graph.visible_to(group.name):
        if target.package_group:
            labels.add("@" + simplify_label(target.package_group))
    labels.add("@" + simplify_label(group.allow_list))

    if reverse_deps_of is not None:
        name = normalize_artifact_name(artifact_name)
        for rdep in reverse_deps_of(name) or ():
            labels.add(f"@{rdep.lstrip('@')}{SUBPACKAGES_SUFFIX}")

    return tuple(sorted(labels))
