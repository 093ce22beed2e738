"""
Allow-List Planner

Plans the allow lists of groups that own external artifacts: which
workspace packages currently use a group's artifacts and therefore need an
explicit exception.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Sequence

from visibility_policy.domain.models.errors import GroupNotFoundError
from visibility_policy.domain.models.labels import ensure_target_name, to_label
from visibility_policy.domain.models.results import AllowListPlan
from visibility_policy.domain.services.group_graph import GroupGraph
from visibility_policy.domain.services.pattern_classifier import PatternClassifier

logger = logging.getLogger(__name__)

# Resolves the direct reverse dependencies of a batch of external artifacts.
ArtifactReverseDepsResolver = Callable[[Sequence[str]], Iterable[str]]


def default_allow_list(visibility_package: str, group_name: str) -> str:
    return f"{visibility_package.rstrip('/')}/allowlists/{group_name}-exceptions"


def plan_allow_lists(
    group_names: Iterable[str],
    artifact_names: Iterable[str],
    classifier: PatternClassifier,
    graph: GroupGraph,
    reverse_deps_of: ArtifactReverseDepsResolver,
    visibility_package: str,
) -> List[AllowListPlan]:
    """
    One plan per requested group, sorted by group name.

    Raises:
        GroupNotFoundError: a requested group is undefined or owns none of
            the given artifacts (all such groups are listed)
        AmbiguousMatchError: an artifact is claimed by more than one group
    """
    requested = sorted(set(group_names))
    for name in requested:
        graph.get_group(name)

    report = classifier.classify_all(artifact_names)
    report.raise_for_errors()

    artifacts_by_group: Dict[str, List[str]] = {}
    for name in requested:
        artifacts = report.artifacts_of(name)
        if artifacts:
            logger.debug(f"Group '{name}' owns {len(artifacts)} external artifacts")
            artifacts_by_group[name] = list(artifacts)

    missing = [name for name in requested if name not in artifacts_by_group]
    if missing:
        raise GroupNotFoundError(
            missing[0],
            "Unable to locate external dependency information for the following groups. "
            "Please check they exist!\n - " + "\n - ".join(missing),
        )

    plans: List[AllowListPlan] = []
    for name, artifacts in artifacts_by_group.items():
        group = graph.get_group(name)

        packages = sorted({
            to_label(p.lstrip("/"))
            for p in reverse_deps_of(artifacts) or ()
            if not p.startswith("@")
        })

        allow_list = group.allow_list
        defined = allow_list is not None
        if not defined:
            allow_list = default_allow_list(visibility_package, name)
            logger.warning(
                f"Group '{name}' is missing an allow list. Don't forget to add it using:\n\n"
                f"  > buildozer 'set visibility_allow_list \"{allow_list}\"' {group.label}"
            )

        plans.append(AllowListPlan(
            group_name=name,
            allow_list=ensure_target_name(allow_list),
            artifacts=tuple(artifacts),
            packages=tuple(packages),
            allow_list_defined=defined,
        ))
    return plans
