"""
Visibility Analysis Service

Main orchestrator for visibility policy evaluation. Builds and validates
the policy model once from typed facts, then answers package audits,
artifact classification, membership and allow-list questions.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Optional, Sequence

from visibility_policy.adapters.fact_loader import PolicyFacts
from visibility_policy.config.settings import Settings, configure_logging
from visibility_policy.domain.models.errors import GroupNotFoundError, NoPackagesToAnalyzeError
from visibility_policy.domain.models.labels import PackageExpression
from visibility_policy.domain.models.results import (
    AllowListPlan,
    AnalysisResult,
    ClassificationReport,
    Recommendation,
)
from visibility_policy.domain.services.allowlist_planner import (
    ArtifactReverseDepsResolver,
    plan_allow_lists,
)
from visibility_policy.domain.services.group_graph import GroupGraph
from visibility_policy.domain.services.package_index import PackageIndex
from visibility_policy.domain.services.pattern_classifier import PatternClassifier
from visibility_policy.domain.services.recommendation_engine import RecommendationEngine
from visibility_policy.domain.services.violation_analyzer import ReverseDepsResolver, ViolationAnalyzer
from visibility_policy.domain.services.visibility_matrix import default_visibility, external_visibility


class VisibilityAnalysisService:
    """
    Service for visibility policy analysis.

    Construction validates the complete model (group graph, package index,
    pattern classifier, and that every assignment and pattern rule names a
    defined group). A partially valid model is never used.
    """

    def __init__(self, facts: PolicyFacts, settings: Optional[Settings] = None):
        self.logger = logging.getLogger(__name__)
        self.settings = settings or Settings()
        configure_logging(self.settings.log_level)

        self.graph = GroupGraph.build(facts.groups)
        self.index = PackageIndex.build(facts.assignments)
        self.classifier = PatternClassifier.build(facts.rules)
        self._validate_references(facts)

        self.recommendation_engine = RecommendationEngine(
            self.graph.get_group, threshold=self.settings.recommend_group_threshold
        )
        self.logger.info(
            f"Loaded {len(self.graph)} groups, {len(self.index)} packages "
            f"and {len(self.classifier)} external include patterns"
        )

    @classmethod
    def from_env(cls, facts: PolicyFacts) -> "VisibilityAnalysisService":
        """Create a service configured from environment variables."""
        return cls(facts, Settings.from_env())

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass

    def _validate_references(self, facts: PolicyFacts) -> None:
        for group_name in self.index.groups():
            if group_name not in self.graph:
                package = self.index.packages_of(group_name)[0]
                raise GroupNotFoundError(
                    group_name,
                    f"Invalid group '{group_name}' for package '//{package}'. "
                    f"No group information available in workspace.",
                )
        for rule in facts.rules:
            if rule.owner_group not in self.graph:
                raise GroupNotFoundError(
                    rule.owner_group,
                    f"Invalid reference in '{rule.source}': group '{rule.owner_group}' is not defined!",
                )

    # ------------------------------------------------------------------
    # Package audit
    # ------------------------------------------------------------------

    def select_packages(self, expression: str = "//...", only_groups: Iterable[str] = ()) -> List[str]:
        """Assigned packages covered by ``expression`` and belonging to ``only_groups``."""
        package_filter = PackageExpression.parse(expression)
        groups = set(only_groups)
        return [
            p for p in self.index.packages()
            if package_filter.covers(p) and (not groups or self.index.group_of(p) in groups)
        ]

    def analyze_packages(
        self,
        reverse_deps_of: ReverseDepsResolver,
        expression: str = "//...",
        ignore_packages: Iterable[str] = (),
        only_groups: Iterable[str] = (),
        cancel_event: Optional[threading.Event] = None,
    ) -> AnalysisResult:
        """
        Analyse the selected packages for visibility violations.

        Raises:
            NoPackagesToAnalyzeError: the selection is empty
            GroupNotFoundError: an ``only_groups`` entry is not defined
        """
        only = sorted(set(only_groups))
        analyzer = ViolationAnalyzer(self.graph, self.index, ignore_filters=ignore_packages, only_groups=only)

        targets = self.select_packages(expression, only)
        if not targets:
            raise NoPackagesToAnalyzeError("No packages to analyze!")

        result = analyzer.analyze(
            targets,
            reverse_deps_of,
            max_workers=self.settings.max_workers,
            cancel_event=cancel_event,
        )
        self.logger.info(
            f"Found {result.total_violations} violations in "
            f"{len(result.violations)} of {len(result.analyzed)} packages"
        )
        return result

    def recommend(self, result: AnalysisResult) -> List[Recommendation]:
        self.logger.info(
            f"Package groups are recommended when there are "
            f"{self.recommendation_engine.threshold} or more violations from the same group."
        )
        return self.recommendation_engine.recommend_all(result)

    # ------------------------------------------------------------------
    # Groups and artifacts
    # ------------------------------------------------------------------

    def classify_artifacts(self, artifact_names: Iterable[str]) -> ClassificationReport:
        return self.classifier.classify_all(artifact_names, max_workers=self.settings.max_workers)

    def external_visibility(
        self,
        artifact_name: str,
        reverse_deps_of: Optional[ReverseDepsResolver] = None,
    ) -> Sequence[str]:
        return external_visibility(artifact_name, self.classifier, self.graph, reverse_deps_of)

    def default_visibility(self, ignored_groups: Iterable[str] = ()) -> Dict[str, List[str]]:
        return default_visibility(self.graph, ignored_groups)

    def membership(self, group_names: Iterable[str]) -> Dict[str, List[str]]:
        return self.index.membership(group_names, self.graph)

    def plan_allow_lists(
        self,
        group_names: Iterable[str],
        artifact_names: Iterable[str],
        reverse_deps_of: ArtifactReverseDepsResolver,
    ) -> List[AllowListPlan]:
        return plan_allow_lists(
            group_names,
            artifact_names,
            self.classifier,
            self.graph,
            reverse_deps_of,
            self.settings.visibility_package,
        )
