"""
Visibility Policy Engine

Audits and enforces a visibility policy over a monorepo build graph.
Packages and external artifacts are classified into named groups, each
group declares which groups may depend on it, and reverse-dependency edges
that break the policy are reported together with recommended fixes.

Usage:
    from visibility_policy import VisibilityAnalysisService, load_facts

    service = VisibilityAnalysisService(load_facts("facts.yaml"))
    result = service.analyze_packages(reverse_deps_of=query_rdeps)
    for recommendation in service.recommend(result):
        print(recommendation.target_package, recommendation.entries)
"""

from .adapters import PolicyFacts, load_facts
from .application.services import VisibilityAnalysisService
from .config import Settings, configure_logging
from .domain.models import (
    VisibilityGroup,
    PackageAssignment,
    PatternRule,
    Violation,
    Recommendation,
    AnalysisResult,
    ClassificationReport,
    AllowListPlan,
    VisibilityPolicyError,
    DefinitionError,
    UndefinedGroupReference,
    DuplicateGroupError,
    DuplicateAssignmentError,
    InvalidPatternError,
    AmbiguousMatchError,
    GroupNotFoundError,
)
from .domain.services import (
    GroupGraph,
    PackageIndex,
    PatternClassifier,
    ViolationAnalyzer,
    RecommendationEngine,
)

__version__ = "1.0.0"

__all__ = [
    # Facts
    "PolicyFacts", "load_facts",
    # Service
    "VisibilityAnalysisService", "Settings", "configure_logging",
    # Records
    "VisibilityGroup", "PackageAssignment", "PatternRule",
    "Violation", "Recommendation", "AnalysisResult", "ClassificationReport", "AllowListPlan",
    # Errors
    "VisibilityPolicyError", "DefinitionError", "UndefinedGroupReference",
    "DuplicateGroupError", "DuplicateAssignmentError", "InvalidPatternError",
    "AmbiguousMatchError", "GroupNotFoundError",
    # Components
    "GroupGraph", "PackageIndex", "PatternClassifier", "ViolationAnalyzer", "RecommendationEngine",
]
