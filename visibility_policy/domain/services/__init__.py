"""
Domain Services Package

Pure policy evaluation services. These services contain the core logic
without any I/O; they are built once from typed facts and are read-only
afterwards.
"""

from .group_graph import GroupGraph
from .package_index import PackageIndex
from .pattern_classifier import PatternClassifier, compile_glob, normalize_artifact_name
from .violation_analyzer import ViolationAnalyzer, ReverseDepsResolver
from .recommendation_engine import RecommendationEngine, recommend, DEFAULT_THRESHOLD
from .visibility_matrix import default_visibility, external_visibility, PRIVATE_VISIBILITY
from .allowlist_planner import plan_allow_lists, default_allow_list

__all__ = [
    # Graph and index
    "GroupGraph",
    "PackageIndex",
    # Classification
    "PatternClassifier",
    "compile_glob",
    "normalize_artifact_name",
    # Violations
    "ViolationAnalyzer",
    "ReverseDepsResolver",
    # Recommendations
    "RecommendationEngine",
    "recommend",
    "DEFAULT_THRESHOLD",
    # Visibility
    "default_visibility",
    "external_visibility",
    "PRIVATE_VISIBILITY",
    # Allow lists
    "plan_allow_lists",
    "default_allow_list",
]
