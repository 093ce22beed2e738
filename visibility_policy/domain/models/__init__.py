"""
Domain Models Package

Pure policy records and results with no infrastructure dependencies.
Re-exports all domain models for convenient imports.
"""

# Policy records
from .policy import VisibilityGroup, PackageAssignment, PatternRule
from .labels import (
    PackageExpression, normalize_package_path, to_label, is_nested,
    group_name_from_reference, simplify_label, ensure_target_name,
)

# Results
from .results import (
    NO_GROUP, Violation, Recommendation, PackageOutcome, AnalysisResult,
    ClassificationReport, AllowListPlan, group_sort_key,
)

# Errors
from .errors import (
    VisibilityPolicyError, DefinitionError, UndefinedGroupReference,
    DuplicateGroupError, DuplicateAssignmentError, InvalidPatternError,
    InvalidFactError, AmbiguousMatchError, GroupNotFoundError,
    NoPackagesToAnalyzeError, AnalysisCancelledError,
)

__all__ = [
    # Policy records
    "VisibilityGroup", "PackageAssignment", "PatternRule",
    # Labels
    "PackageExpression", "normalize_package_path", "to_label", "is_nested",
    "group_name_from_reference", "simplify_label", "ensure_target_name",
    # Results
    "NO_GROUP", "Violation", "Recommendation", "PackageOutcome", "AnalysisResult",
    "ClassificationReport", "AllowListPlan", "group_sort_key",
    # Errors
    "VisibilityPolicyError", "DefinitionError", "UndefinedGroupReference",
    "DuplicateGroupError", "DuplicateAssignmentError", "InvalidPatternError",
    "InvalidFactError", "AmbiguousMatchError", "GroupNotFoundError",
    "NoPackagesToAnalyzeError", "AnalysisCancelledError",
]
