from .analysis_service import VisibilityAnalysisService

__all__ = [
    "VisibilityAnalysisService",
]
