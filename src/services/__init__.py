"""Services package - slope analysis orchestration."""

from services.analysis_context import AnalysisContext, AnalysisResult
from services.slope_analysis import SlopeAnalysisService

__all__ = [
    'AnalysisContext',
    'AnalysisResult',
    'SlopeAnalysisService',
]
