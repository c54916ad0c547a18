"""
Services Layer

Business logic services that orchestrate the analysis stages, provider
clients and document storage.
"""

from .analysis import SEOAnalysisPipeline, TargetKeywordGenerator
from .runner import AnalysisRunner

__all__ = ["SEOAnalysisPipeline", "TargetKeywordGenerator", "AnalysisRunner"]
