"""Read-only analytics over positions and the snapshot series."""

from .coverage_calculator import CoverageCalculator
from .performance_analyzer import PerformanceAnalyzer, resolve_period
from .sensitivity_analyzer import SensitivityAnalyzer

__all__ = [
    "CoverageCalculator",
    "PerformanceAnalyzer",
    "SensitivityAnalyzer",
    "resolve_period",
]
