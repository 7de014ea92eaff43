"""Core geometry algorithms"""

from .simplifier import PreviewSimplifier
from .decomposer import PolygonDecomposer
from .compactness import CompactnessCalculator, ensure_projected
from .enclaves import EnclaveDetector, MatchPolicy, fill_holes
from .metrics import MetricsEngine, MetricsResult, AreaAggregator

__all__ = [
    'PreviewSimplifier',
    'PolygonDecomposer',
    'CompactnessCalculator',
    'ensure_projected',
    'EnclaveDetector',
    'MatchPolicy',
    'fill_holes',
    'MetricsEngine',
    'MetricsResult',
    'AreaAggregator'
]
