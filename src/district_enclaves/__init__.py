"""School district boundary analysis: compactness, parcels and enclaves"""

from .models import Region, DistrictRecord, PolygonPart, ComplianceMetric
from .data import DistrictLoader, TigerBoundarySource, FrameBoundarySource, MissingVariantError
from .algorithms import PreviewSimplifier, PolygonDecomposer, MetricsEngine, EnclaveDetector
from .reporting import Reporter
from .pipeline import DistrictPipeline
from .utils.config import PipelineConfig

__version__ = "0.1.0"

__all__ = [
    'Region',
    'DistrictRecord',
    'PolygonPart',
    'ComplianceMetric',
    'DistrictLoader',
    'TigerBoundarySource',
    'FrameBoundarySource',
    'MissingVariantError',
    'PreviewSimplifier',
    'PolygonDecomposer',
    'MetricsEngine',
    'EnclaveDetector',
    'Reporter',
    'DistrictPipeline',
    'PipelineConfig'
]
