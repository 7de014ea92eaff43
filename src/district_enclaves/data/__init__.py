"""Boundary data sources, loading and synthetic generation"""

from .sources import (
    BoundarySource,
    TigerBoundarySource,
    FrameBoundarySource,
    FileBoundarySource,
    MissingVariantError
)
from .data_loader import DistrictLoader, save_results
from .geographic_generator import GeographicDataGenerator, combine_frames

__all__ = [
    'BoundarySource',
    'TigerBoundarySource',
    'FrameBoundarySource',
    'FileBoundarySource',
    'MissingVariantError',
    'DistrictLoader',
    'save_results',
    'GeographicDataGenerator',
    'combine_frames'
]
