"""Data models for district enclave analysis"""

from .geography import (
    Region,
    DistrictRecord,
    PolygonPart,
    ComplianceMetric,
    create_district_gdf,
    create_region_frame,
    UNIFIED,
    ELEMENTARY,
    VARIANTS,
    JOIN_KEYS
)
from .validators import GeometryValidator

__all__ = [
    'Region',
    'DistrictRecord',
    'PolygonPart',
    'ComplianceMetric',
    'create_district_gdf',
    'create_region_frame',
    'UNIFIED',
    'ELEMENTARY',
    'VARIANTS',
    'JOIN_KEYS',
    'GeometryValidator'
]
