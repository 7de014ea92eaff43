"""Geographic data models"""

from dataclasses import dataclass
from typing import List, Optional, Union
import pandas as pd
import geopandas as gpd
from shapely.geometry import Polygon, MultiPolygon


UNIFIED = "unified"
ELEMENTARY = "elementary"
VARIANTS = (UNIFIED, ELEMENTARY)

DISTRICT_COLUMNS = ['district_id', 'name', 'region_code', 'variant', 'geometry']
PART_COLUMNS = ['district_id', 'name', 'region_code', 'part_index', 'geometry']
JOIN_KEYS = ['name', 'region_code']


@dataclass(frozen=True)
class Region:
    """Administrative region (a state) that owns school districts"""
    code: str
    name: str
    fips: Optional[str] = None


@dataclass
class DistrictRecord:
    """School district boundary record"""
    district_id: str
    name: str
    region_code: str
    geometry: Union[Polygon, MultiPolygon]
    variant: str = UNIFIED

    @property
    def part_count(self) -> int:
        if isinstance(self.geometry, MultiPolygon):
            return len(self.geometry.geoms)
        return 0 if self.geometry.is_empty else 1


@dataclass
class PolygonPart:
    """One polygon of a (possibly multi-part) district"""
    district_id: str
    name: str
    region_code: str
    part_index: int
    geometry: Polygon


@dataclass
class ComplianceMetric:
    """Per-district shape metrics"""
    district_id: str
    name: str
    region_code: str
    area: float
    compactness: float
    parcel_count: int
    enclave_count: int = 0
    enclave_area: float = 0.0
    outer_area: Optional[float] = None

    @property
    def enclave_ratio(self) -> float:
        """Share of the area inside the outer boundary taken up by enclaves"""
        total = self.outer_area if self.outer_area is not None else self.area + self.enclave_area
        if total <= 0:
            return 0.0
        return self.enclave_area / total


def create_district_gdf(districts: List[DistrictRecord],
                        crs: Optional[str] = None) -> gpd.GeoDataFrame:
    """Create GeoDataFrame from list of DistrictRecord objects"""
    data = []
    for district in districts:
        data.append({
            'district_id': district.district_id,
            'name': district.name,
            'region_code': district.region_code,
            'variant': district.variant,
            'geometry': district.geometry
        })

    return gpd.GeoDataFrame(data, columns=DISTRICT_COLUMNS, geometry='geometry', crs=crs)


def create_region_frame(regions: List[Region]) -> pd.DataFrame:
    """Create region lookup table (code -> full name)"""
    return pd.DataFrame(
        [{'region_code': r.code, 'region_name': r.name, 'fips': r.fips} for r in regions],
        columns=['region_code', 'region_name', 'fips']
    )
