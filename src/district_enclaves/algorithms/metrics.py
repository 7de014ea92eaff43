"""Per-district metrics: compactness, parcels, enclaves and areas"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

import pandas as pd
import geopandas as gpd

from ..models.geography import ComplianceMetric
from ..models.validators import GeometryValidator
from .compactness import CompactnessCalculator, ensure_projected
from .decomposer import PolygonDecomposer
from .enclaves import EnclaveDetector, MatchPolicy, fill_holes


logger = logging.getLogger(__name__)


@dataclass
class MetricsResult:
    """Everything the metrics engine computes for one run"""
    compactness: pd.DataFrame
    parcels: pd.DataFrame
    enclaves: gpd.GeoDataFrame
    areas: pd.DataFrame
    parts: gpd.GeoDataFrame

    def to_records(self) -> List[ComplianceMetric]:
        """Districts with every metric available, as ComplianceMetric records"""
        merged = (
            self.areas
            .merge(self.compactness[['district_id', 'compactness']], on='district_id', how='inner')
            .merge(self.parcels[['district_id', 'parcel_count']], on='district_id', how='inner')
        )

        return [
            ComplianceMetric(
                district_id=row.district_id,
                name=row.name,
                region_code=row.region_code,
                area=float(row.area),
                outer_area=float(row.outer_area),
                compactness=float(row.compactness),
                parcel_count=int(row.parcel_count),
                enclave_count=int(row.enclave_count),
                enclave_area=float(row.enclave_area)
            )
            for row in merged.itertuples(index=False)
        ]


class AreaAggregator:
    """Total area and enclave area per district"""

    @staticmethod
    def aggregate(districts: gpd.GeoDataFrame, relations: gpd.GeoDataFrame) -> pd.DataFrame:
        """
        Aggregate areas

        ``enclave_count`` and ``enclave_area`` count the parts enclosed by a
        district; ``enclave_ratio`` divides that by ``outer_area``, the area
        inside the district's outer boundary (holes filled).

        Returns:
            DataFrame with district_id, name, region_code, area, outer_area,
            enclave_count, enclave_area, enclave_ratio
        """
        valid = GeometryValidator.measurable(districts, 'area aggregation')

        areas = pd.DataFrame({
            'district_id': valid['district_id'],
            'name': valid['name'],
            'region_code': valid['region_code'],
            'area': valid.geometry.area,
            'outer_area': gpd.GeoSeries(valid.geometry.apply(fill_holes), crs=valid.crs).area
        }).reset_index(drop=True)

        summary = EnclaveDetector.summarize(relations)
        areas = areas.merge(summary, on='district_id', how='left')

        areas['enclave_count'] = areas['enclave_count'].fillna(0).astype(int)
        areas['enclave_area'] = areas['enclave_area'].fillna(0.0).astype(float)
        areas['enclave_ratio'] = areas['enclave_area'] / areas['outer_area']

        return areas


class MetricsEngine:
    """
    Compute all district metrics on original (unsimplified) geometries

    Lon/lat input is projected to ``area_crs`` once, so every area in the
    result is in that CRS's squared units.
    """

    def __init__(self,
                 area_crs: str = "EPSG:5070",
                 match_policy: Union[MatchPolicy, str] = MatchPolicy.FIRST):
        self.area_crs = area_crs
        self.decomposer = PolygonDecomposer()
        self.compactness = CompactnessCalculator(area_crs)
        self.detector = EnclaveDetector(match_policy)

    def compute(self,
                districts: gpd.GeoDataFrame,
                parts: Optional[gpd.GeoDataFrame] = None) -> MetricsResult:
        """
        Compute metrics

        Args:
            districts: Loader output
            parts: Decomposer output; computed here when not supplied

        Returns:
            MetricsResult
        """
        projected = ensure_projected(districts, self.area_crs)

        if parts is None:
            parts = self.decomposer.decompose(projected)
        else:
            parts = ensure_projected(parts, self.area_crs)
            if parts.crs != projected.crs and parts.crs is not None and projected.crs is not None:
                parts = parts.to_crs(projected.crs)

        compactness = self.compactness.calculate(projected)
        parcels = self.decomposer.count_parts(parts)
        relations = self.detector.detect(parts, projected)
        areas = AreaAggregator.aggregate(projected, relations)

        logger.info(
            f"Computed metrics for {len(areas)} districts: "
            f"{len(parts)} parts, {len(relations)} enclave relations"
        )

        return MetricsResult(
            compactness=compactness,
            parcels=parcels,
            enclaves=relations,
            areas=areas,
            parts=parts
        )
