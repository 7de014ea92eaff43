"""Convex-hull compactness"""

import logging

import numpy as np
import pandas as pd
import geopandas as gpd

from ..models.validators import GeometryValidator


logger = logging.getLogger(__name__)

# Ratios this close to 1 come from floating point noise on convex shapes
CONVEX_TOLERANCE = 1e-9


def ensure_projected(gdf: gpd.GeoDataFrame, area_crs: str) -> gpd.GeoDataFrame:
    """Reproject lon/lat frames to an equal-area CRS; others pass through"""
    if gdf.crs is not None and gdf.crs.is_geographic:
        return gdf.to_crs(area_crs)
    if gdf.crs is None:
        logger.debug("Frame has no CRS; treating coordinates as planar")
    return gdf


class CompactnessCalculator:
    """
    Ratio of a district's area to the area of its convex hull

    1.0 means the district is already convex; the ratio falls towards 0 as
    the boundary becomes more irregular.
    """

    def __init__(self, area_crs: str = "EPSG:5070"):
        """
        Args:
            area_crs: Equal-area CRS used when input is in lon/lat
        """
        self.area_crs = area_crs

    def calculate(self, districts: gpd.GeoDataFrame) -> pd.DataFrame:
        """
        Calculate compactness per district

        Returns:
            DataFrame with district_id, name, region_code, area, hull_area, compactness
        """
        projected = ensure_projected(districts, self.area_crs)
        valid = GeometryValidator.measurable(projected, 'compactness')

        area = valid.geometry.area
        hull_area = valid.geometry.convex_hull.area

        ratio = np.clip(area / hull_area, 0.0, 1.0)
        ratio = ratio.where((1.0 - ratio).abs() > CONVEX_TOLERANCE, 1.0)

        return pd.DataFrame({
            'district_id': valid['district_id'],
            'name': valid['name'],
            'region_code': valid['region_code'],
            'area': area,
            'hull_area': hull_area,
            'compactness': ratio
        }).reset_index(drop=True)
