"""Split multi-part districts into single polygons"""

import logging

import pandas as pd
import geopandas as gpd

from ..models.geography import PART_COLUMNS, JOIN_KEYS


logger = logging.getLogger(__name__)


class PolygonDecomposer:
    """
    Explode district geometries into one row per polygon

    Each part gets a 1-based ``part_index`` scoped to (name, region_code),
    numbered in input order.
    """

    def decompose(self, districts: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        """
        Decompose districts into PolygonParts

        Args:
            districts: District frame with name, region_code and geometry

        Returns:
            GeoDataFrame with district_id, name, region_code, part_index, geometry
        """
        if len(districts) == 0:
            return gpd.GeoDataFrame(columns=PART_COLUMNS, geometry='geometry', crs=districts.crs)

        has_geometry = districts.geometry.apply(
            lambda g: g is not None and not g.is_empty
        ).astype(bool)
        usable = districts[has_geometry]
        dropped = len(districts) - len(usable)
        if dropped:
            logger.warning(f"{dropped} districts have no geometry and yield no parts")

        cols = [c for c in PART_COLUMNS if c != 'part_index']
        parts = usable[cols].explode(index_parts=False)

        # Collections can carry lines or points alongside polygons
        parts = parts[parts.geometry.geom_type == 'Polygon']
        parts = parts[~parts.geometry.is_empty].reset_index(drop=True)

        parts['part_index'] = parts.groupby(JOIN_KEYS, sort=False).cumcount() + 1

        return gpd.GeoDataFrame(parts[PART_COLUMNS], geometry='geometry', crs=districts.crs)

    @staticmethod
    def count_parts(parts: gpd.GeoDataFrame) -> pd.DataFrame:
        """Number of polygon parts (parcels) per district"""
        counts = (
            parts.groupby(['district_id'] + JOIN_KEYS, sort=False)
            .size()
            .reset_index(name='parcel_count')
        )
        return counts
