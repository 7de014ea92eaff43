"""Data validation functions"""

import logging
from typing import List, Tuple

import pandas as pd
import geopandas as gpd

from .geography import DISTRICT_COLUMNS


logger = logging.getLogger(__name__)


class GeometryValidator:
    """Centralized validation of district boundary frames"""

    REQUIRED_COLUMNS = [c for c in DISTRICT_COLUMNS if c != 'variant']

    @classmethod
    def validate_district_frame(cls, district_gdf: gpd.GeoDataFrame) -> Tuple[bool, List[str]]:
        """Validate district boundary data"""
        errors = []

        missing_cols = [col for col in cls.REQUIRED_COLUMNS if col not in district_gdf.columns]
        if missing_cols:
            errors.append(f"Missing columns: {missing_cols}")

        if 'district_id' in district_gdf.columns:
            duplicates = district_gdf[district_gdf['district_id'].duplicated()]
            if len(duplicates) > 0:
                errors.append(f"Duplicate district IDs: {duplicates['district_id'].tolist()}")

        if 'geometry' in district_gdf.columns:
            flagged = cls.flag_geometries(district_gdf)
            bad = flagged[~flagged['geometry_ok']]
            if len(bad) > 0:
                errors.append(f"Unusable geometries for districts: {bad['district_id'].tolist()}")

        available_cols = [col for col in cls.REQUIRED_COLUMNS if col in district_gdf.columns]
        if available_cols:
            null_counts = district_gdf[available_cols].isnull().sum()
            null_cols = null_counts[null_counts > 0]
            if len(null_cols) > 0:
                errors.append(f"Null values found: {null_cols.to_dict()}")

        return len(errors) == 0, errors

    @classmethod
    def flag_geometries(cls, district_gdf: gpd.GeoDataFrame) -> pd.DataFrame:
        """
        Flag rows whose geometry cannot be measured

        Returns DataFrame with district_id, geometry_ok and rejection_reason
        """
        geom = district_gdf.geometry
        missing = geom.isna()
        empty = ~missing & geom.is_empty
        invalid = ~missing & ~empty & ~geom.is_valid
        degenerate = ~missing & ~empty & ~invalid & (geom.area <= 0)

        flags = pd.DataFrame({
            'district_id': district_gdf['district_id'] if 'district_id' in district_gdf.columns
            else district_gdf.index.astype(str),
            'geometry_ok': ~(missing | empty | invalid | degenerate)
        }, index=district_gdf.index)

        flags['rejection_reason'] = ''
        flags.loc[degenerate, 'rejection_reason'] = 'Zero-area geometry'
        flags.loc[invalid, 'rejection_reason'] = 'Invalid geometry'
        flags.loc[empty, 'rejection_reason'] = 'Empty geometry'
        flags.loc[missing, 'rejection_reason'] = 'Missing geometry'

        return flags

    @classmethod
    def measurable(cls, district_gdf: gpd.GeoDataFrame, metric: str) -> gpd.GeoDataFrame:
        """
        Return only rows with measurable geometry

        Excluded rows are logged as warnings against the named metric.
        """
        flags = cls.flag_geometries(district_gdf)
        bad = flags[~flags['geometry_ok']]

        for _, row in bad.iterrows():
            logger.warning(
                f"Excluding district {row['district_id']} from {metric}: {row['rejection_reason']}"
            )

        return district_gdf[flags['geometry_ok']].copy()
