"""Enclave detection"""

import logging
from enum import Enum
from typing import Union

import pandas as pd
import geopandas as gpd
from shapely.geometry import Polygon, MultiPolygon
from shapely.ops import unary_union

from ..models.geography import JOIN_KEYS
from ..models.validators import GeometryValidator


logger = logging.getLogger(__name__)

RELATION_COLUMNS = [
    'district_id', 'name', 'region_code', 'part_index', 'part_area',
    'enclosing_id', 'enclosing_name', 'enclosing_region_code', 'geometry'
]


class MatchPolicy(str, Enum):
    """Which enclosing district to keep when a part sits inside several"""
    FIRST = "first"         # First candidate in district order
    TIGHTEST = "tightest"   # Smallest hole-filled enclosing area


def fill_holes(geometry):
    """Drop interior rings so containment ignores holes"""
    if isinstance(geometry, Polygon):
        return Polygon(geometry.exterior)
    if isinstance(geometry, MultiPolygon):
        return unary_union([Polygon(p.exterior) for p in geometry.geoms])
    return geometry


class EnclaveDetector:
    """
    Find district parts that lie inside another district's outer boundary

    Each PolygonPart is tested with a ``within`` spatial join against the
    hole-filled geometry of every district. Matches against the part's own
    district are discarded, and each (name, region_code, part_index) keeps a
    single enclosing district chosen by the match policy.
    """

    def __init__(self, policy: Union[MatchPolicy, str] = MatchPolicy.FIRST):
        self.policy = MatchPolicy(policy)

    def detect(self, parts: gpd.GeoDataFrame, districts: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        """
        Detect enclave relations

        Args:
            parts: Output of the decomposer
            districts: District frame in the same CRS as ``parts``

        Returns:
            GeoDataFrame with one row per enclave part (RELATION_COLUMNS)
        """
        valid_parts = GeometryValidator.measurable(parts, 'enclave detection')
        valid_districts = GeometryValidator.measurable(districts, 'enclave detection')

        if len(valid_parts) == 0 or len(valid_districts) == 0:
            return gpd.GeoDataFrame(columns=RELATION_COLUMNS, geometry='geometry', crs=parts.crs)

        filled = gpd.GeoDataFrame({
            'enclosing_id': valid_districts['district_id'].values,
            'enclosing_name': valid_districts['name'].values,
            'enclosing_region_code': valid_districts['region_code'].values,
            '_candidate_order': range(len(valid_districts)),
        }, geometry=valid_districts.geometry.apply(fill_holes).values, crs=districts.crs)
        filled['_filled_area'] = filled.geometry.area

        candidates = valid_parts[['district_id', 'name', 'region_code', 'part_index', 'geometry']].copy()
        candidates['_part_order'] = range(len(candidates))

        joined = gpd.sjoin(candidates, filled, how='inner', predicate='within')

        joined = joined[joined['district_id'] != joined['enclosing_id']]

        if self.policy == MatchPolicy.TIGHTEST:
            sort_cols = ['_part_order', '_filled_area', '_candidate_order']
        else:
            sort_cols = ['_part_order', '_candidate_order']
        joined = joined.sort_values(sort_cols, kind='mergesort')

        multiple = joined.duplicated(subset=JOIN_KEYS + ['part_index'], keep=False)
        if multiple.any():
            logger.info(
                f"{joined[multiple].drop_duplicates(JOIN_KEYS + ['part_index']).shape[0]} parts "
                f"lie within several districts; keeping the {self.policy.value} match"
            )

        relations = joined.drop_duplicates(subset=JOIN_KEYS + ['part_index'], keep='first').copy()
        relations['part_area'] = relations.geometry.area

        relations = pd.DataFrame(relations[RELATION_COLUMNS]).reset_index(drop=True)
        return gpd.GeoDataFrame(relations, geometry='geometry', crs=parts.crs)

    @staticmethod
    def summarize(relations: gpd.GeoDataFrame) -> pd.DataFrame:
        """Enclave count and area per enclosing district"""
        summary = (
            relations.groupby('enclosing_id', sort=False)
            .agg(enclave_count=('part_area', 'size'), enclave_area=('part_area', 'sum'))
            .reset_index()
            .rename(columns={'enclosing_id': 'district_id'})
        )
        return summary
