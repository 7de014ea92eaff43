"""Data loading and transformation utilities"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING

import pandas as pd
import geopandas as gpd
import requests

from ..models.geography import Region, DISTRICT_COLUMNS, VARIANTS, create_region_frame
from .sources import BoundarySource, MissingVariantError

if TYPE_CHECKING:
    from ..pipeline.cache import SnapshotCache


class DistrictLoader:
    """
    Load district boundaries for every (region, variant) pair

    Pairs the source does not provide are skipped quietly; pairs that fail
    with an I/O error are skipped with a warning. Neither stops the load.
    """

    def __init__(self,
                 source: BoundarySource,
                 regions: Sequence[Region],
                 variants: Sequence[str] = VARIANTS,
                 year: int = 2023,
                 cache: Optional['SnapshotCache'] = None):
        """
        Initialize district loader

        Args:
            source: Where boundaries come from
            regions: Regions to load
            variants: Dataset variants to load for each region
            year: Vintage year
            cache: Optional snapshot cache for fetched frames
        """
        self.source = source
        self.regions = list(regions)
        self.variants = list(variants)
        self.year = year
        self.cache = cache
        self.skipped: List[Tuple[str, str, str]] = []
        self.logger = logging.getLogger("district_loader")

    def load(self) -> gpd.GeoDataFrame:
        """
        Load, union and deduplicate all districts, adding region names

        Returns:
            GeoDataFrame with district_id, name, region_code, variant,
            geometry and region_name columns
        """
        self.skipped = []
        frames = []

        region_order = {r.code: i for i, r in enumerate(self.regions)}
        variant_order = {v: i for i, v in enumerate(self.variants)}

        for region in self.regions:
            for variant in self.variants:
                gdf = self.fetch_pair(region, variant)
                if gdf is not None and len(gdf) > 0:
                    frames.append(gdf)

        if not frames:
            self.logger.warning("No district boundaries were loaded")
            empty = gpd.GeoDataFrame(columns=DISTRICT_COLUMNS, geometry='geometry')
            return self._add_region_names(empty)

        combined = self._concat(frames)

        # Order by configuration, not by fetch completion
        combined['_region_order'] = combined['region_code'].map(region_order)
        combined['_variant_order'] = combined['variant'].map(variant_order)
        combined = combined.sort_values(
            ['_region_order', '_variant_order', 'district_id'], kind='mergesort'
        )

        before = len(combined)
        combined = combined.drop_duplicates(subset='district_id', keep='first')
        if len(combined) < before:
            self.logger.info(f"Dropped {before - len(combined)} duplicate district records")

        combined = combined.drop(columns=['_region_order', '_variant_order']).reset_index(drop=True)

        result = self._add_region_names(combined)
        self.logger.info(
            f"Loaded {len(result)} districts from {len(frames)} region/variant pairs "
            f"({len(self.skipped)} skipped)"
        )
        return result

    def fetch_pair(self, region: Region, variant: str) -> Optional[gpd.GeoDataFrame]:
        """Fetch one (region, variant) pair, or None when it is unavailable"""
        if self.cache is not None:
            cached = self.cache.get_boundaries(region.code, variant, self.year)
            if cached is not None:
                return cached

        try:
            gdf = self.source.fetch(region, variant, self.year)
        except MissingVariantError:
            self.logger.debug(f"No {variant} districts for {region.code}, skipping")
            self.skipped.append((region.code, variant, 'missing'))
            return None
        except (requests.RequestException, OSError, ValueError) as e:
            self.logger.warning(f"Failed to load {variant} districts for {region.code}: {str(e)}")
            self.skipped.append((region.code, variant, str(e)))
            return None

        if self.cache is not None:
            self.cache.set_boundaries(gdf, region.code, variant, self.year)

        return gdf

    def _concat(self, frames: List[gpd.GeoDataFrame]) -> gpd.GeoDataFrame:
        """Concatenate frames, reprojecting to the first frame's CRS"""
        crs = frames[0].crs
        aligned = []
        for gdf in frames:
            if crs is not None and gdf.crs is not None and gdf.crs != crs:
                gdf = gdf.to_crs(crs)
            aligned.append(gdf[DISTRICT_COLUMNS])

        return gpd.GeoDataFrame(pd.concat(aligned, ignore_index=True), geometry='geometry', crs=crs)

    def _add_region_names(self, districts: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        """Join the full region name onto each district"""
        regions = create_region_frame(self.regions)[['region_code', 'region_name']]
        merged = districts.merge(regions, on='region_code', how='left')
        return gpd.GeoDataFrame(merged, geometry='geometry', crs=districts.crs)


def save_results(results: Dict[str, pd.DataFrame], output_dir: Union[str, Path]) -> List[Path]:
    """Save analysis frames; GeoDataFrames as GeoJSON, others as CSV"""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for name, df in results.items():
        if isinstance(df, gpd.GeoDataFrame):
            path = output_dir / f'{name}.geojson'
            df.to_file(path, driver='GeoJSON')
        else:
            path = output_dir / f'{name}.csv'
            df.to_csv(path, index=False)
        written.append(path)

    return written
