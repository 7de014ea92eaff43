"""Boundary data sources

A source answers one question: give me the districts of this region for this
dataset variant. Sources raise ``MissingVariantError`` when the upstream
provider simply has no such file; every other exception is an I/O failure.
"""

import logging
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import pandas as pd
import geopandas as gpd
import requests

from ..models.geography import Region, DISTRICT_COLUMNS, UNIFIED, ELEMENTARY


logger = logging.getLogger(__name__)


class MissingVariantError(LookupError):
    """The source does not provide this (region, variant) combination"""

    def __init__(self, region_code: str, variant: str):
        super().__init__(f"No {variant} districts available for {region_code}")
        self.region_code = region_code
        self.variant = variant


def normalize_boundaries(gdf: gpd.GeoDataFrame, region: Region, variant: str) -> gpd.GeoDataFrame:
    """Rename provider columns to the district schema and tag region/variant"""
    df = gdf.rename(columns={'GEOID': 'district_id', 'NAME': 'name'})

    missing = [c for c in ('district_id', 'name') if c not in df.columns]
    if missing:
        raise ValueError(f"Boundary data for {region.code}/{variant} lacks columns: {missing}")

    df['district_id'] = df['district_id'].astype(str)
    df['region_code'] = region.code
    df['variant'] = variant

    return gpd.GeoDataFrame(df[DISTRICT_COLUMNS], geometry='geometry', crs=gdf.crs)


def read_boundary_file(path: Union[str, Path]) -> gpd.GeoDataFrame:
    """
    Read a vector file, reporting unreadable files as ``OSError``

    pyogrio raises ``RuntimeError`` subclasses (``DataSourceError``) and fiona
    raises ``ValueError`` subclasses for files they cannot open.
    """
    try:
        return gpd.read_file(path)
    except (RuntimeError, ValueError) as e:
        raise OSError(f"Cannot read boundary file {path}: {str(e)}") from e


class BoundarySource(ABC):
    """Abstract provider of district boundaries"""

    @abstractmethod
    def fetch(self, region: Region, variant: str, year: int) -> gpd.GeoDataFrame:
        """Return the districts for one (region, variant, vintage)"""
        pass


class TigerBoundarySource(BoundarySource):
    """Census TIGER/Line school district shapefiles"""

    BASE_URL = "https://www2.census.gov/geo/tiger"
    LAYERS = {UNIFIED: 'unsd', ELEMENTARY: 'elsd'}

    def __init__(self, download_dir: Union[str, Path], timeout: int = 120,
                 session: Optional[requests.Session] = None):
        """
        Initialize TIGER source

        Args:
            download_dir: Where zip files are kept between runs
            timeout: HTTP timeout in seconds
            session: Optional requests session
        """
        self.download_dir = Path(download_dir)
        self.timeout = timeout
        self.session = session or requests.Session()

    def url_for(self, region: Region, variant: str, year: int) -> str:
        layer = self.LAYERS[variant]
        return f"{self.BASE_URL}/TIGER{year}/{layer.upper()}/tl_{year}_{region.fips}_{layer}.zip"

    def fetch(self, region: Region, variant: str, year: int) -> gpd.GeoDataFrame:
        if region.fips is None:
            raise ValueError(f"Region {region.code} has no FIPS code")

        zip_path = self._download(region, variant, year)
        try:
            gdf = read_boundary_file(zip_path)
        except OSError:
            # Drop the unusable archive so the next run downloads it again
            zip_path.unlink(missing_ok=True)
            raise

        return normalize_boundaries(gdf, region, variant)

    def _download(self, region: Region, variant: str, year: int) -> Path:
        """Download the zip for one pair unless a valid copy is on disk"""
        url = self.url_for(region, variant, year)
        zip_path = self.download_dir / str(year) / Path(url).name

        if zip_path.exists() and zipfile.is_zipfile(zip_path):
            logger.debug(f"Using existing {zip_path}")
            return zip_path

        logger.info(f"Downloading {url}")
        response = self.session.get(url, timeout=self.timeout)

        if response.status_code == 404:
            raise MissingVariantError(region.code, variant)
        response.raise_for_status()

        zip_path.parent.mkdir(parents=True, exist_ok=True)
        with open(zip_path, 'wb') as f:
            f.write(response.content)

        if not zipfile.is_zipfile(zip_path):
            zip_path.unlink()
            raise OSError(f"Downloaded file from {url} is not a valid zip file")

        return zip_path


class FrameBoundarySource(BoundarySource):
    """Serves boundaries from frames already in memory"""

    def __init__(self, frames: Dict[Tuple[str, str], gpd.GeoDataFrame]):
        """
        Args:
            frames: Mapping of (region_code, variant) to district frames
        """
        self.frames = frames

    def fetch(self, region: Region, variant: str, year: int) -> gpd.GeoDataFrame:
        key = (region.code, variant)
        if key not in self.frames:
            raise MissingVariantError(region.code, variant)

        gdf = self.frames[key].copy()
        gdf['region_code'] = region.code
        gdf['variant'] = variant
        return gdf


class FileBoundarySource(BoundarySource):
    """Reads one local file holding districts for many regions and variants"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._data: Optional[gpd.GeoDataFrame] = None

    @property
    def data(self) -> gpd.GeoDataFrame:
        if self._data is None:
            self._data = read_boundary_file(self.path)
            self._data['district_id'] = self._data['district_id'].astype(str)
        return self._data

    def fetch(self, region: Region, variant: str, year: int) -> gpd.GeoDataFrame:
        data = self.data
        if 'variant' not in data.columns:
            data = data.assign(variant=UNIFIED)

        subset = data[(data['region_code'] == region.code) & (data['variant'] == variant)]
        if len(subset) == 0:
            raise MissingVariantError(region.code, variant)

        return gpd.GeoDataFrame(
            pd.DataFrame(subset[DISTRICT_COLUMNS]).reset_index(drop=True),
            geometry='geometry',
            crs=data.crs
        )
