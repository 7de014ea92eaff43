"""Generate synthetic district geometries for testing and demos"""

import numpy as np
import pandas as pd
import geopandas as gpd
from shapely.geometry import Polygon, MultiPolygon, box
from typing import Dict, List, Optional, Tuple

from ..models.geography import DISTRICT_COLUMNS, UNIFIED, ELEMENTARY


class GeographicDataGenerator:
    """Generate synthetic school districts laid out on a grid

    Coordinates are planar metres (``EPSG:5070``). Each grid cell is one
    district; some cells get a hole that is filled either by a new standalone
    district or by a detached piece of a neighbouring district, which gives
    both kinds of enclave.
    """

    CRS = "EPSG:5070"

    def __init__(self, seed: int = 42):
        self.seed = seed
        self.rng = np.random.RandomState(seed)

    def generate_region_districts(self,
                                  region_code: str,
                                  n_cols: int = 4,
                                  n_rows: int = 4,
                                  cell_size: float = 10000.0,
                                  origin: Tuple[float, float] = (0.0, 0.0),
                                  enclave_rate: float = 0.3,
                                  variant: str = UNIFIED) -> gpd.GeoDataFrame:
        """
        Generate districts for one region

        Args:
            region_code: Region the districts belong to
            n_cols: Grid columns
            n_rows: Grid rows
            cell_size: Side length of each cell in metres
            origin: Lower-left corner of the grid
            enclave_rate: Probability that a cell hosts an enclave
            variant: Dataset variant tag
        """
        x0, y0 = origin
        cells = {}
        for row in range(n_rows):
            for col in range(n_cols):
                cells[(row, col)] = box(
                    x0 + col * cell_size, y0 + row * cell_size,
                    x0 + (col + 1) * cell_size, y0 + (row + 1) * cell_size
                )

        extra_parts: Dict[Tuple[int, int], List[Polygon]] = {key: [] for key in cells}
        standalone = []

        for (row, col), cell in list(cells.items()):
            if self.rng.uniform() >= enclave_rate:
                continue

            cx, cy = cell.centroid.x, cell.centroid.y
            half = cell_size * self.rng.uniform(0.1, 0.25)
            hole = box(cx - half, cy - half, cx + half, cy + half)
            cells[(row, col)] = Polygon(cell.exterior.coords, [hole.exterior.coords])

            neighbours = [k for k in [(row, col - 1), (row, col + 1), (row - 1, col), (row + 1, col)]
                          if k in cells]
            if neighbours and self.rng.uniform() < 0.5:
                owner = neighbours[self.rng.randint(len(neighbours))]
                extra_parts[owner].append(hole)
            else:
                standalone.append(hole)

        districts = []
        for (row, col), geometry in cells.items():
            parts = [geometry] + extra_parts[(row, col)]
            districts.append({
                'district_id': f"{region_code}{row:02d}{col:02d}",
                'name': f"{region_code} District {row * n_cols + col + 1}",
                'region_code': region_code,
                'variant': variant,
                'geometry': MultiPolygon(parts) if len(parts) > 1 else geometry
            })

        for i, hole in enumerate(standalone):
            districts.append({
                'district_id': f"{region_code}E{i + 1:03d}",
                'name': f"{region_code} Enclave District {i + 1}",
                'region_code': region_code,
                'variant': variant,
                'geometry': hole
            })

        return gpd.GeoDataFrame(districts, columns=DISTRICT_COLUMNS, geometry='geometry', crs=self.CRS)

    def generate_complete_geographic_data(self,
                                          region_codes: List[str],
                                          elementary_codes: Optional[List[str]] = None,
                                          **kwargs) -> Dict[Tuple[str, str], gpd.GeoDataFrame]:
        """
        Generate frames keyed by (region_code, variant)

        Regions listed in ``elementary_codes`` also get an elementary
        variant; every other region has unified districts only.
        """
        elementary_codes = elementary_codes or []
        frames = {}

        for i, code in enumerate(region_codes):
            origin = (i * 1_000_000.0, 0.0)
            frames[(code, UNIFIED)] = self.generate_region_districts(
                code, origin=origin, variant=UNIFIED, **kwargs
            )
            if code in elementary_codes:
                elementary = self.generate_region_districts(
                    code, n_cols=2, n_rows=1, origin=(origin[0], -500_000.0),
                    enclave_rate=0.0, variant=ELEMENTARY
                )
                elementary['district_id'] = 'EL' + elementary['district_id']
                elementary['name'] = elementary['name'].str.replace('District', 'Elementary District')
                frames[(code, ELEMENTARY)] = elementary

        return frames

    @staticmethod
    def donut_districts(region_code: str = "AA",
                        outer: float = 10000.0,
                        hole: float = 2000.0) -> gpd.GeoDataFrame:
        """One square district with a square hole and a second district filling it"""
        lo = (outer - hole) / 2
        hole_box = box(lo, lo, lo + hole, lo + hole)
        donut = Polygon(box(0, 0, outer, outer).exterior.coords, [hole_box.exterior.coords])

        return gpd.GeoDataFrame([
            {'district_id': f"{region_code}001", 'name': 'Surrounding District',
             'region_code': region_code, 'variant': UNIFIED, 'geometry': donut},
            {'district_id': f"{region_code}002", 'name': 'Enclosed District',
             'region_code': region_code, 'variant': UNIFIED, 'geometry': hole_box},
        ], columns=DISTRICT_COLUMNS, geometry='geometry', crs=GeographicDataGenerator.CRS)

    @staticmethod
    def multipart_district(region_code: str = "BB",
                           size: float = 1000.0,
                           gap: float = 500.0,
                           n_parts: int = 3,
                           origin: Tuple[float, float] = (0.0, 0.0)) -> gpd.GeoDataFrame:
        """One district made of disjoint squares laid out in a row"""
        x0, y0 = origin
        squares = [
            box(x0 + i * (size + gap), y0, x0 + i * (size + gap) + size, y0 + size)
            for i in range(n_parts)
        ]

        return gpd.GeoDataFrame([
            {'district_id': f"{region_code}001", 'name': 'Island District',
             'region_code': region_code, 'variant': UNIFIED, 'geometry': MultiPolygon(squares)},
        ], columns=DISTRICT_COLUMNS, geometry='geometry', crs=GeographicDataGenerator.CRS)


def combine_frames(frames: Dict[Tuple[str, str], gpd.GeoDataFrame]) -> gpd.GeoDataFrame:
    """Stack generated frames into one GeoDataFrame"""
    stacked = pd.concat(list(frames.values()), ignore_index=True)
    return gpd.GeoDataFrame(stacked, geometry='geometry', crs=GeographicDataGenerator.CRS)
