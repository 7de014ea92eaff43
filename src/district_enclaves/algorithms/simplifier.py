"""Preview geometry simplification"""

import logging
from typing import Optional

import geopandas as gpd


logger = logging.getLogger(__name__)

# Rough metres per degree, used to scale tolerances for lon/lat data
METRES_PER_DEGREE = 111_320.0


class PreviewSimplifier:
    """
    Produce lower-fidelity copies of district geometries for plotting

    The simplified frame is for rendering only. Area, compactness and
    containment must be computed on the original geometries because
    simplification moves boundaries.
    """

    def __init__(self,
                 max_memory_mb: float = 5.0,
                 initial_tolerance: float = 50.0,
                 max_iterations: int = 12):
        """
        Initialize simplifier

        Args:
            max_memory_mb: Budget for all preview geometries, as WKB bytes
            initial_tolerance: First tolerance to try, in metres
            max_iterations: Number of tolerance doublings before giving up
        """
        if max_memory_mb <= 0:
            raise ValueError("max_memory_mb must be positive")

        self.max_bytes = int(max_memory_mb * 1024 * 1024)
        self.initial_tolerance = initial_tolerance
        self.max_iterations = max_iterations
        self.tolerance_used: Optional[float] = None

    @staticmethod
    def geometry_bytes(geometry: gpd.GeoSeries) -> int:
        """Total WKB size of a GeoSeries"""
        return int(sum(len(wkb) for wkb in geometry.to_wkb() if wkb is not None))

    def simplify(self, districts: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        """
        Return a copy of ``districts`` whose geometries fit the memory budget

        Tolerance doubles each round until the budget is met. When the cap on
        rounds is reached the coarsest attempt is returned with a warning.
        """
        preview = districts.copy()
        original_bytes = self.geometry_bytes(districts.geometry)

        if original_bytes <= self.max_bytes:
            self.tolerance_used = 0.0
            return preview

        tolerance = self.initial_tolerance
        if districts.crs is not None and districts.crs.is_geographic:
            tolerance = tolerance / METRES_PER_DEGREE

        for _ in range(self.max_iterations):
            simplified = districts.geometry.simplify(tolerance, preserve_topology=True)
            size = self.geometry_bytes(simplified)
            preview = preview.set_geometry(simplified)
            self.tolerance_used = tolerance

            if size <= self.max_bytes:
                logger.info(
                    f"Simplified previews from {original_bytes / 1e6:.1f} MB "
                    f"to {size / 1e6:.1f} MB (tolerance {tolerance:g})"
                )
                return preview

            tolerance *= 2

        logger.warning(
            f"Preview geometries still exceed {self.max_bytes / 1e6:.1f} MB "
            f"after {self.max_iterations} rounds (tolerance {self.tolerance_used:g})"
        )
        return preview
