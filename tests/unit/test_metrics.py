"""Unit tests for the metrics engine"""

import pytest

import pandas as pd
import geopandas as gpd
from shapely.geometry import Polygon, box

from district_enclaves.algorithms import (
    MetricsEngine, MetricsResult, AreaAggregator, EnclaveDetector, PolygonDecomposer
)
from district_enclaves.data import combine_frames
from district_enclaves.models.geography import ComplianceMetric


@pytest.fixture
def scenario_districts(donut_gdf, multipart_gdf):
    return gpd.GeoDataFrame(
        pd.concat([donut_gdf, multipart_gdf], ignore_index=True),
        geometry='geometry', crs=donut_gdf.crs
    )


class TestAreaAggregator:
    """Test AreaAggregator"""

    def test_donut_areas(self, donut_gdf):
        parts = PolygonDecomposer().decompose(donut_gdf)
        relations = EnclaveDetector().detect(parts, donut_gdf)

        areas = AreaAggregator.aggregate(donut_gdf, relations).set_index('district_id')

        assert areas.loc["AA001", 'area'] == pytest.approx(96e6)
        assert areas.loc["AA001", 'outer_area'] == pytest.approx(1e8)
        assert areas.loc["AA001", 'enclave_count'] == 1
        assert areas.loc["AA001", 'enclave_area'] == pytest.approx(4e6)
        # hole_area / outer_area
        assert areas.loc["AA001", 'enclave_ratio'] == pytest.approx(4e6 / 1e8)

    def test_no_enclaves_is_zero(self, donut_gdf):
        parts = PolygonDecomposer().decompose(donut_gdf)
        relations = EnclaveDetector().detect(parts, donut_gdf)

        areas = AreaAggregator.aggregate(donut_gdf, relations).set_index('district_id')

        assert areas.loc["AA002", 'enclave_count'] == 0
        assert areas.loc["AA002", 'enclave_area'] == 0.0
        assert areas.loc["AA002", 'enclave_ratio'] == 0.0
        assert areas['enclave_count'].dtype.kind == 'i'


class TestMetricsEngine:
    """Test MetricsEngine"""

    def test_compute(self, scenario_districts):
        result = MetricsEngine().compute(scenario_districts)

        assert isinstance(result, MetricsResult)
        assert len(result.parts) == 5
        parcels = result.parcels.set_index('district_id')['parcel_count']
        assert parcels.to_dict() == {"AA001": 1, "AA002": 1, "BB001": 3}
        assert len(result.enclaves) == 1

        compactness = result.compactness.set_index('district_id')['compactness']
        assert compactness["BB001"] == pytest.approx(0.75)

    def test_precomputed_parts_used(self, scenario_districts):
        parts = PolygonDecomposer().decompose(scenario_districts)

        result = MetricsEngine().compute(scenario_districts, parts)

        assert result.parts is parts

    def test_geographic_input_projected(self, scenario_districts):
        result = MetricsEngine().compute(scenario_districts.to_crs("EPSG:4326"))

        areas = result.areas.set_index('district_id')
        assert areas.loc["AA001", 'enclave_ratio'] == pytest.approx(0.04, rel=1e-3)
        assert result.enclaves.crs.to_epsg() == 5070

    def test_tightest_policy(self):
        outer = Polygon(box(0, 0, 100, 100).exterior.coords, [box(20, 20, 80, 80).exterior.coords])
        middle = Polygon(box(20, 20, 80, 80).exterior.coords, [box(40, 40, 60, 60).exterior.coords])
        districts = gpd.GeoDataFrame({
            'district_id': ["OUT", "MID", "CORE"],
            'name': ["Outer", "Middle", "Core"],
            'region_code': ["AA", "AA", "AA"],
        }, geometry=[outer, middle, box(40, 40, 60, 60)], crs="EPSG:5070")

        areas = MetricsEngine(match_policy="tightest").compute(districts).areas.set_index('district_id')

        assert areas.loc["MID", 'enclave_count'] == 1
        assert areas.loc["OUT", 'enclave_count'] == 1

    def test_invalid_geometry_missing_from_metrics(self, donut_gdf):
        bad = gpd.GeoDataFrame({
            'district_id': ["AA003"], 'name': ["Bowtie District"], 'region_code': ["AA"],
            'variant': ["unified"],
        }, geometry=[Polygon([(20000, 0), (22000, 2000), (22000, 0), (20000, 2000)])],
            crs=donut_gdf.crs)
        districts = gpd.GeoDataFrame(pd.concat([donut_gdf, bad], ignore_index=True),
                                     geometry='geometry', crs=donut_gdf.crs)

        result = MetricsEngine().compute(districts)

        assert "AA003" not in result.compactness['district_id'].tolist()
        assert "AA003" not in result.areas['district_id'].tolist()

    def test_to_records(self, scenario_districts):
        records = MetricsEngine().compute(scenario_districts).to_records()

        assert all(isinstance(r, ComplianceMetric) for r in records)
        by_id = {r.district_id: r for r in records}
        assert by_id["AA001"].enclave_count == 1
        assert by_id["AA001"].enclave_ratio == pytest.approx(0.04)
        assert by_id["BB001"].parcel_count == 3

    def test_generated_data(self, generated_frames):
        districts = combine_frames(generated_frames)

        result = MetricsEngine().compute(districts)

        assert result.areas['enclave_count'].sum() == len(result.enclaves)
        assert (result.areas['enclave_ratio'] >= 0).all()
        assert (result.areas['enclave_ratio'] < 1).all()
