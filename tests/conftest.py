"""Pytest configuration and fixtures"""

import pytest
import tempfile
from pathlib import Path

import geopandas as gpd
from shapely.geometry import Polygon, box

from district_enclaves.data import GeographicDataGenerator, FrameBoundarySource
from district_enclaves.models.geography import Region, DistrictRecord, UNIFIED, ELEMENTARY
from district_enclaves.utils.config import PipelineConfig


@pytest.fixture
def sample_region():
    """A synthetic region"""
    return Region(code="AA", name="Alpha", fips="90")


@pytest.fixture
def synthetic_regions():
    """Small synthetic region set in place of the 50 states"""
    return [
        Region(code="AA", name="Alpha", fips="90"),
        Region(code="BB", name="Bravo", fips="91"),
        Region(code="CC", name="Charlie", fips="92"),
    ]


@pytest.fixture
def sample_district():
    """Square district with a square hole"""
    hole = box(4000, 4000, 6000, 6000)
    return DistrictRecord(
        district_id="AA001",
        name="Surrounding District",
        region_code="AA",
        geometry=Polygon(box(0, 0, 10000, 10000).exterior.coords, [hole.exterior.coords])
    )


@pytest.fixture
def geographic_generator():
    """Create geographic data generator with fixed seed"""
    return GeographicDataGenerator(seed=42)


@pytest.fixture
def donut_gdf():
    """Donut district plus the district filling its hole (region AA)"""
    return GeographicDataGenerator.donut_districts("AA")


@pytest.fixture
def multipart_gdf():
    """One district of three disjoint squares (region BB), clear of the donut"""
    return GeographicDataGenerator.multipart_district("BB", origin=(30000.0, 0.0))


@pytest.fixture
def scenario_frames(donut_gdf, multipart_gdf):
    """Frames for regions AA and BB; CC has none and BB has no elementary file"""
    elementary = gpd.GeoDataFrame([
        {'district_id': "ELAA001", 'name': "Alpha Elementary", 'region_code': "AA",
         'variant': ELEMENTARY, 'geometry': box(20000, 0, 25000, 5000)},
    ], geometry='geometry', crs=GeographicDataGenerator.CRS)

    return {
        ("AA", UNIFIED): donut_gdf,
        ("AA", ELEMENTARY): elementary,
        ("BB", UNIFIED): multipart_gdf,
    }


@pytest.fixture
def frame_source(scenario_frames):
    """Boundary source serving the scenario frames"""
    return FrameBoundarySource(scenario_frames)


@pytest.fixture
def generated_frames(geographic_generator):
    """Grid districts with enclaves for two regions"""
    return geographic_generator.generate_complete_geographic_data(
        ["AA", "BB"], elementary_codes=["AA"], n_cols=3, n_rows=3, enclave_rate=0.5
    )


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def pipeline_config(synthetic_regions, temp_data_dir):
    """Config over the synthetic regions writing into a temp dir"""
    return PipelineConfig(
        regions=synthetic_regions,
        output_dir=temp_data_dir / "output",
        download_dir=temp_data_dir / "tiger",
        report_format="text"
    )
