"""Unit tests for the district loader"""

import io
import logging
import zipfile

import pandas as pd
import geopandas as gpd
import requests
from shapely.geometry import box

from district_enclaves.data import DistrictLoader, FrameBoundarySource, save_results
from district_enclaves.data.sources import BoundarySource, TigerBoundarySource
from district_enclaves.models.geography import Region, UNIFIED, ELEMENTARY
from district_enclaves.pipeline.cache import SnapshotCache, MemoryCacheBackend


class FailingSource(BoundarySource):
    """Raises an I/O error for one region and delegates the rest"""

    def __init__(self, inner, failing_code, error):
        self.inner = inner
        self.failing_code = failing_code
        self.error = error
        self.calls = []

    def fetch(self, region, variant, year):
        self.calls.append((region.code, variant))
        if region.code == self.failing_code:
            raise self.error
        return self.inner.fetch(region, variant, year)


class TestDistrictLoader:
    """Test DistrictLoader"""

    def test_load_unions_pairs(self, frame_source, synthetic_regions):
        loader = DistrictLoader(frame_source, synthetic_regions)

        districts = loader.load()

        assert districts['district_id'].tolist() == ["AA001", "AA002", "ELAA001", "BB001"]
        assert set(districts['variant']) == {UNIFIED, ELEMENTARY}

    def test_region_names_joined(self, frame_source, synthetic_regions):
        districts = DistrictLoader(frame_source, synthetic_regions).load()

        names = dict(zip(districts['region_code'], districts['region_name']))
        assert names == {"AA": "Alpha", "BB": "Bravo"}

    def test_missing_pairs_skipped(self, frame_source, synthetic_regions, caplog):
        loader = DistrictLoader(frame_source, synthetic_regions)

        with caplog.at_level(logging.DEBUG, logger="district_loader"):
            districts = loader.load()

        assert "CC" not in set(districts['region_code'])
        assert ("BB", ELEMENTARY, 'missing') in loader.skipped
        assert ("CC", UNIFIED, 'missing') in loader.skipped
        assert ("CC", ELEMENTARY, 'missing') in loader.skipped
        # Expected absences are not warnings
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_io_failure_skips_pair(self, frame_source, synthetic_regions, caplog):
        source = FailingSource(frame_source, "AA", OSError("disk on fire"))
        loader = DistrictLoader(source, synthetic_regions)

        with caplog.at_level(logging.WARNING, logger="district_loader"):
            districts = loader.load()

        assert districts['district_id'].tolist() == ["BB001"]
        assert ("AA", UNIFIED, "disk on fire") in loader.skipped
        assert "Failed to load unified districts for AA" in caplog.text

    def test_unreadable_download_skips_pair(self, temp_data_dir, caplog):
        # A well-formed zip with no shapefile inside
        zip_path = temp_data_dir / "2023" / "tl_2023_50_unsd.zip"
        zip_path.parent.mkdir(parents=True)
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, 'w') as zf:
            zf.writestr("readme.txt", "placeholder")
        zip_path.write_bytes(buffer.getvalue())

        loader = DistrictLoader(TigerBoundarySource(temp_data_dir),
                                [Region("VT", "Vermont", fips="50")], variants=[UNIFIED])

        with caplog.at_level(logging.WARNING, logger="district_loader"):
            districts = loader.load()

        assert len(districts) == 0
        assert [(code, variant) for code, variant, _ in loader.skipped] == [("VT", UNIFIED)]
        assert "Failed to load unified districts for VT" in caplog.text
        assert not zip_path.exists()

    def test_network_failure_skips_pair(self, frame_source, synthetic_regions):
        source = FailingSource(frame_source, "BB", requests.ConnectionError("timeout"))

        districts = DistrictLoader(source, synthetic_regions).load()

        assert "BB" not in set(districts['region_code'])
        assert len(districts) == 3

    def test_nothing_loaded(self, synthetic_regions):
        loader = DistrictLoader(FrameBoundarySource({}), synthetic_regions)

        districts = loader.load()

        assert len(districts) == 0
        assert 'region_name' in districts.columns
        assert len(loader.skipped) == 6

    def test_deduplicates_by_district_id(self, donut_gdf, synthetic_regions):
        duplicate = donut_gdf.iloc[[0]].copy()
        duplicate['name'] = "Duplicate Copy"
        frames = {("AA", UNIFIED): donut_gdf, ("AA", ELEMENTARY): duplicate}

        districts = DistrictLoader(FrameBoundarySource(frames), synthetic_regions).load()

        assert districts['district_id'].tolist() == ["AA001", "AA002"]
        assert "Duplicate Copy" not in districts['name'].tolist()

    def test_order_independent_of_fetch_order(self, frame_source, synthetic_regions):
        forward = DistrictLoader(frame_source, synthetic_regions).load()

        # Same inputs through a second loader give identical output
        again = DistrictLoader(frame_source, synthetic_regions).load()
        assert forward['district_id'].tolist() == again['district_id'].tolist()

        shuffled = {k: v.iloc[::-1] for k, v in frame_source.frames.items()}
        reordered = DistrictLoader(FrameBoundarySource(shuffled), synthetic_regions).load()
        assert forward['district_id'].tolist() == reordered['district_id'].tolist()

    def test_reprojects_to_first_crs(self, donut_gdf, multipart_gdf, synthetic_regions):
        frames = {
            ("AA", UNIFIED): donut_gdf,
            ("BB", UNIFIED): multipart_gdf.to_crs("EPSG:3857"),
        }

        districts = DistrictLoader(FrameBoundarySource(frames), synthetic_regions,
                                   variants=[UNIFIED]).load()

        assert districts.crs == donut_gdf.crs
        bb = districts[districts['district_id'] == "BB001"].geometry.iloc[0]
        assert abs(bb.area - 3_000_000) / 3_000_000 < 1e-6

    def test_cache_used(self, frame_source, synthetic_regions):
        cache = SnapshotCache(MemoryCacheBackend())
        DistrictLoader(frame_source, synthetic_regions, cache=cache).load()

        source = FailingSource(frame_source, "AA", OSError("offline"))
        districts = DistrictLoader(source, synthetic_regions, cache=cache).load()

        assert "AA001" in districts['district_id'].tolist()
        assert ("AA", UNIFIED) not in source.calls


class TestSaveResults:
    """Test result export"""

    def test_writes_geojson_and_csv(self, temp_data_dir, donut_gdf):
        written = save_results({
            'districts': donut_gdf,
            'table': pd.DataFrame(donut_gdf[['district_id', 'name']])
        }, temp_data_dir / "out")

        names = sorted(p.name for p in written)
        assert names == ["districts.geojson", "table.csv"]
        assert all(p.exists() for p in written)

    def test_round_trip_geojson(self, temp_data_dir):
        gdf = gpd.GeoDataFrame({'district_id': ["X1"]}, geometry=[box(0, 0, 1, 1)],
                               crs="EPSG:5070")

        path = save_results({'one': gdf}, temp_data_dir)[0]

        assert gpd.read_file(path)['district_id'].tolist() == ["X1"]
