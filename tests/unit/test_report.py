"""Unit tests for the reporter"""

import logging
import pytest

import numpy as np
import pandas as pd
import geopandas as gpd
from shapely.geometry import Polygon

from district_enclaves.algorithms import MetricsEngine
from district_enclaves.data import DistrictLoader
from district_enclaves.reporting import Reporter, DistrictReport, compactness_bar, AREA_UNITS


@pytest.fixture
def loaded(frame_source, synthetic_regions):
    return DistrictLoader(frame_source, synthetic_regions).load()


@pytest.fixture
def metrics(loaded):
    return MetricsEngine().compute(loaded)


@pytest.fixture
def loaded_with_bad(loaded):
    """Loader output plus one district whose geometry cannot be measured"""
    bad = gpd.GeoDataFrame({
        'district_id': ["AA009"], 'name': ["Bowtie District"], 'region_code': ["AA"],
        'variant': ["unified"], 'region_name': ["Alpha"],
    }, geometry=[Polygon([(50000, 0), (52000, 2000), (52000, 0), (50000, 2000)])],
        crs=loaded.crs)
    return gpd.GeoDataFrame(pd.concat([loaded, bad], ignore_index=True),
                            geometry='geometry', crs=loaded.crs)


class TestCompactnessBar:
    """Test text bar rendering"""

    def test_full_and_empty(self):
        assert compactness_bar(1.0) == "█" * 10
        assert compactness_bar(0.0) == "░" * 10

    def test_partial(self):
        assert compactness_bar(0.75, width=4) == "███░"

    def test_unavailable(self):
        assert compactness_bar(None) == "n/a"
        assert compactness_bar(np.nan) == "n/a"


class TestReporter:
    """Test Reporter"""

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            Reporter(area_unit="acres")
        with pytest.raises(ValueError):
            Reporter(report_format="pdf")
        with pytest.raises(ValueError):
            Reporter(top_n=0)

    def test_join_keeps_every_district(self, loaded_with_bad, caplog):
        metrics = MetricsEngine().compute(loaded_with_bad)

        with caplog.at_level(logging.WARNING):
            table = Reporter().join_metrics(loaded_with_bad, metrics)

        assert len(table) == len(loaded_with_bad)
        bad = table.set_index('district_id').loc["AA009"]
        assert not bad['metrics_available']
        assert bad['missing_metrics'] == "compactness, areas"
        assert pd.isna(bad['compactness'])
        assert bad['parcel_count'] == 1
        assert "District AA009 (Bowtie District, AA) lacks metrics" in caplog.text

    def test_join_all_available(self, loaded, metrics):
        table = Reporter().join_metrics(loaded, metrics)

        assert table['metrics_available'].all()
        assert (table['missing_metrics'] == "").all()
        assert table['region_name'].notna().all()

    def test_rank_by_enclave_count(self, loaded_with_bad):
        metrics = MetricsEngine().compute(loaded_with_bad)
        reporter = Reporter(top_n=10)

        ranked = reporter.rank(reporter.join_metrics(loaded_with_bad, metrics))

        assert ranked.index.tolist() == list(range(1, len(ranked) + 1))
        assert ranked.iloc[0]['district_id'] == "AA001"
        # Unavailable metrics sort last
        assert ranked.iloc[-1]['district_id'] == "AA009"

    def test_rank_top_n(self, loaded, metrics):
        reporter = Reporter(top_n=2)

        ranked = reporter.rank(reporter.join_metrics(loaded, metrics))

        assert len(ranked) == 2

    def test_area_display_units(self, loaded, metrics):
        for unit, (factor, _) in AREA_UNITS.items():
            reporter = Reporter(area_unit=unit)
            ranked = reporter.rank(reporter.join_metrics(loaded, metrics)).set_index('district_id')

            assert ranked.loc["AA001", 'area_display'] == pytest.approx(96e6 / factor)
            assert ranked.loc["AA001", 'enclave_pct'] == pytest.approx(4.0)

    def test_render_text(self, loaded, metrics):
        report = Reporter(report_format='text').render(loaded, metrics, plots=False)

        assert isinstance(report, DistrictReport)
        assert report.format == 'text'
        assert report.files == []
        assert report.unavailable_count == 0
        assert "1. Surrounding District (Alpha)" in report.content
        assert "Enclaves: 1 (4.00% of area)" in report.content

    def test_render_markdown_marks_unavailable(self, loaded_with_bad):
        metrics = MetricsEngine().compute(loaded_with_bad)

        report = Reporter(report_format='markdown').render(loaded_with_bad, metrics, plots=False)

        assert report.unavailable_count == 1
        assert "Bowtie District (missing: compactness, areas)" in report.content
        assert "| n/a |" in report.content

    def test_render_html_with_files(self, loaded, metrics, temp_data_dir):
        report = Reporter(report_format='html').render(loaded, metrics, output_dir=temp_data_dir)

        names = {p.name for p in report.files}
        assert "report.html" in names
        assert "compactness.png" in names
        assert (temp_data_dir / "thumbnails" / "AA001.png").exists()
        assert all(p.exists() for p in report.files)
        assert "data:image/png;base64," in report.content
        assert "Surrounding District" in report.content

    def test_render_markdown_links_thumbnails(self, loaded, metrics, temp_data_dir):
        report = Reporter(report_format='markdown').render(loaded, metrics,
                                                           output_dir=temp_data_dir)

        assert "![](thumbnails/AA001.png)" in report.content
        assert (temp_data_dir / "report.md").read_text(encoding='utf-8') == report.content

    def test_render_empty(self, loaded, metrics):
        empty = loaded.iloc[0:0]

        report = Reporter(report_format='text').render(empty, MetricsEngine().compute(empty),
                                                       plots=False)

        assert "No districts to report." in report.content
