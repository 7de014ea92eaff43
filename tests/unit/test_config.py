"""Unit tests for configuration loading"""

import json
import pytest
from pathlib import Path

from district_enclaves.models.geography import Region, VARIANTS
from district_enclaves.utils.config import (
    PipelineConfig, load_config, default_regions, regions_from_codes
)


class TestRegions:
    """Test region enumeration"""

    def test_default_regions_states_and_dc(self):
        regions = default_regions()
        codes = [r.code for r in regions]

        assert len(regions) == 51
        assert "DC" in codes
        assert "VT" in codes
        assert codes == sorted(codes)
        assert all(r.fips for r in regions)

    def test_regions_from_codes(self):
        regions = regions_from_codes(["vt", "NH"])

        assert [r.code for r in regions] == ["VT", "NH"]
        assert regions[0].name == "Vermont"
        assert regions[0].fips == "50"

    def test_unknown_region(self):
        with pytest.raises(ValueError, match="Unknown region"):
            regions_from_codes(["XX"])


class TestPipelineConfig:
    """Test PipelineConfig"""

    def test_defaults(self):
        config = PipelineConfig()

        assert len(config.regions) == 51
        assert config.variants == list(VARIANTS)
        assert config.top_n == 20
        assert config.match_policy == "first"
        assert config.area_crs == "EPSG:5070"
        assert config.cache_dir is None
        assert isinstance(config.output_dir, Path)

    def test_injected_regions(self, synthetic_regions):
        config = PipelineConfig(regions=synthetic_regions)

        assert [r.code for r in config.regions] == ["AA", "BB", "CC"]

    def test_invalid_variant(self):
        with pytest.raises(ValueError, match="Unknown dataset variants"):
            PipelineConfig(variants=["secondary"])

    def test_invalid_top_n(self):
        with pytest.raises(ValueError):
            PipelineConfig(top_n=0)

    def test_paths_coerced(self):
        config = PipelineConfig(output_dir="out", cache_dir="cache")

        assert config.output_dir == Path("out")
        assert config.cache_dir == Path("cache")

    def test_from_dict(self):
        config = PipelineConfig.from_dict({
            'regions': ["VT", {'code': "AA", 'name': "Alpha"}, Region("BB", "Bravo")],
            'year': 2022,
            'top_n': 5,
            'unknown_key': True
        })

        assert [r.code for r in config.regions] == ["VT", "AA", "BB"]
        assert config.year == 2022
        assert config.top_n == 5


class TestLoadConfig:
    """Test config file loading"""

    def test_load_yaml(self, temp_data_dir):
        path = temp_data_dir / "config.yaml"
        path.write_text("regions: [VT, NH]\ntop_n: 10\nmatch_policy: tightest\n")

        config = load_config(path)

        assert config == {'regions': ["VT", "NH"], 'top_n': 10, 'match_policy': "tightest"}

    def test_load_json(self, temp_data_dir):
        path = temp_data_dir / "config.json"
        path.write_text(json.dumps({'year': 2021}))

        assert load_config(path) == {'year': 2021}

    def test_empty_yaml(self, temp_data_dir):
        path = temp_data_dir / "empty.yml"
        path.write_text("")

        assert load_config(path) == {}

    def test_non_mapping(self, temp_data_dir):
        path = temp_data_dir / "list.yaml"
        path.write_text("- VT\n- NH\n")

        with pytest.raises(ValueError, match="must be a mapping"):
            load_config(path)
