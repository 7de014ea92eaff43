"""Configuration loading"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import json

import yaml
import us

from ..models.geography import Region, VARIANTS


def default_regions() -> List[Region]:
    """The 50 states plus the District of Columbia"""
    states = list(us.states.STATES)
    if us.states.DC not in states:
        states.append(us.states.DC)

    regions = [Region(code=s.abbr, name=s.name, fips=s.fips) for s in states]
    return sorted(regions, key=lambda r: r.code)


def regions_from_codes(codes: List[str]) -> List[Region]:
    """Resolve state abbreviations (or FIPS codes / names) to regions"""
    regions = []
    for code in codes:
        state = us.states.lookup(str(code))
        if state is None:
            raise ValueError(f"Unknown region: {code}")
        regions.append(Region(code=state.abbr, name=state.name, fips=state.fips))
    return regions


@dataclass
class PipelineConfig:
    """Settings for one pipeline run"""
    regions: List[Region] = field(default_factory=default_regions)
    variants: List[str] = field(default_factory=lambda: list(VARIANTS))
    year: int = 2023
    download_dir: Path = Path("data/tiger")
    cache_dir: Optional[Path] = None
    area_crs: str = "EPSG:5070"
    top_n: int = 20
    match_policy: str = "first"
    area_unit: str = "sq_mi"
    preview_memory_mb: float = 5.0
    preview_tolerance: float = 50.0
    report_format: str = "html"
    output_dir: Path = Path("output")

    def __post_init__(self):
        unknown = [v for v in self.variants if v not in VARIANTS]
        if unknown:
            raise ValueError(f"Unknown dataset variants: {unknown}")
        if self.top_n <= 0:
            raise ValueError("top_n must be positive")
        self.download_dir = Path(self.download_dir)
        self.output_dir = Path(self.output_dir)
        if self.cache_dir is not None:
            self.cache_dir = Path(self.cache_dir)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'PipelineConfig':
        """Build a config from a plain mapping, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in config.items() if k in known}

        if 'regions' in kwargs:
            kwargs['regions'] = [
                r if isinstance(r, Region) else
                Region(**r) if isinstance(r, dict) else
                regions_from_codes([r])[0]
                for r in kwargs['regions']
            ]

        return cls(**kwargs)


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML or JSON configuration file"""
    path = Path(path)

    with open(path) as f:
        if path.suffix in ('.yaml', '.yml'):
            config = yaml.safe_load(f)
        else:
            config = json.load(f)

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"Configuration in {path} must be a mapping")

    return config
