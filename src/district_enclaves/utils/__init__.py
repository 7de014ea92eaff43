"""Shared utilities"""

from .config import PipelineConfig, load_config, default_regions, regions_from_codes

__all__ = [
    'PipelineConfig',
    'load_config',
    'default_regions',
    'regions_from_codes'
]
