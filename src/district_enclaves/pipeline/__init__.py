"""Pipeline orchestration module"""

from .orchestrator import (
    Pipeline,
    PipelineStep,
    PipelineResult,
    StepResult,
    StepStatus,
    DistrictPipeline
)
from .cache import (
    SnapshotCache,
    CacheKey,
    MemoryCacheBackend,
    DiskCacheBackend
)

__all__ = [
    # Orchestrator
    'Pipeline',
    'PipelineStep',
    'PipelineResult',
    'StepResult',
    'StepStatus',
    'DistrictPipeline',

    # Caching
    'SnapshotCache',
    'CacheKey',
    'MemoryCacheBackend',
    'DiskCacheBackend'
]
