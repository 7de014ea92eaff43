"""Snapshot caching for downloaded boundary data"""

from typing import Dict, Any, Optional
from datetime import datetime
from pathlib import Path
import json
import pickle
import hashlib
import logging
from abc import ABC, abstractmethod

import geopandas as gpd


class CacheKey:
    """Generate cache keys for different operations"""

    @staticmethod
    def for_boundaries(region_code: str, variant: str, year: int) -> str:
        """Generate cache key for one (region, variant, vintage) boundary file

        Args:
            region_code: Region code, e.g. "VT"
            variant: Dataset variant
            year: Vintage year

        Returns:
            Cache key string
        """
        return ":".join(["boundaries", str(year), region_code.upper(), variant])


class CacheBackend(ABC):
    """Abstract cache backend"""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        pass

    @abstractmethod
    def set(self, key: str, value: Any):
        """Set value in cache"""
        pass

    @abstractmethod
    def delete(self, key: str):
        """Delete value from cache"""
        pass

    @abstractmethod
    def clear(self):
        """Clear all cache entries"""
        pass

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        pass


class MemoryCacheBackend(CacheBackend):
    """In-memory cache backend; entries last for the life of the process"""

    def __init__(self):
        self.cache: Dict[str, Any] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        if key not in self.cache:
            self.misses += 1
            return None

        self.hits += 1
        return self.cache[key]

    def set(self, key: str, value: Any):
        """Set value in cache"""
        self.cache[key] = value

    def delete(self, key: str):
        """Delete value from cache"""
        self.cache.pop(key, None)

    def clear(self):
        """Clear all cache entries"""
        self.cache.clear()
        self.hits = 0
        self.misses = 0

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        total_requests = self.hits + self.misses

        return {
            'entries': len(self.cache),
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': self.hits / total_requests if total_requests > 0 else 0
        }


class DiskCacheBackend(CacheBackend):
    """Disk-based cache backend; entries survive between runs"""

    def __init__(self, cache_dir: Path):
        """Initialize disk cache

        Args:
            cache_dir: Directory for cache files
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.metadata_file = self.cache_dir / "cache_metadata.json"
        self.logger = logging.getLogger("cache.disk")

        self.metadata = self._load_metadata()

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        if key not in self.metadata:
            return None

        file_path = self.cache_dir / self.metadata[key]['filename']
        if not file_path.exists():
            del self.metadata[key]
            self._save_metadata()
            return None

        try:
            with open(file_path, 'rb') as f:
                value = pickle.load(f)
        except (OSError, pickle.UnpicklingError, EOFError) as e:
            self.logger.error(f"Failed to load cache entry {key}: {str(e)}")
            self.delete(key)
            return None

        self.metadata[key]['accessed_at'] = datetime.now().isoformat()
        self.metadata[key]['access_count'] = self.metadata[key].get('access_count', 0) + 1
        self._save_metadata()

        return value

    def set(self, key: str, value: Any):
        """Set value in cache"""
        filename = f"{hashlib.md5(key.encode()).hexdigest()}.pkl"
        file_path = self.cache_dir / filename

        try:
            with open(file_path, 'wb') as f:
                pickle.dump(value, f)
        except OSError as e:
            self.logger.error(f"Failed to save cache entry {key}: {str(e)}")
            if file_path.exists():
                file_path.unlink()
            return

        self.metadata[key] = {
            'filename': filename,
            'created_at': datetime.now().isoformat(),
            'accessed_at': datetime.now().isoformat(),
            'access_count': 1,
            'size_bytes': file_path.stat().st_size
        }
        self._save_metadata()

    def delete(self, key: str):
        """Delete value from cache"""
        if key in self.metadata:
            file_path = self.cache_dir / self.metadata[key]['filename']

            if file_path.exists():
                file_path.unlink()

            del self.metadata[key]
            self._save_metadata()

    def clear(self):
        """Clear all cache entries"""
        for entry in self.metadata.values():
            file_path = self.cache_dir / entry['filename']
            if file_path.exists():
                file_path.unlink()

        self.metadata.clear()
        self._save_metadata()

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        total_size = sum(e.get('size_bytes', 0) for e in self.metadata.values())

        return {
            'entries': len(self.metadata),
            'size_mb': total_size / (1024 * 1024),
            'cache_dir': str(self.cache_dir)
        }

    def _load_metadata(self) -> Dict[str, Any]:
        """Load cache metadata from disk"""
        if not self.metadata_file.exists():
            return {}
        try:
            with open(self.metadata_file, 'r') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning(f"Ignoring unreadable cache metadata: {str(e)}")
            return {}

    def _save_metadata(self):
        """Save cache metadata to disk"""
        try:
            with open(self.metadata_file, 'w') as f:
                json.dump(self.metadata, f, indent=2)
        except OSError as e:
            self.logger.error(f"Failed to save metadata: {str(e)}")


class SnapshotCache:
    """Caches loaded boundary frames so repeated runs see the same data"""

    def __init__(self, backend: Optional[CacheBackend] = None):
        """Initialize snapshot cache

        Args:
            backend: Cache backend to use
        """
        self.backend = backend or MemoryCacheBackend()
        self.logger = logging.getLogger("snapshot_cache")

    def get_boundaries(self, region_code: str, variant: str,
                       year: int) -> Optional[gpd.GeoDataFrame]:
        """Get a cached boundary frame, or None"""
        key = CacheKey.for_boundaries(region_code, variant, year)

        result = self.backend.get(key)
        if result is not None:
            self.logger.info(f"Cache hit for boundaries: {key}")
        return result

    def set_boundaries(self, boundaries: gpd.GeoDataFrame, region_code: str,
                       variant: str, year: int):
        """Cache a boundary frame"""
        key = CacheKey.for_boundaries(region_code, variant, year)

        self.backend.set(key, boundaries)
        self.logger.info(f"Cached boundaries: {key}")

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        return self.backend.get_stats()
