"""Elevation cache keyed by quantized coordinates.

Maps a coordinate rounded to ElevationConfig.CACHE_KEY_DECIMALS places
(~1.1m) to an elevation in meters. The backing store is injected so the
cache does not depend on a storage technology:
- InMemoryStore: process-local dict (tests, ephemeral sessions)
- JsonFileStore: JSON file that survives across sessions

A missing or corrupt backing store starts empty and storage errors are
logged, never raised: the cache must not fail the analysis pipeline.
"""

import json
import logging
from abc import ABC, abstractmethod
from math import isfinite
from pathlib import Path
from typing import Optional

from azimuth_planner.constants import ElevationConfig
from azimuth_planner.core.geo_calculator import GeoCalculator

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Durable get/set of elevations keyed by coordinate strings."""

    @abstractmethod
    def get(self, key: str) -> Optional[float]:
        """Return the stored elevation or None."""

    @abstractmethod
    def set(self, key: str, value: float) -> None:
        """Store an elevation (last writer wins)."""

    def flush(self) -> None:
        """Persist buffered writes. No-op for stores without buffering."""


class InMemoryStore(KeyValueStore):
    """Dictionary-backed store."""

    def __init__(self, initial: Optional[dict[str, float]] = None) -> None:
        self._data: dict[str, float] = dict(initial or {})

    def get(self, key: str) -> Optional[float]:
        return self._data.get(key)

    def set(self, key: str, value: float) -> None:
        self._data[key] = value

    def __len__(self) -> int:
        return len(self._data)


class JsonFileStore(KeyValueStore):
    """JSON file store, loaded once and written on flush().

    Example:
        store = JsonFileStore(path=ElevationConfig.CACHE_PATH)
        cache = ElevationCache(store=store)
    """

    def __init__(self, path: Path = ElevationConfig.CACHE_PATH) -> None:
        self._path = Path(path)
        self._data = self._load()
        self._dirty = False

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, float]:
        if not self._path.exists():
            logger.info(f"No elevation cache at {self._path}, starting empty")
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable elevation cache {self._path}: {e}")
            return {}

        if not isinstance(raw, dict):
            logger.warning(f"Ignoring elevation cache {self._path}: expected object, got {type(raw).__name__}")
            return {}

        data = {
            key: float(value)
            for key, value in raw.items()
            if isinstance(value, (int, float)) and not isinstance(value, bool) and isfinite(value)
        }
        skipped = len(raw) - len(data)
        if skipped:
            logger.warning(f"Skipped {skipped} invalid entries in elevation cache {self._path}")
        logger.info(f"Loaded {len(data)} cached elevations from {self._path}")
        return data

    def get(self, key: str) -> Optional[float]:
        return self._data.get(key)

    def set(self, key: str, value: float) -> None:
        self._data[key] = value
        self._dirty = True

    def flush(self) -> None:
        if not self._dirty:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f)
            tmp_path.replace(self._path)
            self._dirty = False
            logger.debug(f"Elevation cache saved ({len(self._data)} entries)")
        except OSError as e:
            logger.error(f"Failed to save elevation cache {self._path}: {e}")

    def __len__(self) -> int:
        return len(self._data)


class ElevationCache:
    """Coordinate → elevation lookup on top of a KeyValueStore."""

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        decimals: int = ElevationConfig.CACHE_KEY_DECIMALS,
    ) -> None:
        self._store = store if store is not None else InMemoryStore()
        self._decimals = decimals

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def key(self, lat: float, lon: float) -> str:
        return GeoCalculator.quantize_key(lat=lat, lon=lon, decimals=self._decimals)

    def get(self, lat: float, lon: float) -> Optional[float]:
        """Cached elevation for a coordinate, or None on miss."""
        return self._store.get(self.key(lat=lat, lon=lon))

    def put(self, lat: float, lon: float, elevation: float) -> None:
        self._store.set(self.key(lat=lat, lon=lon), float(elevation))

    def flush(self) -> None:
        self._store.flush()
