"""Coordinate repository: resolves a diagram to its coordinate catalog.

Catalog lookup goes through an injected CoordinateSource so that tests
can supply fixed in-memory catalogs. The repository caches successful
loads, falls back once to the same-sex front catalog, and finally hands
out an empty catalog. It never raises to its callers.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from loguru import logger
from pydantic import ValidationError

from config.settings import settings
from src.diagrams import get_diagram_config
from src.metrics import record_catalog_load, record_cached_catalogs
from src.models import CoordinateCatalog, DiagramConfig, ReferenceCoordinate, ViewType


class CatalogNotFoundError(KeyError):
    """No usable coordinate catalog exists for a key."""


# =====================================================================
# Sources
# =====================================================================


class CoordinateSource(ABC):
    """Abstract base for coordinate catalog sources."""

    @abstractmethod
    async def load(self, key: str) -> CoordinateCatalog:
        """Load the catalog for a diagram id such as "femalefront".

        Raises:
            CatalogNotFoundError: if the catalog is missing or unreadable.
        """
        ...


def parse_catalog(key: str, payload: Mapping) -> CoordinateCatalog:
    """Build a catalog from a `{"coordinates_by_image": {...}}` document.

    Raises:
        CatalogNotFoundError: if the document has no section for `key`
            or its coordinates are malformed.
    """
    by_image = payload.get("coordinates_by_image") if isinstance(payload, Mapping) else None
    if not isinstance(by_image, Mapping):
        raise CatalogNotFoundError(f"{key}: missing coordinates_by_image")

    section = by_image.get(f"{key}.png")
    if section is None:
        raise CatalogNotFoundError(f"{key}: no coordinates for {key}.png")

    try:
        coordinates = {
            part: ReferenceCoordinate(**coord) for part, coord in section.items()
        }
    except (TypeError, AttributeError, ValidationError) as e:
        raise CatalogNotFoundError(f"{key}: malformed coordinates ({e})") from e

    return CoordinateCatalog(diagram_id=key, coordinates=coordinates)


class JsonCoordinateSource(CoordinateSource):
    """Reads `{key}.json` files from a directory.

    Args:
        directory: Folder holding one JSON file per diagram id.
            Defaults to settings.COORDINATES_DIR.
    """

    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory) if directory else settings.COORDINATES_DIR

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _read(self, key: str) -> CoordinateCatalog:
        path = self.path_for(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except FileNotFoundError as e:
            raise CatalogNotFoundError(f"{key}: {path} not found") from e
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogNotFoundError(f"{key}: cannot read {path} ({e})") from e
        return parse_catalog(key, payload)

    async def load(self, key: str) -> CoordinateCatalog:
        return await asyncio.to_thread(self._read, key)


class InMemoryCoordinateSource(CoordinateSource):
    """Serves catalogs from a dict of `{key: {part: (x, y) or {x, y}}}`."""

    def __init__(self, catalogs: Optional[Dict[str, Mapping]] = None):
        self.catalogs: Dict[str, CoordinateCatalog] = {}
        self.load_calls = 0
        for key, coordinates in (catalogs or {}).items():
            self.add(key, coordinates)

    def add(self, key: str, coordinates: Mapping) -> None:
        parsed = {}
        for part, coord in coordinates.items():
            if isinstance(coord, ReferenceCoordinate):
                parsed[part] = coord
            elif isinstance(coord, Mapping):
                parsed[part] = ReferenceCoordinate(**coord)
            else:
                x, y = coord
                parsed[part] = ReferenceCoordinate(x=x, y=y)
        self.catalogs[key] = CoordinateCatalog(diagram_id=key, coordinates=parsed)

    async def load(self, key: str) -> CoordinateCatalog:
        self.load_calls += 1
        if key not in self.catalogs:
            raise CatalogNotFoundError(key)
        return self.catalogs[key]


# =====================================================================
# Repository
# =====================================================================


class CoordinateRepository:
    """Cached, fault-tolerant access to coordinate catalogs.

    Args:
        source: Where catalogs come from.
    """

    def __init__(self, source: CoordinateSource):
        self.source = source
        self._cache: Dict[str, CoordinateCatalog] = {}

    @property
    def cached_ids(self):
        return list(self._cache)

    def clear_cache(self) -> None:
        record_cached_catalogs(-len(self._cache))
        self._cache.clear()

    async def _load(self, key: str) -> Optional[CoordinateCatalog]:
        if key in self._cache:
            return self._cache[key]
        try:
            catalog = await self.source.load(key)
        except CatalogNotFoundError as e:
            logger.warning(f"Coordinate catalog {key} unavailable: {e}")
            return None
        self._cache[key] = catalog
        record_cached_catalogs(1)
        return catalog

    async def get(self, diagram: DiagramConfig) -> CoordinateCatalog:
        """Resolve the catalog for `diagram`.

        Mirrored views resolve to their own catalog. On failure this
        falls back once to the same-sex front catalog, then to an empty
        catalog carrying the requested diagram id.
        """
        requested = diagram.diagram_id
        cached = requested in self._cache
        catalog = await self._load(requested)
        if catalog is not None:
            record_catalog_load("cache" if cached else "loaded")
            return catalog

        if diagram.view_type != ViewType.FRONT:
            fallback_id = get_diagram_config(diagram.sex, ViewType.FRONT).diagram_id
            logger.warning(f"Falling back to {fallback_id} coordinates for {requested}")
            fallback = await self._load(fallback_id)
            if fallback is not None:
                record_catalog_load("fallback")
                return fallback

        logger.error(f"No coordinate catalog available for {requested}; rendering without overlays")
        record_catalog_load("empty")
        return CoordinateCatalog(diagram_id=requested)
