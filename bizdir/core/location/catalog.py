# bizdir/core/location/catalog.py
import structlog
from typing import Dict, Iterable, List, Optional, Set

from bizdir.core.domain.models import CatalogEntity, City, Country, LocationType, Region
from bizdir.core.domain.slugs import normalize_slug
from bizdir.core.ports.location_directory import ILocationDirectory

logger = structlog.get_logger()

class LocationCatalog:
    """
    Lazily populated, in-memory index of countries, regions and cities.

    Responsibilities:
    1. Lookup by id and by case-insensitive slug for each kind.
    2. Parent/child traversal (regions of a country, cities of a region).
    3. Absorbing directory failures: a failed fetch leaves the kind
       "unknown" (not loaded) so the next caller may retry.

    The cache is append-only per id. Entities are copied on the way in,
    so objects handed to `remember` are never modified.
    """

    def __init__(self, directory: ILocationDirectory):
        self.directory = directory
        self._entities: Dict[LocationType, Dict[str, CatalogEntity]] = {
            LocationType.CITY: {},
            LocationType.REGION: {},
            LocationType.COUNTRY: {},
        }
        self._loaded: Set[LocationType] = set()
        self._regions_fetched_for: Set[str] = set()

    # --- Cache reads ---

    def entities(self, kind: LocationType) -> List[CatalogEntity]:
        return list(self._entities[kind].values())

    def is_loaded(self, kind: LocationType) -> bool:
        return kind in self._loaded

    def get(self, kind: LocationType, entity_id: Optional[str]) -> Optional[CatalogEntity]:
        if not entity_id:
            return None
        return self._entities[kind].get(entity_id)

    def find_by_slug(self, kind: LocationType, slug: str) -> Optional[CatalogEntity]:
        """First cached entity of `kind` whose slug equals `slug` (case-insensitive)."""
        wanted = normalize_slug(slug)
        for entity in self._entities[kind].values():
            if normalize_slug(entity.slug) == wanted:
                return entity
        return None

    # --- Cache writes ---

    def remember(self, entity: CatalogEntity) -> CatalogEntity:
        """
        Stores a copy of `entity` (and of any embedded children) and returns
        the stored copy. Last writer wins for an existing id.
        """
        if isinstance(entity, Country):
            stored = entity.model_copy(deep=True)
            self._entities[LocationType.COUNTRY][stored.id] = stored
            for region in stored.regions:
                if region.country_id is None:
                    region = region.model_copy(update={"country_id": stored.id})
                self.remember(region)
            return stored

        if isinstance(entity, Region):
            stored = entity.model_copy(deep=True)
            self._entities[LocationType.REGION][stored.id] = stored
            for city in stored.cities:
                if city.region_id is None:
                    city = city.model_copy(update={"region_id": stored.id})
                self.remember(city)
            return stored

        stored = entity.model_copy(deep=True)
        self._entities[LocationType.CITY][stored.id] = stored
        return stored

    def remember_all(self, entities: Iterable[CatalogEntity]) -> List[CatalogEntity]:
        return [self.remember(entity) for entity in entities]

    # --- Remote population ---

    async def load(self, kind: LocationType) -> List[CatalogEntity]:
        """
        Fetches every entity of `kind` from the directory.

        Returns the freshly fetched entities, or [] if the directory failed.
        Never raises.
        """
        try:
            if kind == LocationType.CITY:
                fetched = await self.directory.fetch_cities()
            elif kind == LocationType.REGION:
                fetched = await self.directory.fetch_regions()
            else:
                fetched = await self.directory.fetch_countries()
        except Exception as e:
            logger.warning("catalog_load_failed", kind=kind.value, error=str(e))
            return []

        stored = self.remember_all(fetched)
        self._loaded.add(kind)
        logger.debug("catalog_loaded", kind=kind.value, count=len(stored))
        return stored

    async def ensure_loaded(self, kind: LocationType) -> List[CatalogEntity]:
        if kind not in self._loaded:
            await self.load(kind)
        return self.entities(kind)

    async def lookup(self, kind: LocationType, entity_id: Optional[str]) -> Optional[CatalogEntity]:
        """
        Id lookup that falls back to loading `kind` once when the id is not
        cached yet. Unknown ids (orphans) yield None.
        """
        if not entity_id:
            return None
        cached = self.get(kind, entity_id)
        if cached is not None or kind in self._loaded:
            return cached
        await self.load(kind)
        return self.get(kind, entity_id)

    # --- Traversal ---

    async def regions_of(self, country_id: str) -> List[Region]:
        regions = self._regions_in_cache(country_id)
        if regions or self.is_loaded(LocationType.REGION) or country_id in self._regions_fetched_for:
            return regions

        try:
            fetched = await self.directory.fetch_regions(country_id)
        except Exception as e:
            logger.warning("catalog_regions_of_failed", country_id=country_id, error=str(e))
            return []

        self._regions_fetched_for.add(country_id)
        for region in fetched:
            if region.country_id is None:
                region = region.model_copy(update={"country_id": country_id})
            self.remember(region)
        return self._regions_in_cache(country_id)

    async def cities_of(self, region_id: str) -> List[City]:
        cities = self._cities_in_cache(region_id)
        if cities or self.is_loaded(LocationType.CITY):
            return cities
        await self.load(LocationType.CITY)
        return self._cities_in_cache(region_id)

    def _regions_in_cache(self, country_id: str) -> List[Region]:
        return [r for r in self._entities[LocationType.REGION].values() if r.country_id == country_id]

    def _cities_in_cache(self, region_id: str) -> List[City]:
        return [c for c in self._entities[LocationType.CITY].values() if c.region_id == region_id]
