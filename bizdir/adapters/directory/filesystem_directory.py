# bizdir/adapters/directory/filesystem_directory.py
import json
import math
import aiofiles
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
import structlog

from bizdir.core.domain.exceptions import DirectoryUnavailableError
from bizdir.core.domain.models import (
    Business,
    Category,
    City,
    Country,
    LocationType,
    Pagination,
    Region,
    SearchPage,
    SearchQuery,
    SortOption,
)
from bizdir.core.domain.slugs import normalize_slug

logger = structlog.get_logger()

# sort key -> (record key function, descending)
SORT_KEYS: Dict[SortOption, Tuple[Callable[[Dict[str, Any]], Any], bool]] = {
    SortOption.POPULAR: (lambda b: b.get("viewCount") or 0, True),
    SortOption.RATING_HIGH: (lambda b: b.get("averageRating") or 0, True),
    SortOption.RATING_LOW: (lambda b: b.get("averageRating") or 0, False),
    SortOption.NEWEST: (lambda b: b.get("createdAt") or "", True),
    SortOption.OLDEST: (lambda b: b.get("createdAt") or "", False),
    SortOption.VERIFIED: (lambda b: bool(b.get("isVerified")), True),
    SortOption.NOT_VERIFIED: (lambda b: bool(b.get("isVerified")), False),
    SortOption.NAME_ASC: (lambda b: (b.get("name") or "").casefold(), False),
    SortOption.NAME_DESC: (lambda b: (b.get("name") or "").casefold(), True),
}

class FileSystemDirectory:
    """
    Concrete implementation of the directory ports backed by a JSON seed file.

    Meant for local development and demos: the file holds flat lists of
    countries, regions, cities, categories and businesses. Searches filter
    by category, location (a region or country scope covers every city
    below it), search term and minimum rating, then sort and paginate.
    """

    def __init__(self, seed_path: str):
        self.seed_path = Path(seed_path)
        self._data: Optional[Dict[str, List[Dict[str, Any]]]] = None

    async def _load(self) -> Dict[str, List[Dict[str, Any]]]:
        """Reads the seed once and keeps it in memory."""
        if self._data is not None:
            return self._data

        if not self.seed_path.exists():
            logger.warning("seed_file_missing", path=str(self.seed_path))
            self._data = {}
            return self._data

        try:
            async with aiofiles.open(self.seed_path, mode="r", encoding="utf-8") as f:
                content = await f.read()
            self._data = json.loads(content) if content else {}
        except (OSError, ValueError) as e:
            logger.error("seed_read_failed", path=str(self.seed_path), error=str(e))
            raise DirectoryUnavailableError("load_seed", str(e)) from e
        return self._data

    # --- ILocationDirectory ---

    async def fetch_city_by_slug(self, slug: str) -> Optional[City]:
        data = await self._load()
        wanted = normalize_slug(slug)
        for raw in data.get("cities", []):
            if normalize_slug(raw["slug"]) == wanted:
                return City.model_validate(raw)
        return None

    async def fetch_countries(self) -> List[Country]:
        data = await self._load()
        regions = await self.fetch_regions()
        countries = []
        for raw in data.get("countries", []):
            country = Country.model_validate(raw)
            country.regions = [r for r in regions if r.country_id == country.id]
            countries.append(country)
        return countries

    async def fetch_regions(self, country_id: Optional[str] = None) -> List[Region]:
        data = await self._load()
        cities = await self.fetch_cities()
        regions = []
        for raw in data.get("regions", []):
            region = Region.model_validate(raw)
            if country_id and region.country_id != country_id:
                continue
            region.cities = [c for c in cities if c.region_id == region.id]
            regions.append(region)
        return regions

    async def fetch_cities(self) -> List[City]:
        data = await self._load()
        return [City.model_validate(raw) for raw in data.get("cities", [])]

    # --- ICategoryRepository ---

    async def fetch_category_by_slug(self, slug: str) -> Optional[Category]:
        data = await self._load()
        raw_categories = data.get("categories", [])
        wanted = normalize_slug(slug)
        for raw in raw_categories:
            if normalize_slug(raw["slug"]) == wanted:
                category = Category.model_validate(raw)
                category.subcategories = [
                    Category.model_validate(child)
                    for child in raw_categories
                    if child.get("parentId") == category.id
                ]
                return category
        return None

    # --- IBusinessSearch ---

    async def search_businesses(self, query: SearchQuery) -> SearchPage:
        data = await self._load()
        city_ids = self._cities_in_scope(data, query)

        matches = []
        for raw in data.get("businesses", []):
            if query.category_id and query.category_id not in (raw.get("categoryIds") or []):
                continue
            if city_ids is not None and raw.get("cityId") not in city_ids:
                continue
            if query.search and not self._matches_term(raw, query.search):
                continue
            if query.rating is not None and (raw.get("averageRating") or 0) < query.rating:
                continue
            matches.append(raw)

        key, descending = SORT_KEYS[query.sort_by]
        matches.sort(key=key, reverse=descending)

        total = len(matches)
        start = (query.page - 1) * query.limit
        window = matches[start:start + query.limit]
        return SearchPage(
            businesses=[Business.model_validate(raw) for raw in window],
            pagination=Pagination(
                total=total,
                total_pages=max(1, math.ceil(total / query.limit)),
                page=query.page,
                limit=query.limit,
            ),
        )

    @staticmethod
    def _cities_in_scope(data: Dict[str, List[Dict[str, Any]]], query: SearchQuery) -> Optional[set]:
        """City ids covered by the query's location; None means unscoped."""
        if not query.is_scoped:
            return None

        cities = data.get("cities", [])
        if query.location_type in (None, LocationType.CITY):
            return {query.location_id}
        if query.location_type == LocationType.REGION:
            return {c["id"] for c in cities if c.get("regionId") == query.location_id}

        region_ids = {r["id"] for r in data.get("regions", []) if r.get("countryId") == query.location_id}
        return {c["id"] for c in cities if c.get("regionId") in region_ids}

    @staticmethod
    def _matches_term(raw: Dict[str, Any], term: str) -> bool:
        needle = term.casefold()
        haystack = " ".join(str(raw.get(field) or "") for field in ("name", "description", "address"))
        return needle in haystack.casefold()
