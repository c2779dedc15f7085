# bizdir/adapters/directory/api_client.py
import httpx
import structlog
from pydantic import ValidationError
from typing import Any, Dict, List, Optional

from bizdir import __version__
from bizdir.core.domain.exceptions import DirectoryUnavailableError
from bizdir.core.domain.models import (
    Business,
    Category,
    City,
    Country,
    LocationContext,
    Pagination,
    Region,
    SearchPage,
    SearchQuery,
)
from bizdir.shared.config import settings
from bizdir.shared.resilience import (
    CircuitBreakerOpenError,
    external_api_retrying,
    get_circuit_breaker,
)

logger = structlog.get_logger()

# REST routes of the listings API
CITIES_PATH = "/api/cities"
REGIONS_PATH = "/api/cities/regions"
COUNTRIES_PATH = "/api/cities/countries"
CITY_BY_SLUG_PATH = "/api/cities/slug/{slug}"
CATEGORY_BY_SLUG_PATH = "/api/categories/slug/{slug}"
BUSINESSES_PATH = "/api/businesses"

class DirectoryApiClient:
    """
    Driven Adapter for the business directory REST API.

    Implements ILocationDirectory, IBusinessSearch and ICategoryRepository.
    Every call goes through a shared circuit breaker and a tenacity retry
    policy; transport failures surface as DirectoryUnavailableError.
    """

    def __init__(
        self,
        base_url: str = settings.DIRECTORY_API_BASE_URL,
        timeout: float = settings.DIRECTORY_API_TIMEOUT,
        max_retries: int = settings.DIRECTORY_API_MAX_RETRIES,
        backoff: float = 1.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.max_retries = max_retries
        self.backoff = backoff
        self.circuit_breaker = get_circuit_breaker("directory_api")
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Accept": "application/json",
                "User-Agent": f"{settings.APP_NAME}/{__version__}",
            },
        )

    # --- ILocationDirectory ---

    async def fetch_city_by_slug(self, slug: str) -> Optional[City]:
        payload = await self._get(CITY_BY_SLUG_PATH.format(slug=slug), allow_missing=True)
        data = self._unwrap(payload, "city")
        if not data:
            return None
        return City.model_validate(data)

    async def fetch_countries(self) -> List[Country]:
        payload = await self._get(COUNTRIES_PATH)
        return [Country.model_validate(item) for item in self._unwrap(payload, "countries") or []]

    async def fetch_regions(self, country_id: Optional[str] = None) -> List[Region]:
        params = {"countryId": country_id} if country_id else None
        payload = await self._get(REGIONS_PATH, params=params)
        return [Region.model_validate(item) for item in self._unwrap(payload, "regions") or []]

    async def fetch_cities(self) -> List[City]:
        payload = await self._get(CITIES_PATH)
        return [City.model_validate(item) for item in self._unwrap(payload, "cities") or []]

    # --- ICategoryRepository ---

    async def fetch_category_by_slug(self, slug: str) -> Optional[Category]:
        payload = await self._get(CATEGORY_BY_SLUG_PATH.format(slug=slug), allow_missing=True)
        data = self._unwrap(payload, "category")
        if not data:
            return None
        return Category.model_validate(data)

    # --- IBusinessSearch ---

    async def search_businesses(self, query: SearchQuery) -> SearchPage:
        payload = await self._get(BUSINESSES_PATH, params=self._search_params(query))
        data = self._unwrap(payload) or {}

        return SearchPage(
            businesses=[Business.model_validate(item) for item in data.get("businesses") or []],
            pagination=Pagination.model_validate(data.get("pagination") or {}),
            location_context=self._location_context(data.get("locationContext")),
        )

    async def close(self) -> None:
        await self.client.aclose()

    # --- Internals ---

    @staticmethod
    def _search_params(query: SearchQuery) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "page": query.page,
            "limit": query.limit,
            "sortBy": query.sort_by.value,
        }
        if query.category_id:
            params["categoryIds"] = query.category_id
        if query.location_id:
            params["locationId"] = query.location_id
            params["locationType"] = query.location_type.value if query.location_type else "city"
        if query.search:
            params["search"] = query.search
        if query.rating is not None:
            params["rating"] = query.rating
        return params

    @staticmethod
    def _location_context(raw: Any) -> Optional[LocationContext]:
        """
        Parses the server-side widening report. An unrecognised shape drops
        the context only; the businesses of the page are still returned.
        """
        if not raw:
            return None
        try:
            return LocationContext.from_api(raw)
        except (ValidationError, AttributeError) as e:
            logger.warning("location_context_ignored", context=str(raw), error=str(e))
            return None

    @staticmethod
    def _unwrap(payload: Any, key: Optional[str] = None) -> Any:
        """Strips the `{success, message, data}` envelope and an optional named wrapper."""
        data = payload
        if isinstance(data, dict) and "data" in data:
            data = data["data"]
        if key and isinstance(data, dict) and key in data:
            data = data[key]
        return data

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None, allow_missing: bool = False) -> Any:
        async def _call() -> Any:
            async for attempt in external_api_retrying(self.max_retries, self.backoff):
                with attempt:
                    response = await self.client.get(path, params=params)
                    if allow_missing and response.status_code == 404:
                        return None
                    response.raise_for_status()
                    return response.json()

        try:
            return await self.circuit_breaker.a_call(_call)
        except CircuitBreakerOpenError as e:
            logger.warning("directory_circuit_open", path=path)
            raise DirectoryUnavailableError(path, str(e)) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("directory_http_error", path=path, error=str(e))
            raise DirectoryUnavailableError(path, str(e)) from e
