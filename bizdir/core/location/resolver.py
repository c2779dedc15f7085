# bizdir/core/location/resolver.py
import structlog
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple
from pydantic import BaseModel

from bizdir.core.domain.context import BrowsingSession
from bizdir.core.domain.models import CatalogEntity, City, Country, Location, LocationType, Region
from bizdir.core.domain.slugs import normalize_slug, slug_to_display_name
from bizdir.core.location.catalog import LocationCatalog
from bizdir.shared.telemetry import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

class ResolutionTier(str, Enum):
    """Which rule produced a resolution."""
    STICKY = "sticky"
    CITY = "city"
    REGION = "region"
    COUNTRY = "country"

# Most specific first. A slug shared by a city and a region is the city.
RESOLUTION_ORDER: Tuple[ResolutionTier, ...] = (
    ResolutionTier.STICKY,
    ResolutionTier.CITY,
    ResolutionTier.REGION,
    ResolutionTier.COUNTRY,
)

class Resolution(BaseModel):
    """
    Outcome of resolving one slug.

    `tier` is None when nothing matched; `location` then carries the
    title-cased display fallback and `entity` is None.
    """
    location: Location
    tier: Optional[ResolutionTier] = None
    entity: Optional[CatalogEntity] = None
    representative_city: Optional[City] = None

    @property
    def is_resolved(self) -> bool:
        return self.tier is not None

    @property
    def selected_city(self) -> Optional[City]:
        if isinstance(self.entity, City):
            return self.entity
        return self.representative_city

TierStrategy = Callable[[str, Optional[BrowsingSession]], Awaitable[Optional[Resolution]]]

class SlugResolver:
    """
    Maps a URL slug to exactly one city, region or country.

    Tiers are tried in RESOLUTION_ORDER and the first match wins; later
    tiers are never consulted. A tier that fails remotely counts as
    "no match" and resolution moves on. Calling `resolve` again after the
    catalog has grown is safe and converges on the same answer.
    """

    def __init__(self, catalog: LocationCatalog):
        self.catalog = catalog
        strategies = {
            ResolutionTier.STICKY: self._match_sticky,
            ResolutionTier.CITY: self._match_city,
            ResolutionTier.REGION: self._match_region,
            ResolutionTier.COUNTRY: self._match_country,
        }
        self._chain: Tuple[Tuple[ResolutionTier, TierStrategy], ...] = tuple(
            (tier, strategies[tier]) for tier in RESOLUTION_ORDER
        )

    async def resolve(self, slug: str, session: Optional[BrowsingSession] = None) -> Resolution:
        with tracer.start_as_current_span("slug_resolver.resolve") as span:
            span.set_attribute("app.location_slug", slug)

            for tier, strategy in self._chain:
                try:
                    resolution = await strategy(slug, session)
                except Exception as e:
                    logger.warning("resolution_tier_failed", slug=slug, tier=tier.value, error=str(e))
                    continue
                if resolution is not None:
                    span.set_attribute("app.resolution_tier", tier.value)
                    logger.info("slug_resolved", slug=slug, tier=tier.value, location_id=resolution.location.id)
                    return resolution

            span.set_attribute("app.resolution_tier", "unresolved")
            logger.info("slug_unresolved", slug=slug)
            return self._unresolved(slug)

    # --- Tier strategies ---

    async def _match_sticky(self, slug: str, session: Optional[BrowsingSession]) -> Optional[Resolution]:
        if session is None:
            return None
        selected = session.sticky_country(slug)
        if selected is None:
            return None

        known = self.catalog.get(LocationType.COUNTRY, selected.id)
        if known is None:
            return Resolution(location=selected, tier=ResolutionTier.STICKY)
        if normalize_slug(known.slug) != normalize_slug(slug):
            logger.info("sticky_selection_renamed", slug=slug, country_id=selected.id, current_slug=known.slug)
            return None
        return Resolution(location=self._country_location(known), tier=ResolutionTier.STICKY, entity=known)

    async def _match_city(self, slug: str, session: Optional[BrowsingSession]) -> Optional[Resolution]:
        city = self.catalog.find_by_slug(LocationType.CITY, slug)
        if city is None:
            city = await self._fetch_city(slug)
        if city is None:
            return None
        return Resolution(location=self._city_location(city), tier=ResolutionTier.CITY, entity=city)

    async def _match_region(self, slug: str, session: Optional[BrowsingSession]) -> Optional[Resolution]:
        region = self.catalog.find_by_slug(LocationType.REGION, slug)
        if region is None and not self.catalog.is_loaded(LocationType.REGION):
            await self.catalog.load(LocationType.REGION)
            region = self.catalog.find_by_slug(LocationType.REGION, slug)
        if region is None:
            return None

        return Resolution(
            location=Location(type=LocationType.REGION, id=region.id, slug=region.slug, name=region.name),
            tier=ResolutionTier.REGION,
            entity=region,
            representative_city=self._representative_city(region),
        )

    async def _match_country(self, slug: str, session: Optional[BrowsingSession]) -> Optional[Resolution]:
        country = self.catalog.find_by_slug(LocationType.COUNTRY, slug)
        if country is None and not self.catalog.is_loaded(LocationType.COUNTRY):
            await self.catalog.load(LocationType.COUNTRY)
            country = self.catalog.find_by_slug(LocationType.COUNTRY, slug)
        if country is None:
            return None
        return Resolution(location=self._country_location(country), tier=ResolutionTier.COUNTRY, entity=country)

    # --- Helpers ---

    async def _fetch_city(self, slug: str) -> Optional[City]:
        try:
            remote = await self.catalog.directory.fetch_city_by_slug(slug)
        except Exception as e:
            logger.warning("city_lookup_failed", slug=slug, error=str(e))
            return None
        if remote is None:
            return None
        return self.catalog.remember(remote)

    def _representative_city(self, region: Region) -> Optional[City]:
        """
        The city shown for a region: a cached city of that region, else the
        region's first embedded city, else None.
        """
        for city in self.catalog.entities(LocationType.CITY):
            if city.region_id == region.id:
                return city
        if region.cities:
            return region.cities[0]
        return None

    @staticmethod
    def _city_location(city: City) -> Location:
        return Location(type=LocationType.CITY, id=city.id, slug=city.slug, name=city.name, region_id=city.region_id)

    @staticmethod
    def _country_location(country: Country) -> Location:
        return Location(type=LocationType.COUNTRY, id=country.id, slug=country.slug, name=country.name)

    @staticmethod
    def _unresolved(slug: str) -> Resolution:
        return Resolution(
            location=Location(type=LocationType.CITY, id=None, slug=slug, name=slug_to_display_name(slug)),
        )
