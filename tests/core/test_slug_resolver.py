# tests/core/test_slug_resolver.py
import asyncio
import pytest

from bizdir.core.domain.context import BrowsingSession
from bizdir.core.domain.models import City, Country, Location, LocationType, Region
from bizdir.core.location.catalog import LocationCatalog
from bizdir.core.location.resolver import RESOLUTION_ORDER, ResolutionTier, SlugResolver

from tests.conftest import NAJRAN_REGION, RIYADH_REGION, SAUDI_ARABIA

def sticky_session(slug: str = "saudi-arabia", country_id: str = "ctry-sa") -> BrowsingSession:
    session = BrowsingSession()
    session.select(Location(type=LocationType.COUNTRY, id=country_id, slug=slug, name="Saudi Arabia"))
    return session

@pytest.fixture
def resolver(mock_directory):
    return SlugResolver(LocationCatalog(mock_directory))

def test_resolution_order_is_most_specific_first():
    assert RESOLUTION_ORDER == (
        ResolutionTier.STICKY,
        ResolutionTier.CITY,
        ResolutionTier.REGION,
        ResolutionTier.COUNTRY,
    )

@pytest.mark.asyncio
class TestSlugResolver:

    async def test_city_match_skips_later_tiers(self, resolver, mock_directory):
        """
        Scenario: 'riyadh' is a known city.
        Expected: Resolves at the city tier; regions and countries are never fetched.
        """
        resolution = await resolver.resolve("riyadh")

        assert resolution.tier == ResolutionTier.CITY
        assert resolution.location.type == LocationType.CITY
        assert resolution.location.id == "city-riyadh"
        assert resolution.location.region_id == "reg-riyadh"
        assert resolution.selected_city.id == "city-riyadh"
        mock_directory.fetch_city_by_slug.assert_awaited_once_with("riyadh")
        mock_directory.fetch_regions.assert_not_awaited()
        mock_directory.fetch_countries.assert_not_awaited()

    async def test_cached_city_needs_no_remote_call(self, resolver, mock_directory):
        await resolver.resolve("jeddah")
        await resolver.resolve("JEDDAH")

        assert mock_directory.fetch_city_by_slug.await_count == 1

    async def test_city_wins_over_region_with_same_slug(self, resolver, mock_directory):
        """
        Scenario: 'makkah' is both a region and (here) a city.
        Expected: The city wins.
        """
        mock_directory.fetch_city_by_slug.side_effect = lambda slug: (
            City(id="city-makkah", name="Makkah", slug="makkah", region_id="reg-makkah")
            if slug == "makkah" else None
        )

        resolution = await resolver.resolve("makkah")

        assert resolution.tier == ResolutionTier.CITY
        assert resolution.location.id == "city-makkah"
        mock_directory.fetch_regions.assert_not_awaited()

    async def test_region_match_has_representative_city(self, resolver, mock_directory):
        """
        Scenario: 'najran' is a region only.
        Expected: Region tier, with one of its cities as the selected city.
        """
        mock_directory.fetch_regions.side_effect = None
        mock_directory.fetch_regions.return_value = [
            Region(
                id="reg-najran", name="Najran", slug="najran", country_id="ctry-sa",
                cities=[City(id="city-sharurah", name="Sharurah", slug="sharurah")],
            )
        ]

        resolution = await resolver.resolve("najran")

        assert resolution.tier == ResolutionTier.REGION
        assert resolution.location.type == LocationType.REGION
        assert resolution.location.id == "reg-najran"
        assert resolution.selected_city.id == "city-sharurah"
        mock_directory.fetch_countries.assert_not_awaited()

    async def test_region_without_cities_has_no_representative(self, resolver):
        resolution = await resolver.resolve("najran")

        assert resolution.tier == ResolutionTier.REGION
        assert resolution.representative_city is None

    async def test_country_match(self, resolver, mock_directory):
        resolution = await resolver.resolve("saudi-arabia")

        assert resolution.tier == ResolutionTier.COUNTRY
        assert resolution.location.type == LocationType.COUNTRY
        assert resolution.location.id == "ctry-sa"
        mock_directory.fetch_countries.assert_awaited_once()

    async def test_unresolved_slug_is_title_cased(self, resolver):
        """
        Scenario: Nothing matches 'unknown-place-xyz'.
        Expected: An unresolved city-typed location with a display name.
        """
        resolution = await resolver.resolve("unknown-place-xyz")

        assert not resolution.is_resolved
        assert resolution.location.type == LocationType.CITY
        assert resolution.location.id is None
        assert resolution.location.name == "Unknown Place Xyz"

    async def test_region_list_is_loaded_only_once(self, resolver, mock_directory):
        await resolver.resolve("unknown-one")
        await resolver.resolve("unknown-two")

        assert mock_directory.fetch_regions.await_count == 1
        assert mock_directory.fetch_countries.await_count == 1

    async def test_sticky_country_skips_remote_lookups(self, resolver, mock_directory):
        """
        Scenario: The visitor already selected Saudi Arabia under the same slug.
        Expected: Resolved from the session; no directory calls at all.
        """
        resolution = await resolver.resolve("saudi-arabia", sticky_session())

        assert resolution.tier == ResolutionTier.STICKY
        assert resolution.location.id == "ctry-sa"
        mock_directory.fetch_city_by_slug.assert_not_awaited()
        mock_directory.fetch_regions.assert_not_awaited()
        mock_directory.fetch_countries.assert_not_awaited()

    async def test_sticky_ignored_for_other_slug(self, resolver):
        resolution = await resolver.resolve("riyadh", sticky_session())

        assert resolution.tier == ResolutionTier.CITY

    async def test_sticky_ignored_after_rename(self, resolver, mock_directory):
        """
        Scenario: The catalog knows the sticky country under a new slug.
        Expected: The stale selection is ignored and resolution falls through.
        """
        renamed = SAUDI_ARABIA.model_copy(update={"slug": "ksa"})
        mock_directory.fetch_countries.return_value = [renamed]
        resolver.catalog.remember(renamed)

        resolution = await resolver.resolve("saudi-arabia", sticky_session())

        assert resolution.tier != ResolutionTier.STICKY
        assert not resolution.is_resolved

    async def test_failing_tier_counts_as_no_match(self, resolver, mock_directory):
        """
        Scenario: The city lookup fails remotely.
        Expected: Resolution continues with regions and countries.
        """
        mock_directory.fetch_city_by_slug.side_effect = RuntimeError("connection reset")

        resolution = await resolver.resolve("saudi-arabia")

        assert resolution.tier == ResolutionTier.COUNTRY

    async def test_all_tiers_failing_yields_unresolved(self, resolver, mock_directory):
        mock_directory.fetch_city_by_slug.side_effect = RuntimeError("down")
        mock_directory.fetch_regions.side_effect = RuntimeError("down")
        mock_directory.fetch_countries.side_effect = RuntimeError("down")

        resolution = await resolver.resolve("riyadh")

        assert not resolution.is_resolved
        assert resolution.location.name == "Riyadh"

    async def test_concurrent_resolutions_agree(self, resolver):
        """
        Scenario: The same slug is resolved twice concurrently on a cold catalog.
        Expected: Both produce the same location.
        """
        first, second = await asyncio.gather(resolver.resolve("najran"), resolver.resolve("najran"))

        assert first.location == second.location
        assert first.tier == second.tier == ResolutionTier.REGION

    async def test_region_list_is_refetched_after_failure(self, resolver, mock_directory):
        """
        Scenario: The region list fails once while the country list embeds only
        some regions.
        Expected: The next resolution fetches the full region list and finds Najran.
        """
        mock_directory.fetch_regions.side_effect = [
            RuntimeError("502 Bad Gateway"),
            [RIYADH_REGION, NAJRAN_REGION],
        ]
        mock_directory.fetch_countries.return_value = [
            SAUDI_ARABIA.model_copy(update={"regions": [RIYADH_REGION]})
        ]

        first = await resolver.resolve("najran")
        second = await resolver.resolve("najran")

        assert not first.is_resolved
        assert second.tier == ResolutionTier.REGION
        assert second.location.id == "reg-najran"
        assert mock_directory.fetch_regions.await_count == 2

    async def test_partial_country_cache_still_loads_country_list(self, resolver, mock_directory):
        """
        Scenario: A country is cached from elsewhere before the country list is loaded.
        Expected: Another country's slug still triggers the full load.
        """
        resolver.catalog.remember(Country(id="ctry-ae", name="United Arab Emirates", slug="united-arab-emirates"))

        resolution = await resolver.resolve("saudi-arabia")

        assert resolution.tier == ResolutionTier.COUNTRY
        mock_directory.fetch_countries.assert_awaited_once()
