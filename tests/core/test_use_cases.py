# tests/core/test_use_cases.py
import asyncio
import pytest

from bizdir.core.domain.context import BrowsingSession
from bizdir.core.domain.exceptions import CategoryNotFoundError, DomainError
from bizdir.core.domain.models import LocationType, ScopeType, SearchFilters, SortOption

@pytest.mark.asyncio
class TestResolveAndSearch:

    async def test_city_with_results(self, container):
        """
        Scenario: /riyadh/restaurants.
        Expected: City-level results, no fallback, Riyadh selected on the session.
        """
        # Arrange
        use_case = container.resolve_and_search_use_case()
        session = BrowsingSession()

        # Act
        result = await use_case.execute("riyadh", "restaurants", session=session)

        # Assert
        assert result.location.type == LocationType.CITY
        assert result.location.id == "city-riyadh"
        assert [b.id for b in result.businesses] == ["biz-1"]
        assert result.location_context.fallback_applied is False
        assert session.selected.id == "city-riyadh"
        assert session.selected_city.id == "city-riyadh"

    async def test_empty_region_falls_back_to_country(self, container):
        """
        Scenario: /najran/restaurants where Najran has no restaurants.
        Expected: Results from Saudi Arabia with fallback_applied set.
        """
        use_case = container.resolve_and_search_use_case()

        result = await use_case.execute("najran", "restaurants")

        assert result.location.type == LocationType.REGION
        context = result.location_context
        assert context.requested.id == "reg-najran"
        assert context.applied.id == "ctry-sa"
        assert context.applied.type == ScopeType.COUNTRY
        assert context.fallback_applied is True
        assert len(result.businesses) == 2

    async def test_unknown_location_lists_global_results(self, container):
        """
        Scenario: /unknown-place-xyz/restaurants.
        Expected: Display name derived from the slug, unscoped results, no fallback flag.
        """
        use_case = container.resolve_and_search_use_case()
        session = BrowsingSession()

        result = await use_case.execute("unknown-place-xyz", "restaurants", session=session)

        assert result.location.id is None
        assert result.location.name == "Unknown Place Xyz"
        assert result.location_context.requested is None
        assert result.location_context.applied.type == ScopeType.GLOBAL
        assert result.location_context.fallback_applied is False
        assert session.selected is None

    async def test_repeated_navigation_is_idempotent(self, container, mock_directory):
        use_case = container.resolve_and_search_use_case()
        session = BrowsingSession()

        first = await use_case.execute("najran", "restaurants", session=session)
        second = await use_case.execute("najran", "restaurants", session=session)

        assert first == second
        # Catalog is shared, so the second navigation hits the cache
        assert mock_directory.fetch_regions.await_count == 1

    async def test_country_selection_is_sticky(self, container, mock_directory):
        use_case = container.resolve_and_search_use_case()
        session = BrowsingSession()

        await use_case.execute("saudi-arabia", "restaurants", session=session)
        mock_directory.fetch_city_by_slug.reset_mock()

        result = await use_case.execute("saudi-arabia", "restaurants", session=session)

        assert result.location.id == "ctry-sa"
        mock_directory.fetch_city_by_slug.assert_not_awaited()

    async def test_superseded_navigation_is_discarded(self, container, mock_directory):
        """
        Scenario: A slow navigation is overtaken by a newer one on the same session.
        Expected: The slow one returns None and never touches the session.
        """
        use_case = container.resolve_and_search_use_case()
        session = BrowsingSession()
        release = asyncio.Event()
        fast_lookup = mock_directory.fetch_city_by_slug.side_effect

        async def slow_city_lookup(slug):
            if slug == "jeddah":
                await release.wait()
            return fast_lookup(slug)

        mock_directory.fetch_city_by_slug.side_effect = slow_city_lookup

        slow = asyncio.create_task(use_case.execute("jeddah", "restaurants", session=session))
        await asyncio.sleep(0)
        latest = await use_case.execute("riyadh", "restaurants", session=session)
        release.set()
        stale = await slow

        assert stale is None
        assert latest.location.id == "city-riyadh"
        assert session.selected.id == "city-riyadh"

    async def test_parent_category_lists_subcategories(self, container, mock_directory):
        use_case = container.resolve_and_search_use_case()

        result = await use_case.execute("riyadh", "healthcare")

        assert [c.slug for c in result.subcategories] == ["clinics", "pharmacies"]
        assert result.businesses == []
        assert result.location_context is None
        mock_directory.search_businesses.assert_not_awaited()

    async def test_unknown_category(self, container):
        use_case = container.resolve_and_search_use_case()

        with pytest.raises(CategoryNotFoundError):
            await use_case.execute("riyadh", "space-tourism")

    async def test_category_lookup_failure_is_wrapped(self, container, mock_directory):
        use_case = container.resolve_and_search_use_case()
        mock_directory.fetch_category_by_slug.side_effect = RuntimeError("socket closed")

        with pytest.raises(DomainError) as excinfo:
            await use_case.execute("riyadh", "restaurants")

        assert "socket closed" in str(excinfo.value)

    async def test_search_failure_is_reported(self, container, mock_directory):
        """
        Scenario: The search endpoint is down.
        Expected: search_failed is set and no location context is produced.
        """
        use_case = container.resolve_and_search_use_case()
        mock_directory.search_businesses.side_effect = RuntimeError("503")

        result = await use_case.execute("riyadh", "restaurants")

        assert result.search_failed is True
        assert result.location_context is None
        assert result.location.id == "city-riyadh"

    async def test_location_only_listing_searches_every_category(self, container, mock_directory):
        use_case = container.resolve_and_search_use_case()
        filters = SearchFilters(sort_by=SortOption.NEWEST)

        result = await use_case.execute("riyadh", filters=filters)

        assert result.category is None
        query = mock_directory.search_businesses.await_args.args[0]
        assert query.category_id is None
        assert query.sort_by == SortOption.NEWEST
        mock_directory.fetch_category_by_slug.assert_not_awaited()
