# bizdir/core/search/planner.py
import structlog
from enum import Enum
from typing import Optional

from bizdir.core.domain.exceptions import SearchFailedError
from bizdir.core.domain.models import (
    Location,
    LocationContext,
    LocationRef,
    LocationType,
    PlannedSearch,
    ScopeType,
    SearchFilters,
    SearchPage,
    SearchQuery,
)
from bizdir.core.location.catalog import LocationCatalog
from bizdir.core.ports.business_search import IBusinessSearch
from bizdir.shared.config import settings
from bizdir.shared.telemetry import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

class SearchScope(str, Enum):
    """States of the widening search."""
    EXACT = "exact"
    PARENT = "parent"
    GLOBAL = "global"

class FallbackSearchPlanner:
    """
    Runs a business search for a resolved location and widens the scope
    when nothing is found: EXACT -> PARENT -> GLOBAL.

    The planner owns geographic scope only. Sort key, paging, search term
    and rating are forwarded unchanged to every attempt.
    """

    def __init__(
        self,
        search: IBusinessSearch,
        catalog: LocationCatalog,
        fallback_enabled: bool = settings.CLIENT_FALLBACK_ENABLED,
        global_label: str = settings.GLOBAL_SCOPE_LABEL,
    ):
        self.search = search
        self.catalog = catalog
        self.fallback_enabled = fallback_enabled
        self.global_ref = LocationRef(id=None, type=ScopeType.GLOBAL, name=global_label)

    async def execute(
        self,
        category_id: Optional[str],
        location: Optional[Location],
        filters: SearchFilters,
    ) -> PlannedSearch:
        """
        Args:
            category_id: category to search in (None searches every category).
            location: the resolved location, or None when resolution failed.
            filters: caller-selected sort/paging/filters.

        Raises:
            SearchFailedError: when a search call fails. No context is
            produced in that case.
        """
        with tracer.start_as_current_span("fallback_planner.execute") as span:
            if location is None or not location.is_resolved:
                span.set_attribute("app.search_scope", SearchScope.GLOBAL.value)
                page = await self._run(SearchScope.GLOBAL, category_id, None, filters)
                return self._finish(page, requested=None, applied=self.global_ref)

            requested = location.as_ref()

            # EXACT
            page = await self._run(SearchScope.EXACT, category_id, requested, filters)
            if page.location_context is not None:
                logger.info("server_context_adopted", location_id=location.id,
                            fallback_applied=page.location_context.fallback_applied)
                span.set_attribute("app.search_scope", "server")
                return PlannedSearch(
                    businesses=page.businesses,
                    pagination=page.pagination,
                    location_context=page.location_context,
                )
            if self._has_results(page) or not self.fallback_enabled:
                span.set_attribute("app.search_scope", SearchScope.EXACT.value)
                return self._finish(page, requested=requested, applied=requested)

            # PARENT
            parent = await self._parent_of(location)
            if parent is not None:
                page = await self._run(SearchScope.PARENT, category_id, parent, filters)
                if self._has_results(page):
                    span.set_attribute("app.search_scope", SearchScope.PARENT.value)
                    return self._finish(page, requested=requested, applied=parent)

            # GLOBAL (terminal)
            span.set_attribute("app.search_scope", SearchScope.GLOBAL.value)
            page = await self._run(SearchScope.GLOBAL, category_id, None, filters)
            return self._finish(page, requested=requested, applied=self.global_ref)

    async def _parent_of(self, location: Location) -> Optional[LocationRef]:
        """
        Immediate parent: city -> region, region -> country, country -> none.
        Orphaned references resolve to None.
        """
        if location.type == LocationType.CITY:
            region_id = location.region_id
            if region_id is None:
                city = await self.catalog.lookup(LocationType.CITY, location.id)
                region_id = city.region_id if city is not None else None
            region = await self.catalog.lookup(LocationType.REGION, region_id)
            if region is None:
                logger.info("parent_scope_missing", location_id=location.id, location_type=location.type.value)
                return None
            return LocationRef(id=region.id, type=ScopeType.REGION, name=region.name)

        if location.type == LocationType.REGION:
            region = await self.catalog.lookup(LocationType.REGION, location.id)
            country = await self.catalog.lookup(
                LocationType.COUNTRY, region.country_id if region is not None else None
            )
            if country is None:
                logger.info("parent_scope_missing", location_id=location.id, location_type=location.type.value)
                return None
            return LocationRef(id=country.id, type=ScopeType.COUNTRY, name=country.name)

        return None

    async def _run(
        self,
        scope: SearchScope,
        category_id: Optional[str],
        target: Optional[LocationRef],
        filters: SearchFilters,
    ) -> SearchPage:
        query = SearchQuery(
            category_id=category_id,
            location_id=target.id if target is not None else None,
            location_type=LocationType(target.type.value) if target is not None else None,
            sort_by=filters.sort_by,
            page=filters.page,
            limit=filters.limit,
            search=filters.normalized_search(),
            rating=filters.rating,
        )
        try:
            page = await self.search.search_businesses(query)
        except Exception as e:
            logger.error("search_failed", scope=scope.value, location_id=query.location_id, error=str(e))
            raise SearchFailedError(scope.value, str(e)) from e

        logger.debug("search_attempt", scope=scope.value, location_id=query.location_id,
                     location_type=query.location_type.value if query.location_type else None,
                     results=len(page.businesses))
        return page

    @staticmethod
    def _has_results(page: SearchPage) -> bool:
        # Judged on the whole result set; a page past the end is still a hit
        return page.pagination.total > 0 or bool(page.businesses)

    @staticmethod
    def _finish(page: SearchPage, requested: Optional[LocationRef], applied: Optional[LocationRef]) -> PlannedSearch:
        return PlannedSearch(
            businesses=page.businesses,
            pagination=page.pagination,
            location_context=LocationContext(requested=requested, applied=applied),
        )
