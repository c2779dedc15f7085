# bizdir/core/use_cases/resolve_and_search.py
import structlog
from typing import Optional

from bizdir.core.domain.context import BrowsingSession
from bizdir.core.domain.exceptions import CategoryNotFoundError, DomainError, SearchFailedError
from bizdir.core.domain.models import Category, ListingResult, SearchFilters
from bizdir.core.location.resolver import SlugResolver
from bizdir.core.ports.category_repository import ICategoryRepository
from bizdir.core.search.planner import FallbackSearchPlanner
from bizdir.shared.telemetry import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

class ResolveAndSearch:
    """
    Use Case: turns a `/{location}/{category}` navigation into listings.

    Responsibilities:
    1. Resolves the location slug (city > region > country > display fallback).
    2. Loads the category; parent categories list their subcategories
       instead of businesses.
    3. Runs the widening search and returns requested vs. applied scope.
    4. Discards the outcome of a navigation that has been superseded on
       the same session.
    """

    def __init__(
        self,
        resolver: SlugResolver,
        planner: FallbackSearchPlanner,
        categories: ICategoryRepository,
    ):
        self.resolver = resolver
        self.planner = planner
        self.categories = categories

    async def execute(
        self,
        location_slug: str,
        category_slug: Optional[str] = None,
        filters: Optional[SearchFilters] = None,
        session: Optional[BrowsingSession] = None,
    ) -> Optional[ListingResult]:
        """
        Args:
            location_slug: the `{location}` path segment.
            category_slug: the `{category}` path segment; None lists every category.
            filters: sort/paging/filters, forwarded to the search unchanged.
            session: the visitor's navigation state. A throwaway session is
                used when omitted.

        Returns:
            The listing result, or None if a newer navigation started on
            `session` while this one was in flight.

        Raises:
            CategoryNotFoundError: unknown category slug.
        """
        session = session if session is not None else BrowsingSession()
        filters = filters if filters is not None else SearchFilters()
        token = session.begin_navigation()

        with tracer.start_as_current_span("use_case.resolve_and_search") as span:
            span.set_attribute("app.location_slug", location_slug)
            span.set_attribute("app.category_slug", category_slug or "")

            logger.info("listing_requested", location=location_slug, category=category_slug,
                        sort_by=filters.sort_by.value, page=filters.page)

            resolution = await self.resolver.resolve(location_slug, session)
            if not session.is_current(token):
                return self._discard(location_slug, token, session)

            if resolution.is_resolved:
                session.select(resolution.location, resolution.selected_city)

            category = await self._load_category(category_slug)
            if not session.is_current(token):
                return self._discard(location_slug, token, session)

            result = ListingResult(location=resolution.location, category=category)

            if category is not None and category.has_subcategories:
                result.subcategories = list(category.subcategories)
                logger.info("listing_subcategories", category=category.slug, count=len(category.subcategories))
                return result

            try:
                planned = await self.planner.execute(
                    category.id if category is not None else None,
                    resolution.location if resolution.is_resolved else None,
                    filters,
                )
            except SearchFailedError as e:
                if not session.is_current(token):
                    return self._discard(location_slug, token, session)
                logger.error("listing_search_failed", location=location_slug, error=e.message)
                result.search_failed = True
                return result

            if not session.is_current(token):
                return self._discard(location_slug, token, session)

            result.businesses = planned.businesses
            result.pagination = planned.pagination
            result.location_context = planned.location_context

            span.set_attribute("app.fallback_applied", planned.location_context.fallback_applied)
            logger.info("listing_ready", location=location_slug, results=len(planned.businesses),
                        fallback_applied=planned.location_context.fallback_applied)
            return result

    async def _load_category(self, category_slug: Optional[str]) -> Optional[Category]:
        if category_slug is None:
            return None
        try:
            category = await self.categories.fetch_category_by_slug(category_slug)
        except DomainError:
            raise
        except Exception as e:
            logger.error("category_lookup_failed", category=category_slug, error=str(e))
            raise DomainError(f"Failed to load category '{category_slug}': {str(e)}")
        if category is None:
            raise CategoryNotFoundError(category_slug)
        return category

    @staticmethod
    def _discard(location_slug: str, token: int, session: BrowsingSession) -> None:
        logger.info("stale_navigation_discarded", location=location_slug, token=token,
                    current_token=session.navigation_token)
        return None
