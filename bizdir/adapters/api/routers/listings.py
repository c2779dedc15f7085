# bizdir/adapters/api/routers/listings.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
import structlog

from bizdir.adapters.api.dependencies import (
    get_browsing_session,
    get_resolve_and_search_use_case,
    get_search_filters,
)
from bizdir.adapters.api.schemas import ListingResponse
from bizdir.core.domain.context import BrowsingSession
from bizdir.core.domain.exceptions import CategoryNotFoundError, DomainError
from bizdir.core.domain.models import SearchFilters
from bizdir.core.use_cases.resolve_and_search import ResolveAndSearch

logger = structlog.get_logger()

router = APIRouter(prefix="/listings", tags=["Listings"])


async def _render(
    use_case: ResolveAndSearch,
    location_slug: str,
    category_slug: Optional[str],
    filters: SearchFilters,
    session: BrowsingSession,
) -> ListingResponse:
    try:
        result = await use_case.execute(
            location_slug,
            category_slug=category_slug,
            filters=filters,
            session=session,
        )

    except CategoryNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except DomainError as e:
        # Category lookup could not reach the directory
        logger.error("listing_domain_error", location=location_slug, category=category_slug, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    if result is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Navigation was superseded.")

    return ListingResponse.from_result(result)


@router.get(
    "/{location_slug}/{category_slug}",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    summary="Businesses of a category in a location",
)
async def category_listing(
    location_slug: str,
    category_slug: str,
    filters: SearchFilters = Depends(get_search_filters),
    session: BrowsingSession = Depends(get_browsing_session),
    use_case: ResolveAndSearch = Depends(get_resolve_and_search_use_case),
):
    """
    Resolves `location_slug` to a city, region or country and lists the
    businesses of `category_slug` there, widening to the parent location and
    then to all locations when nothing matches.

    A category that has subcategories returns them instead of businesses.
    """
    return await _render(use_case, location_slug, category_slug, filters, session)


@router.get(
    "/{location_slug}",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    summary="All businesses in a location",
)
async def location_listing(
    location_slug: str,
    filters: SearchFilters = Depends(get_search_filters),
    session: BrowsingSession = Depends(get_browsing_session),
    use_case: ResolveAndSearch = Depends(get_resolve_and_search_use_case),
):
    return await _render(use_case, location_slug, None, filters, session)
