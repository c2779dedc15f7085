# bizdir/adapters/api/dependencies.py
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Depends, Query

from bizdir.core.domain.context import BrowsingSession
from bizdir.core.domain.models import Location, LocationType, SearchFilters, SortOption
from bizdir.core.domain.slugs import slug_to_display_name
from bizdir.core.use_cases.resolve_and_search import ResolveAndSearch
from bizdir.shared.config import settings
from bizdir.shared.container import Container


@inject
def get_resolve_and_search_use_case(
    use_case: ResolveAndSearch = Depends(Provide[Container.resolve_and_search_use_case]),
) -> ResolveAndSearch:
    """Dependency to inject the ResolveAndSearch interactor (container-managed)."""
    return use_case


def get_search_filters(
    sort_by: SortOption = Query(SortOption(settings.DEFAULT_SORT)),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=200),
    rating: Optional[float] = Query(None, ge=0, le=5),
) -> SearchFilters:
    return SearchFilters(sort_by=sort_by, page=page, limit=limit, search=search, rating=rating)


def get_browsing_session(
    selected_type: Optional[LocationType] = Query(None),
    selected_id: Optional[str] = Query(None),
    selected_slug: Optional[str] = Query(None),
    selected_name: Optional[str] = Query(None),
) -> BrowsingSession:
    """
    Rebuilds the visitor's session from the selection the client echoes back.

    The HTTP surface is stateless, so the previous selection (used for the
    sticky-country rule) travels as query parameters. An incomplete
    selection is ignored.
    """
    session = BrowsingSession()
    if selected_type and selected_id and selected_slug:
        session.selected = Location(
            type=selected_type,
            id=selected_id,
            slug=selected_slug,
            name=selected_name or slug_to_display_name(selected_slug),
        )
    return session
