# bizdir/core/ports/business_search.py
from typing import Protocol
from bizdir.core.domain.models import SearchPage, SearchQuery

class IBusinessSearch(Protocol):
    """
    Port for the listings search endpoint.

    The endpoint may widen the location on its own and report that through
    `SearchPage.location_context`.
    """

    async def search_businesses(self, query: SearchQuery) -> SearchPage:
        """
        Executes one search call.

        Args:
            query: category, optional location scope, sort key and paging.

        Returns:
            One page of results.
        """
        ...
