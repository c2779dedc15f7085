# bizdir/adapters/api/schemas.py
from typing import List, Optional
from pydantic import BaseModel, Field

from bizdir.core.domain.models import (
    Business,
    Category,
    ListingResult,
    Location,
    LocationContext,
    Pagination,
)
from bizdir.adapters.api.presenters import fallback_notice, listing_headline

class ListingResponse(BaseModel):
    """Payload returned to the listing pages."""
    location: Location
    headline: str
    category: Optional[Category] = None
    subcategories: List[Category] = Field(default_factory=list)
    businesses: List[Business] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    location_context: Optional[LocationContext] = None
    notice: Optional[str] = None
    search_failed: bool = False

    @classmethod
    def from_result(cls, result: ListingResult) -> "ListingResponse":
        return cls(
            location=result.location,
            headline=listing_headline(result),
            category=result.category,
            subcategories=result.subcategories,
            businesses=result.businesses,
            pagination=result.pagination,
            location_context=result.location_context,
            notice=fallback_notice(result.location_context),
            search_failed=result.search_failed,
        )
