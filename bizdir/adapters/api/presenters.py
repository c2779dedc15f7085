# bizdir/adapters/api/presenters.py
from typing import Optional

from bizdir.core.domain.models import ListingResult, LocationContext

def fallback_notice(context: Optional[LocationContext]) -> Optional[str]:
    """
    Banner text shown above the listings when results come from a wider
    scope than the one requested. None when no notice is due.
    """
    if context is None or not context.fallback_applied or context.applied is None:
        return None
    requested_name = context.requested.name if context.requested else "the selected location"
    return (
        f"No businesses found in {requested_name}. "
        f"Showing results from {context.applied.name} ({context.applied.type.value})."
    )

def listing_headline(result: ListingResult) -> str:
    """Page heading, derived from the resolved location."""
    if result.category is None:
        return f"All Businesses in {result.location.name}"
    return f"Best {result.category.name} in {result.location.name}"
