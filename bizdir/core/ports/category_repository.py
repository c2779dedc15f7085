# bizdir/core/ports/category_repository.py
from typing import Protocol, Optional
from bizdir.core.domain.models import Category

class ICategoryRepository(Protocol):
    """Port for reading the category tree."""

    async def fetch_category_by_slug(self, slug: str) -> Optional[Category]:
        """Returns the category (with its subcategories) or None if unknown."""
        ...
