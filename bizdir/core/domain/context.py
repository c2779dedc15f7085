# bizdir/core/domain/context.py
from typing import Optional
from pydantic import BaseModel

from bizdir.core.domain.models import City, Location, LocationType

class BrowsingSession(BaseModel):
    """
    Per-visitor navigation state, passed explicitly into each listing request.

    Fields:
      - selected: the last location the visitor picked or landed on. A
        `country` selection is "sticky": navigating to the same slug reuses it.
      - selected_city: the city used for city-level widgets. For a region it is
        the region's representative city.
      - navigation_token: increases on every navigation; results produced for
        an older token are discarded.
    """
    selected: Optional[Location] = None
    selected_city: Optional[City] = None
    navigation_token: int = 0

    def begin_navigation(self) -> int:
        """Starts a new navigation and returns its token."""
        self.navigation_token += 1
        return self.navigation_token

    def is_current(self, token: int) -> bool:
        return token == self.navigation_token

    def sticky_country(self, slug: str) -> Optional[Location]:
        """Returns the selected country if it was selected under `slug`."""
        selected = self.selected
        if selected is None or selected.type != LocationType.COUNTRY or not selected.id:
            return None
        if selected.slug.lower() != slug.lower():
            return None
        return selected

    def select(self, location: Location, city: Optional[City] = None) -> None:
        """
        Records a resolved (or explicitly picked) location.
        City and region selections replace the selected city; a country
        selection leaves it alone.
        """
        self.selected = location
        if location.type != LocationType.COUNTRY:
            self.selected_city = city
