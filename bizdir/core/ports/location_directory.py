# bizdir/core/ports/location_directory.py
from typing import Protocol, Optional, List
from bizdir.core.domain.models import City, Country, Region

class ILocationDirectory(Protocol):
    """
    Port for reading the geographic hierarchy (countries, regions, cities).
    Implementations: DirectoryApiClient (REST), FileSystemDirectory (JSON seed).

    Any method may raise on transport failure; callers decide whether the
    failure is fatal.
    """

    async def fetch_city_by_slug(self, slug: str) -> Optional[City]:
        """
        Looks up a single city by its slug.

        Returns:
            The City if found, None otherwise.
        """
        ...

    async def fetch_countries(self) -> List[Country]:
        """Returns all countries, each with its (possibly empty) embedded regions."""
        ...

    async def fetch_regions(self, country_id: Optional[str] = None) -> List[Region]:
        """
        Returns regions, optionally restricted to one country.
        Regions may embed their cities.
        """
        ...

    async def fetch_cities(self) -> List[City]:
        """Returns all cities."""
        ...
