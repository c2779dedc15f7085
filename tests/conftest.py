# tests/conftest.py
import pytest
from unittest.mock import AsyncMock, MagicMock

from bizdir.shared.container import container as app_container
from bizdir.shared.resilience import reset_circuit_breakers
from bizdir.core.domain.models import (
    Business,
    Category,
    City,
    Country,
    Pagination,
    Region,
    SearchPage,
)

# --- Directory fixture data (Saudi Arabia, partial tree) ---

SAUDI_ARABIA = Country(id="ctry-sa", name="Saudi Arabia", slug="saudi-arabia", code="SA")

RIYADH_REGION = Region(id="reg-riyadh", name="Riyadh Region", slug="riyadh-region", country_id="ctry-sa")
MAKKAH_REGION = Region(id="reg-makkah", name="Makkah", slug="makkah", country_id="ctry-sa")
NAJRAN_REGION = Region(id="reg-najran", name="Najran", slug="najran", country_id="ctry-sa")

RIYADH = City(id="city-riyadh", name="Riyadh", slug="riyadh", region_id="reg-riyadh")
JEDDAH = City(id="city-jeddah", name="Jeddah", slug="jeddah", region_id="reg-makkah")
SHARURAH = City(id="city-sharurah", name="Sharurah", slug="sharurah", region_id="reg-najran")

RESTAURANTS = Category(id="cat-restaurants", name="Restaurants", slug="restaurants")
HEALTHCARE = Category(
    id="cat-health",
    name="Healthcare",
    slug="healthcare",
    subcategories=[
        Category(id="cat-clinics", name="Clinics", slug="clinics", parent_id="cat-health"),
        Category(id="cat-pharmacies", name="Pharmacies", slug="pharmacies", parent_id="cat-health"),
    ],
)

NAJD_VILLAGE = Business(id="biz-1", name="Najd Village", slug="najd-village", averageRating=4.6)
AL_BAIK = Business(id="biz-3", name="Al Baik Tahlia", slug="al-baik-tahlia", averageRating=4.8)

# Scopes (location ids) that hold at least one restaurant; None is the unscoped search
STOCKED_SCOPES = {
    "city-riyadh": [NAJD_VILLAGE],
    "reg-riyadh": [NAJD_VILLAGE],
    "city-jeddah": [AL_BAIK],
    "reg-makkah": [AL_BAIK],
    "ctry-sa": [NAJD_VILLAGE, AL_BAIK],
    None: [NAJD_VILLAGE, AL_BAIK],
}

def make_page(businesses, page: int = 1, limit: int = 20) -> SearchPage:
    return SearchPage(
        businesses=list(businesses),
        pagination=Pagination(total=len(businesses), total_pages=1, page=page, limit=limit),
    )

DIRECTORY_METHODS = [
    "fetch_city_by_slug",
    "fetch_countries",
    "fetch_regions",
    "fetch_cities",
    "fetch_category_by_slug",
    "search_businesses",
]

@pytest.fixture(scope="function")
def mock_directory():
    """
    Returns a mock directory implementing all three ports over the Saudi
    fixture data. Najran has no restaurants; everything else is stocked.
    """
    cities = [RIYADH, JEDDAH, SHARURAH]
    regions = [RIYADH_REGION, MAKKAH_REGION, NAJRAN_REGION]
    categories = {c.slug: c for c in (RESTAURANTS, HEALTHCARE)}

    def city_by_slug(slug):
        return next((c for c in cities if c.slug == slug.lower()), None)

    def regions_of(country_id=None):
        return [r for r in regions if country_id is None or r.country_id == country_id]

    def search(query):
        return make_page(STOCKED_SCOPES.get(query.location_id, []), query.page, query.limit)

    directory = MagicMock(spec=DIRECTORY_METHODS)
    # Async methods must be mocked with AsyncMock
    directory.fetch_city_by_slug = AsyncMock(side_effect=city_by_slug)
    directory.fetch_countries = AsyncMock(return_value=[SAUDI_ARABIA])
    directory.fetch_regions = AsyncMock(side_effect=regions_of)
    directory.fetch_cities = AsyncMock(return_value=cities)
    directory.fetch_category_by_slug = AsyncMock(side_effect=lambda slug: categories.get(slug))
    directory.search_businesses = AsyncMock(side_effect=search)
    return directory

@pytest.fixture(autouse=True)
def fresh_circuit_breakers():
    reset_circuit_breakers()
    yield
    reset_circuit_breakers()

@pytest.fixture(scope="function")
def container(mock_directory):
    """
    Sets up the Dependency Injection Container for testing.
    The directory adapter is replaced by the mock and the catalog cache is
    dropped so every test starts cold.
    """
    app_container.directory.override(mock_directory)
    app_container.catalog.reset()

    yield app_container

    app_container.directory.reset_override()
    app_container.catalog.reset()
    app_container.unwire()
