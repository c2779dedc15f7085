# bizdir/core/domain/models.py
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, computed_field

# --- Enums ---

class LocationType(str, Enum):
    """Granularity of a resolved location."""
    CITY = "city"
    REGION = "region"
    COUNTRY = "country"

class ScopeType(str, Enum):
    """Granularity at which a search was executed (adds the unscoped level)."""
    CITY = "city"
    REGION = "region"
    COUNTRY = "country"
    GLOBAL = "global"

class SortOption(str, Enum):
    """Sort keys understood by the listings search endpoint."""
    POPULAR = "popular"
    RATING_HIGH = "rating_high"
    RATING_LOW = "rating_low"
    NEWEST = "newest"
    OLDEST = "oldest"
    VERIFIED = "verified"
    NOT_VERIFIED = "not_verified"
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"

# --- Geographic Catalog Entities ---

class _DirectoryModel(BaseModel):
    # The listings API speaks camelCase; we keep snake_case internally.
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

class City(_DirectoryModel):
    id: str
    name: str
    slug: str
    region_id: Optional[str] = Field(None, alias="regionId")

class Region(_DirectoryModel):
    """A state / province. Belongs to exactly one Country."""
    id: str
    name: str
    slug: str
    country_id: Optional[str] = Field(None, alias="countryId")
    cities: List[City] = Field(default_factory=list)

class Country(_DirectoryModel):
    """Root of the location hierarchy. `regions` may arrive empty (partial tree)."""
    id: str
    name: str
    slug: str
    code: Optional[str] = None
    regions: List[Region] = Field(default_factory=list)

CatalogEntity = Union[City, Region, Country]

class Category(_DirectoryModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[str] = Field(None, alias="parentId")
    subcategories: List["Category"] = Field(default_factory=list)

    @property
    def has_subcategories(self) -> bool:
        return bool(self.subcategories)

class Business(_DirectoryModel):
    """
    A listing as returned by the search endpoint.
    Only identity fields are modelled; everything else is passed through.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    name: str
    slug: str

# --- Resolution Results (transient) ---

class Location(BaseModel):
    """
    The resolved meaning of a URL slug.
    `id` is None when nothing matched; `name` is then a display-only fallback.
    """
    type: LocationType
    id: Optional[str] = None
    slug: str
    name: str
    region_id: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.id is not None

    def as_ref(self) -> "LocationRef":
        return LocationRef(id=self.id, type=ScopeType(self.type.value), name=self.name)

class LocationRef(BaseModel):
    """Compact reference used inside LocationContext."""
    id: Optional[str] = None
    type: ScopeType
    name: str

class LocationContext(BaseModel):
    """
    Describes the gap between the location a user asked for and the
    scope whose results are actually being shown.
    """
    requested: Optional[LocationRef] = None
    applied: Optional[LocationRef] = None

    @computed_field
    @property
    def fallback_applied(self) -> bool:
        requested_id = self.requested.id if self.requested else None
        applied_id = self.applied.id if self.applied else None
        return applied_id != requested_id

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "LocationContext":
        """Builds a context from the search endpoint's camelCase payload."""
        return cls(requested=payload.get("requested"), applied=payload.get("applied"))

# --- Search Contracts ---

class SearchFilters(BaseModel):
    """Caller-selected filters; the planner passes them through untouched."""
    sort_by: SortOption = SortOption.POPULAR
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    search: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)

    def normalized_search(self) -> Optional[str]:
        if self.search is None:
            return None
        term = self.search.strip()
        return term or None

class SearchQuery(BaseModel):
    """A single call to the business search endpoint."""
    category_id: Optional[str] = None
    location_id: Optional[str] = None
    location_type: Optional[LocationType] = None
    sort_by: SortOption = SortOption.POPULAR
    page: int = 1
    limit: int = 20
    search: Optional[str] = None
    rating: Optional[float] = None

    @property
    def is_scoped(self) -> bool:
        return self.location_id is not None

class Pagination(_DirectoryModel):
    total: int = 0
    total_pages: int = Field(1, alias="totalPages")
    page: int = 1
    limit: int = 20

class SearchPage(BaseModel):
    """One page of search results, possibly carrying the server's own context."""
    businesses: List[Business] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    location_context: Optional[LocationContext] = None

class PlannedSearch(BaseModel):
    """Output of the fallback planner."""
    businesses: List[Business] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    location_context: LocationContext

class ListingResult(BaseModel):
    """What the presentation layer receives for one navigation."""
    location: Location
    category: Optional[Category] = None
    subcategories: List[Category] = Field(default_factory=list)
    businesses: List[Business] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    location_context: Optional[LocationContext] = None
    search_failed: bool = False

Category.model_rebuild()
