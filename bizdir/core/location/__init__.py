from .catalog import LocationCatalog
from .resolver import RESOLUTION_ORDER, Resolution, ResolutionTier, SlugResolver

__all__ = [
    "LocationCatalog",
    "RESOLUTION_ORDER",
    "Resolution",
    "ResolutionTier",
    "SlugResolver",
]
