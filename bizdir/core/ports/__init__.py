# bizdir/core/ports/__init__.py
"""
Core Ports (Interfaces).

Protocols that the infrastructure adapters implement, so that the
resolution and search logic never knows whether it talks to the REST API
or to a local seed file.
"""

from .business_search import IBusinessSearch
from .category_repository import ICategoryRepository
from .location_directory import ILocationDirectory

__all__ = [
    "IBusinessSearch",
    "ICategoryRepository",
    "ILocationDirectory",
]
