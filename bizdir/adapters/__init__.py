"""
Infrastructure Adapters.

Concrete implementations of the core ports (REST client, JSON seed) and
the FastAPI surface consumed by the listing pages.
"""
