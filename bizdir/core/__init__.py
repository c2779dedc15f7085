"""
Core Domain Layer.

Pure resolution and search logic:
- No dependencies on frameworks (FastAPI) or on transport (httpx, files).
- Talks to the outside world only through the Protocols in `core.ports`.
"""
