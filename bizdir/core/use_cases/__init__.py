from .resolve_and_search import ResolveAndSearch

__all__ = ["ResolveAndSearch"]
