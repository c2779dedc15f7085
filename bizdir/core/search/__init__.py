from .planner import FallbackSearchPlanner, SearchScope

__all__ = ["FallbackSearchPlanner", "SearchScope"]
