"""
Domain entities, value objects and exceptions for location resolution
and listing search.
"""
