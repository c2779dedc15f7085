"""
Business Directory Locator.

Location resolution and fallback listing search for the business
directory, laid out as Ports & Adapters around a framework-free core.
"""

__version__ = "1.0.0"
