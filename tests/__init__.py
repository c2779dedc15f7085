# tests/__init__.py
"""
Test Suite for the business directory locator.
"""
