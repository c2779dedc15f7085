"""Driving adapter: the HTTP surface of the listing pipeline."""
