"""Geo Gateway: validating, caching HTTP gateway for a geo-processing service."""

__version__ = "0.1.0"
