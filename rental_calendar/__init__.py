"""Availability calendar & proximity search service for rental listings."""

__version__ = "1.0.0"
