"""Vetbook core: data access, normalization and auth for the clinic booking app."""

__version__ = "0.1.0"
