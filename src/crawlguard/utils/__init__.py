"""Utility functions for the crawler guard."""

from .url_utils import get_content_type

__all__ = ["get_content_type"]
