"""
URL utility functions.

Classifies requested URLs by the kind of content they serve.
"""

import re
from typing import Optional

# Extension checks anchor at the end of the URL, as sent by the ingress
_IMAGE_EXTENSION = re.compile(r"\.(jpg|jpeg|png|gif|svg|webp)$", re.IGNORECASE)
_ASSET_EXTENSION = re.compile(r"\.(css|js)$", re.IGNORECASE)


def get_content_type(url: Optional[str]) -> str:
    """
    Classify a requested URL or path by the kind of content it serves.

    Checks run in order and the first match wins, so an admin path that
    ends in ".xml" is still 'admin':

        - 'admin': /wp-admin/ or /admin/
        - 'api': /api/
        - 'feed': /feed/ or .xml anywhere
        - 'asset': /wp-content/
        - 'image': ends with an image extension
        - 'asset': ends with .css or .js
        - 'page': anything else

    Args:
        url: Request URL or path

    Returns:
        Content type string, 'unknown' if url is empty

    Examples:
        >>> get_content_type("/wp-admin/options.xml")
        'admin'
        >>> get_content_type("https://example.com/feed/")
        'feed'
        >>> get_content_type("/images/logo.PNG")
        'image'
        >>> get_content_type("/blog/hello-world")
        'page'
    """
    if not url:
        return "unknown"

    if "/wp-admin/" in url or "/admin/" in url:
        return "admin"
    if "/api/" in url:
        return "api"
    if "/feed/" in url or ".xml" in url:
        return "feed"
    if "/wp-content/" in url:
        return "asset"
    if _IMAGE_EXTENSION.search(url):
        return "image"
    if _ASSET_EXTENSION.search(url):
        return "asset"

    return "page"
