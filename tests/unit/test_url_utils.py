"""
Unit tests for url_utils module.

Tests content-type classification.
"""

import pytest

from crawlguard.utils.url_utils import get_content_type


class TestGetContentType:
    """Tests for get_content_type function."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("/wp-admin/options.php", "admin"),
            ("https://example.com/admin/users", "admin"),
            ("/api/v1/posts", "api"),
            ("/feed/", "feed"),
            ("/sitemap.xml", "feed"),
            ("/wp-content/themes/site/style.css", "asset"),
            ("/images/logo.png", "image"),
            ("/images/photo.JPEG", "image"),
            ("/images/icon.svg", "image"),
            ("/static/app.js", "asset"),
            ("/static/site.css", "asset"),
            ("/blog/hello-world", "page"),
            ("https://example.com/", "page"),
        ],
    )
    def test_classification(self, url, expected):
        """Each URL maps to its content type."""
        assert get_content_type(url) == expected

    @pytest.mark.parametrize("url", [None, ""])
    def test_empty_is_unknown(self, url):
        """Missing URLs are 'unknown'."""
        assert get_content_type(url) == "unknown"

    def test_admin_checked_first(self):
        """Admin wins over api and feed."""
        assert get_content_type("/wp-admin/api/feed.xml") == "admin"

    def test_api_before_feed(self):
        """API paths returning XML are still 'api'."""
        assert get_content_type("/api/export.xml") == "api"

    def test_wp_content_images_are_assets(self):
        """Uploads under /wp-content/ count as assets."""
        assert get_content_type("/wp-content/uploads/2024/photo.png") == "asset"

    def test_extension_must_end_url(self):
        """Query strings after an image extension make it a page."""
        assert get_content_type("/images/logo.png?v=2") == "page"
