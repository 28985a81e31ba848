"""
Pytest configuration and shared fixtures for unit tests.
"""

from decimal import Decimal

import pytest

from crawlguard.policy import SiteMonetizationPolicy


@pytest.fixture
def monetizing_policy():
    """Site with monetization on, a fixed price and no allow-list."""
    return SiteMonetizationPolicy(
        monetization_enabled=True,
        pricing_per_request=Decimal("0.002"),
        site_id="42",
    )
