"""
Shared fixtures for integration tests.

Provides:
- Temporary SQLite database for isolated testing
- Sample request generators and request log files
- Site policy fixtures
"""

import json
import random
from decimal import Decimal
from pathlib import Path

import pytest

from crawlguard.policy import SiteMonetizationPolicy
from crawlguard.storage import get_backend

# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

USER_AGENTS = {
    "gptbot": "Mozilla/5.0 (compatible; GPTBot/1.2; +https://openai.com/gptbot)",
    "claudebot": "Mozilla/5.0 (compatible; ClaudeBot/1.0; +https://anthropic.com)",
    "perplexitybot": "Mozilla/5.0 (compatible; PerplexityBot/1.0; +https://perplexity.ai)",
    "python": "python-requests/2.31.0",
    "short": "curl/8.4.0",
    "chrome": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    ),
}

URLS = [
    "/blog/2024/01/introduction",
    "/docs/getting-started",
    "/api/v1/posts",
    "/feed/",
    "/wp-content/uploads/logo.png",
    "/images/hero.jpg",
]


def generate_sample_requests(num_requests: int = 50, seed: int = 42) -> list[dict]:
    """
    Generate request log records for testing.

    Args:
        num_requests: Number of records to generate
        seed: Random seed for reproducibility (default: 42)

    Returns:
        List of record dictionaries using ingress (camelCase) keys
    """
    rng = random.Random(seed)
    records = []
    for _ in range(num_requests):
        records.append(
            {
                "userAgent": USER_AGENTS[rng.choice(list(USER_AGENTS))],
                "ipAddress": f"10.{rng.randint(0, 255)}.{rng.randint(0, 255)}.{rng.randint(1, 254)}",
                "pageUrl": rng.choice(URLS),
                "siteUrl": "https://example.com",
                "contentLength": rng.randint(0, 50_000),
            }
        )
    return records


@pytest.fixture
def user_agents() -> dict[str, str]:
    """Representative user-agents keyed by short name."""
    return dict(USER_AGENTS)


@pytest.fixture
def sample_requests() -> list[dict]:
    """Generate 50 sample request records."""
    return generate_sample_requests(num_requests=50)


@pytest.fixture
def ndjson_log(tmp_path: Path, sample_requests) -> Path:
    """Write sample requests to an NDJSON request log."""
    path = tmp_path / "access.ndjson"
    with open(path, "w", encoding="utf-8") as f:
        for record in sample_requests:
            f.write(json.dumps(record) + "\n")
    return path


@pytest.fixture
def csv_log(tmp_path: Path) -> Path:
    """Write a small CSV request log with one row per user-agent kind."""
    path = tmp_path / "access.csv"
    lines = ["user_agent,ip_address,page_url,content_length"]
    for name, url in zip(USER_AGENTS, URLS):
        lines.append(f'"{USER_AGENTS[name]}",203.0.113.{len(lines)},{url},100')
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


# =============================================================================
# POLICY FIXTURES
# =============================================================================


@pytest.fixture
def monetizing_policy() -> SiteMonetizationPolicy:
    """Site that charges AI crawlers and lets Perplexity through."""
    return SiteMonetizationPolicy(
        monetization_enabled=True,
        allowed_bots=("perplexity",),
        pricing_per_request=Decimal("0.002"),
        site_id="42",
        site_url="https://example.com",
    )


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test_crawlguard.db"


@pytest.fixture
def sqlite_backend(temp_db_path: Path):
    """
    Create an initialized SQLite backend with temporary database.

    Automatically cleans up after test.
    """
    backend = get_backend("sqlite", db_path=temp_db_path)
    backend.initialize()
    yield backend
    backend.close()
