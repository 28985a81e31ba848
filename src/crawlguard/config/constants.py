"""
Constants for AI bot classification and monetization decisions.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType


@dataclass(frozen=True)
class BotSignature:
    """Known AI crawler identity and its default monetization terms."""

    company: str
    suggested_rate: Decimal
    confidence: int


# =============================================================================
# Known AI Bot Signatures
# =============================================================================

# Lowercase user-agent substrings mapped to the crawler's operator.
# Lookup is first-match in insertion order, so keep more specific markers
# ahead of any marker they contain.
AI_BOT_SIGNATURES = MappingProxyType(
    {
        # OpenAI
        "gptbot": BotSignature("OpenAI", Decimal("0.002"), 95),
        "chatgpt-user": BotSignature("OpenAI", Decimal("0.002"), 95),
        # Anthropic
        "anthropic-ai": BotSignature("Anthropic", Decimal("0.0015"), 95),
        "claude-web": BotSignature("Anthropic", Decimal("0.0015"), 95),
        "claudebot": BotSignature("Anthropic", Decimal("0.0015"), 95),
        # Google
        "bard": BotSignature("Google", Decimal("0.001"), 90),
        "palm": BotSignature("Google", Decimal("0.001"), 90),
        "google-extended": BotSignature("Google", Decimal("0.001"), 90),
        "gemini": BotSignature("Google", Decimal("0.001"), 90),
        # Common Crawl
        "ccbot": BotSignature("Common Crawl", Decimal("0.001"), 90),
        # Other AI companies
        "cohere-ai": BotSignature("Cohere", Decimal("0.0012"), 85),
        "ai2bot": BotSignature("Allen Institute", Decimal("0.001"), 80),
        "facebookexternalhit": BotSignature("Meta", Decimal("0.001"), 85),
        "meta-externalagent": BotSignature("Meta", Decimal("0.001"), 85),
        "bytespider": BotSignature("ByteDance", Decimal("0.001"), 85),
        "perplexitybot": BotSignature("Perplexity", Decimal("0.0015"), 90),
        "youbot": BotSignature("You.com", Decimal("0.001"), 85),
        "phindbot": BotSignature("Phind", Decimal("0.001"), 80),
        # Search engines with AI features
        "bingbot": BotSignature("Microsoft", Decimal("0.0012"), 85),
        "slurp": BotSignature("Yahoo", Decimal("0.001"), 80),
        "duckduckbot": BotSignature("DuckDuckGo", Decimal("0.001"), 75),
        "applebot": BotSignature("Apple", Decimal("0.001"), 80),
        "amazonbot": BotSignature("Amazon", Decimal("0.001"), 80),
    }
)

# =============================================================================
# Fallback Detection
# =============================================================================

# Automated-client traits, checked in order against the raw user-agent
SUSPICIOUS_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"python-requests",
        r"scrapy",
        r"selenium",
        r"headless",
        r"crawler",
        r"scraper",
        r"bot.*ai",
        r"ai.*bot",
        r"gpt",
        r"llm",
        r"language.*model",
        r"openai",
        r"anthropic",
    )
)

# Each keyword present adds HEURISTIC_KEYWORD_SCORE (case-insensitive)
HEURISTIC_KEYWORDS = (
    "bot",
    "crawler",
    "spider",
    "scraper",
    "fetch",
    "http",
    "client",
    "agent",
)

# Case-sensitive tokens every mainstream browser sends
BROWSER_MARKERS = ("Mozilla", "Chrome", "Safari")

HEURISTIC_MIN_UA_LENGTH = 20
HEURISTIC_MAX_UA_LENGTH = 500
HEURISTIC_LENGTH_SCORE = 25
HEURISTIC_KEYWORD_SCORE = 10
HEURISTIC_NO_BROWSER_SCORE = 20

# Score at which a heuristic guess counts as a bot, and its confidence cap
HEURISTIC_BOT_THRESHOLD = 40
HEURISTIC_MAX_CONFIDENCE = 85

PATTERN_MATCH_CONFIDENCE = 70

UNKNOWN_AI_BOT_NAME = "Unknown AI Bot"
POTENTIAL_AI_BOT_NAME = "Potential AI Bot"

# =============================================================================
# Monetization
# =============================================================================

# Lower-confidence guesses never trigger billable actions
MONETIZATION_CONFIDENCE_THRESHOLD = 70

DEFAULT_RATE = Decimal("0.001")
ZERO_REVENUE = "0.00"

# =============================================================================
# Storage
# =============================================================================

TABLE_BOT_REQUESTS = "bot_requests"

DEFAULT_RETENTION_DAYS = 90
DEFAULT_PAGE_LIMIT = 50
