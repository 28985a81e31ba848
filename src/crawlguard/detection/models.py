"""
Classification result types.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from ..config.constants import DEFAULT_RATE


class BotType(str, Enum):
    """Kind of automated client."""

    AI_BOT = "ai_bot"
    SEARCH_BOT = "search_bot"
    SOCIAL_BOT = "social_bot"
    UNKNOWN = "unknown"


class DetectionMethod(str, Enum):
    """Classifier stage that produced a verdict."""

    SIGNATURE_MATCH = "signature_match"
    PATTERN_MATCH = "pattern_match"
    HEURISTIC = "heuristic"
    NONE = "none"


@dataclass(frozen=True)
class RequestMetadata:
    """Inbound request fields supplied by the ingress."""

    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    page_url: Optional[str] = None
    site_url: Optional[str] = None
    content_length: int = 0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RequestMetadata":
        """
        Build from an ingress payload.

        Accepts camelCase (userAgent, ipAddress, pageUrl, siteUrl) and
        snake_case keys.
        """

        def pick(*keys: str) -> Any:
            for key in keys:
                if payload.get(key) is not None:
                    return payload[key]
            return None

        content_length = pick("contentLength", "content_length") or 0
        try:
            content_length = int(content_length)
        except (TypeError, ValueError):
            content_length = 0

        return cls(
            user_agent=pick("userAgent", "user_agent"),
            ip_address=pick("ipAddress", "ip_address"),
            page_url=pick("pageUrl", "page_url"),
            site_url=pick("siteUrl", "site_url"),
            content_length=content_length,
        )


@dataclass(frozen=True)
class ClassificationVerdict:
    """Result of bot classification for a single request."""

    is_bot: bool = False
    is_ai_bot: bool = False
    bot_type: Optional[BotType] = None
    bot_name: Optional[str] = None
    company: Optional[str] = None
    confidence: int = 0
    suggested_rate: Optional[Decimal] = DEFAULT_RATE
    detection_method: DetectionMethod = DetectionMethod.NONE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "is_bot": self.is_bot,
            "is_ai_bot": self.is_ai_bot,
            "bot_type": self.bot_type.value if self.bot_type else None,
            "bot_name": self.bot_name,
            "company": self.company,
            "confidence": self.confidence,
            "suggested_rate": (
                str(self.suggested_rate) if self.suggested_rate is not None else None
            ),
            "detection_method": self.detection_method.value,
        }


# Zero-value verdict for human or unclassifiable traffic
NOT_A_BOT = ClassificationVerdict()
