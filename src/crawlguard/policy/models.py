"""
Site monetization policy and action decision types.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from .exceptions import InvalidSitePolicyError


class ActionType(str, Enum):
    """What the edge should do with a request."""

    LOGGED = "logged"
    ALLOWED = "allowed"
    BLOCKED = "blocked"
    MONETIZED = "monetized"


def _first_present(record: dict[str, Any], *keys: str) -> Any:
    """Return the value of the first key present in record."""
    for key in keys:
        if key in record:
            return record[key]
    return None


def to_decimal(value: Any, field_name: str) -> Optional[Decimal]:
    """
    Parse a price into a Decimal.

    None and empty strings mean "not set". Floats go through str() so
    0.002 stays 0.002 rather than its binary expansion.

    Raises:
        InvalidSitePolicyError: If the value is not a non-negative number
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise InvalidSitePolicyError("Price must be numeric", field_name, value)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidSitePolicyError("Price must be numeric", field_name, value)
    if not amount.is_finite() or amount < 0:
        raise InvalidSitePolicyError(
            "Price must be a non-negative number", field_name, value
        )
    return amount


@dataclass(frozen=True)
class SiteMonetizationPolicy:
    """
    Monetization settings of a single site.

    Owned by the site-configuration collaborator; read-only here.
    """

    monetization_enabled: bool = False
    allowed_bots: tuple[str, ...] = ()
    pricing_per_request: Optional[Decimal] = None
    site_id: Optional[str] = None
    site_url: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.allowed_bots, str):
            raise InvalidSitePolicyError(
                "Must be a list of strings", "allowed_bots", self.allowed_bots
            )
        # Normalize so membership checks are case-insensitive
        normalized = tuple(
            bot.strip().lower() for bot in self.allowed_bots if bot and bot.strip()
        )
        object.__setattr__(self, "allowed_bots", normalized)

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> "SiteMonetizationPolicy":
        """
        Create a policy from a site record.

        Accepts the collaborator's camelCase keys (monetizationEnabled,
        allowedBots, pricingPerRequest, id, siteUrl) as well as snake_case.

        Raises:
            InvalidSitePolicyError: If a field has the wrong type
        """
        if not isinstance(record, dict):
            raise InvalidSitePolicyError(
                f"Site record must be a mapping, got {type(record).__name__}"
            )

        enabled = _first_present(record, "monetizationEnabled", "monetization_enabled")
        if enabled is None:
            enabled = False
        if not isinstance(enabled, bool):
            raise InvalidSitePolicyError(
                "Must be a boolean", "monetization_enabled", enabled
            )

        allowed = _first_present(record, "allowedBots", "allowed_bots") or []
        if isinstance(allowed, str) or not all(isinstance(b, str) for b in allowed):
            raise InvalidSitePolicyError(
                "Must be a list of strings", "allowed_bots", allowed
            )

        pricing = to_decimal(
            _first_present(record, "pricingPerRequest", "pricing_per_request"),
            "pricing_per_request",
        )

        site_id = _first_present(record, "id", "siteId", "site_id")
        site_url = _first_present(record, "siteUrl", "site_url")

        return cls(
            monetization_enabled=enabled,
            allowed_bots=tuple(allowed),
            pricing_per_request=pricing,
            site_id=str(site_id) if site_id is not None else None,
            site_url=site_url,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "site_id": self.site_id,
            "site_url": self.site_url,
            "monetization_enabled": self.monetization_enabled,
            "allowed_bots": list(self.allowed_bots),
            "pricing_per_request": (
                str(self.pricing_per_request)
                if self.pricing_per_request is not None
                else None
            ),
        }


@dataclass(frozen=True)
class ActionDecision:
    """Action to take for a classified request."""

    action_type: ActionType = ActionType.LOGGED
    should_block: bool = False
    should_monetize: bool = False
    revenue: str = "0.00"
    message: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def revenue_amount(self) -> Decimal:
        """Revenue as a Decimal."""
        return Decimal(self.revenue)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": self.action_type.value,
            "should_block": self.should_block,
            "should_monetize": self.should_monetize,
            "revenue": self.revenue,
            "message": self.message,
            "metadata": dict(self.metadata),
        }
