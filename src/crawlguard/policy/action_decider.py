"""
Monetization action decisions.

Combines a ClassificationVerdict with a site's SiteMonetizationPolicy.
Rules are evaluated in order and the first applicable one wins:

1. Not a bot                         -> logged
2. Monetization disabled for site    -> allowed
3. Bot name matches an allowed entry -> allowed
4. AI bot at or above the threshold  -> monetized
5. Anything else                     -> logged
"""

from collections.abc import Iterable
from typing import Optional

from ..config.constants import (
    DEFAULT_RATE,
    MONETIZATION_CONFIDENCE_THRESHOLD,
    ZERO_REVENUE,
)
from ..detection.models import ClassificationVerdict
from .exceptions import MissingSitePolicyError
from .models import ActionDecision, ActionType, SiteMonetizationPolicy


def is_bot_allowed(bot_name: Optional[str], allowed_bots: Iterable[str]) -> bool:
    """
    Check whether a detected bot is exempted by a site's allow-list.

    An entry matches when the lowercased bot name contains it, so "openai"
    exempts a bot named "OpenAI".

    Args:
        bot_name: Name from the verdict (None never matches)
        allowed_bots: Allowed name fragments

    Returns:
        True if any non-empty entry is a substring of the bot name
    """
    if not bot_name:
        return False

    name = bot_name.lower()
    return any(
        entry and entry.strip() and entry.strip().lower() in name
        for entry in allowed_bots
    )


def resolve_revenue(
    policy: SiteMonetizationPolicy,
    verdict: ClassificationVerdict,
) -> str:
    """
    Pick the per-request price for a monetized request.

    Priority: site pricing, then the verdict's suggested rate, then the
    default rate.
    """
    if policy.pricing_per_request is not None:
        return str(policy.pricing_per_request)
    if verdict.suggested_rate is not None:
        return str(verdict.suggested_rate)
    return str(DEFAULT_RATE)


def decide_action(
    verdict: ClassificationVerdict,
    policy: SiteMonetizationPolicy,
) -> ActionDecision:
    """
    Decide what to do with a classified request.

    Args:
        verdict: Classification of the request
        policy: The site's monetization settings

    Returns:
        ActionDecision; revenue is "0.00" unless the request is monetized

    Raises:
        MissingSitePolicyError: If policy is not a SiteMonetizationPolicy
    """
    if not isinstance(policy, SiteMonetizationPolicy):
        raise MissingSitePolicyError(policy)

    if not verdict.is_bot:
        return ActionDecision()

    if not policy.monetization_enabled:
        return ActionDecision(
            action_type=ActionType.ALLOWED,
            message="Monetization disabled for this site",
        )

    if is_bot_allowed(verdict.bot_name, policy.allowed_bots):
        return ActionDecision(
            action_type=ActionType.ALLOWED,
            message=f"{verdict.bot_name} is on the site allow-list",
        )

    if verdict.is_ai_bot and verdict.confidence >= MONETIZATION_CONFIDENCE_THRESHOLD:
        return ActionDecision(
            action_type=ActionType.MONETIZED,
            should_monetize=True,
            revenue=resolve_revenue(policy, verdict),
            message="Payment required for AI crawler access",
            metadata={"monetization_enabled": True},
        )

    return ActionDecision(revenue=ZERO_REVENUE)
