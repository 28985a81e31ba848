"""Site monetization policy and action decisions."""

from .action_decider import decide_action, is_bot_allowed, resolve_revenue
from .exceptions import InvalidSitePolicyError, MissingSitePolicyError, PolicyError
from .loader import load_site_policy
from .models import ActionDecision, ActionType, SiteMonetizationPolicy

__all__ = [
    # Types
    "ActionType",
    "ActionDecision",
    "SiteMonetizationPolicy",
    # Decisions
    "decide_action",
    "is_bot_allowed",
    "resolve_revenue",
    # Loading
    "load_site_policy",
    # Exceptions
    "PolicyError",
    "MissingSitePolicyError",
    "InvalidSitePolicyError",
]
