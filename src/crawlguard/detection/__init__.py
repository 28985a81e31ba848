"""Bot detection: user-agent classification."""

from .bot_classifier import (
    classify_user_agent,
    classify_user_agent_dict,
    get_signatures_by_company,
    is_known_ai_bot,
    match_signature,
    match_suspicious_pattern,
    score_heuristics,
)
from .models import (
    NOT_A_BOT,
    BotType,
    ClassificationVerdict,
    DetectionMethod,
    RequestMetadata,
)

__all__ = [
    # Input and result types
    "RequestMetadata",
    "BotType",
    "DetectionMethod",
    "ClassificationVerdict",
    "NOT_A_BOT",
    # Classification
    "classify_user_agent",
    "classify_user_agent_dict",
    "match_signature",
    "match_suspicious_pattern",
    "score_heuristics",
    "is_known_ai_bot",
    "get_signatures_by_company",
]
