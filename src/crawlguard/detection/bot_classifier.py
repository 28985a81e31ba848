"""
Bot classification from user-agent strings.

Runs three stages in sequence, each only when the previous one found
nothing:

1. Signature match against known AI crawlers (case-insensitive substring)
2. Suspicious pattern match (headless browsers, scripting libraries, AI terms)
3. Additive heuristic score over length, bot keywords and browser tokens

All functions are pure and operate on immutable module-level tables.
"""

from typing import Any, Optional

from ..config.constants import (
    AI_BOT_SIGNATURES,
    BROWSER_MARKERS,
    HEURISTIC_BOT_THRESHOLD,
    HEURISTIC_KEYWORD_SCORE,
    HEURISTIC_KEYWORDS,
    HEURISTIC_LENGTH_SCORE,
    HEURISTIC_MAX_CONFIDENCE,
    HEURISTIC_MAX_UA_LENGTH,
    HEURISTIC_MIN_UA_LENGTH,
    HEURISTIC_NO_BROWSER_SCORE,
    PATTERN_MATCH_CONFIDENCE,
    POTENTIAL_AI_BOT_NAME,
    SUSPICIOUS_PATTERNS,
    UNKNOWN_AI_BOT_NAME,
    BotSignature,
)
from .models import NOT_A_BOT, BotType, ClassificationVerdict, DetectionMethod


def match_signature(user_agent: Optional[str]) -> Optional[tuple[str, BotSignature]]:
    """
    Find the first known AI bot signature contained in a user-agent.

    Args:
        user_agent: The HTTP User-Agent header value

    Returns:
        Tuple of (signature marker, BotSignature), or None if no signature
        matches or the user-agent is empty

    Examples:
        >>> match_signature("Mozilla/5.0 (compatible; GPTBot/1.0)")[0]
        'gptbot'
        >>> match_signature("Mozilla/5.0 (Windows NT 10.0) Chrome/120") is None
        True
    """
    if not user_agent:
        return None

    lowered = user_agent.lower()
    for marker, signature in AI_BOT_SIGNATURES.items():
        if marker in lowered:
            return marker, signature

    return None


def match_suspicious_pattern(user_agent: Optional[str]) -> Optional[str]:
    """
    Find the first suspicious pattern matching a user-agent.

    Args:
        user_agent: The HTTP User-Agent header value

    Returns:
        The matching regex source, or None
    """
    if not user_agent:
        return None

    for pattern in SUSPICIOUS_PATTERNS:
        if pattern.search(user_agent):
            return pattern.pattern

    return None


def score_heuristics(user_agent: str, ip_address: Optional[str] = None) -> int:
    """
    Compute an additive "automated client" score for a user-agent.

    Scoring:
        - +25 if the user-agent is shorter than 20 or longer than 500 chars
        - +10 per bot keyword present (case-insensitive, cumulative)
        - +20 if none of Mozilla/Chrome/Safari appear (case-sensitive)

    Args:
        user_agent: The HTTP User-Agent header value
        ip_address: Client IP; accepted for interface compatibility, not scored

    Returns:
        Integer score (0 or more)
    """
    score = 0

    if len(user_agent) < HEURISTIC_MIN_UA_LENGTH or len(user_agent) > HEURISTIC_MAX_UA_LENGTH:
        score += HEURISTIC_LENGTH_SCORE

    lowered = user_agent.lower()
    for keyword in HEURISTIC_KEYWORDS:
        if keyword in lowered:
            score += HEURISTIC_KEYWORD_SCORE

    if not any(marker in user_agent for marker in BROWSER_MARKERS):
        score += HEURISTIC_NO_BROWSER_SCORE

    return score


def classify_user_agent(
    user_agent: Optional[str],
    ip_address: Optional[str] = None,
) -> ClassificationVerdict:
    """
    Classify a request from its user-agent string.

    Args:
        user_agent: The HTTP User-Agent header value
        ip_address: Client IP, forwarded to the heuristic stage

    Returns:
        ClassificationVerdict; the zero-value verdict (is_bot=False,
        detection_method=none) for empty or ordinary browser user-agents

    Examples:
        >>> verdict = classify_user_agent("Mozilla/5.0 (compatible; GPTBot/1.0)")
        >>> verdict.company, verdict.confidence
        ('OpenAI', 95)

        >>> classify_user_agent("python-requests/2.28").detection_method.value
        'pattern_match'

        >>> classify_user_agent(None).is_bot
        False
    """
    if not user_agent:
        return NOT_A_BOT

    signature_hit = match_signature(user_agent)
    if signature_hit:
        _, signature = signature_hit
        return ClassificationVerdict(
            is_bot=True,
            is_ai_bot=True,
            bot_type=BotType.AI_BOT,
            bot_name=signature.company,
            company=signature.company,
            confidence=signature.confidence,
            suggested_rate=signature.suggested_rate,
            detection_method=DetectionMethod.SIGNATURE_MATCH,
        )

    if match_suspicious_pattern(user_agent):
        return ClassificationVerdict(
            is_bot=True,
            is_ai_bot=True,
            bot_type=BotType.AI_BOT,
            bot_name=UNKNOWN_AI_BOT_NAME,
            confidence=PATTERN_MATCH_CONFIDENCE,
            detection_method=DetectionMethod.PATTERN_MATCH,
        )

    score = score_heuristics(user_agent, ip_address)
    if score >= HEURISTIC_BOT_THRESHOLD:
        return ClassificationVerdict(
            is_bot=True,
            is_ai_bot=True,
            bot_type=BotType.AI_BOT,
            bot_name=POTENTIAL_AI_BOT_NAME,
            confidence=min(score, HEURISTIC_MAX_CONFIDENCE),
            detection_method=DetectionMethod.HEURISTIC,
        )

    return NOT_A_BOT


def classify_user_agent_dict(
    user_agent: Optional[str],
    ip_address: Optional[str] = None,
) -> dict[str, Any]:
    """
    Classify a user-agent and return the verdict as a dictionary.

    Convenience wrapper for DataFrame operations.
    """
    return classify_user_agent(user_agent, ip_address).to_dict()


def is_known_ai_bot(user_agent: Optional[str]) -> bool:
    """Check if a user-agent carries a known AI bot signature."""
    return match_signature(user_agent) is not None


def get_signatures_by_company(company: str) -> list[str]:
    """
    Get signature markers registered for a company.

    Args:
        company: Company name (e.g., 'OpenAI', 'Anthropic', 'Google')

    Returns:
        List of lowercase markers, in table order
    """
    return [
        marker
        for marker, signature in AI_BOT_SIGNATURES.items()
        if signature.company == company
    ]
