"""
Per-request evaluation.

Ties the classifier and the action decider together for one inbound
request and renders the two outputs consumers need: the response body for
the ingress (HTTP handler or edge worker) and the row for the request log.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlencode

from ..detection import ClassificationVerdict, RequestMetadata, classify_user_agent
from ..policy import ActionDecision, ActionType, SiteMonetizationPolicy, decide_action
from ..storage import StorageBackend, StorageError
from ..utils.url_utils import get_content_type

logger = logging.getLogger(__name__)


@dataclass
class DetectionOutcome:
    """Verdict and decision for a single request."""

    request: RequestMetadata
    verdict: ClassificationVerdict
    decision: ActionDecision
    content_type: str
    site_id: Optional[str] = None
    payment_url: Optional[str] = None
    request_id: Optional[int] = None
    extra_metadata: dict[str, Any] = field(default_factory=dict)

    def to_log_record(self) -> dict[str, Any]:
        """Render the row stored by the request log."""
        return {
            "site_id": self.site_id,
            "ip_address": self.request.ip_address,
            "user_agent": self.request.user_agent,
            "bot_detected": self.verdict.is_bot,
            "bot_type": self.verdict.bot_type.value if self.verdict.bot_type else None,
            "bot_name": self.verdict.bot_name,
            "confidence_score": self.verdict.confidence,
            "page_url": self.request.page_url,
            "content_type": self.content_type,
            "content_length": self.request.content_length,
            "action_taken": self.decision.action_type.value,
            "revenue_amount": self.decision.revenue or "0.00",
            "metadata": {
                "detection_method": self.verdict.detection_method.value,
                "suggested_rate": (
                    str(self.verdict.suggested_rate)
                    if self.verdict.suggested_rate is not None
                    else None
                ),
                **self.decision.metadata,
                **self.extra_metadata,
            },
        }

    def to_response(self) -> dict[str, Any]:
        """Render the ingress response body."""
        return {
            "requestId": self.request_id,
            "botDetected": self.verdict.is_bot,
            "botInfo": {
                "name": self.verdict.bot_name,
                "type": self.verdict.bot_type.value if self.verdict.bot_type else None,
                "confidence": self.verdict.confidence,
                "company": self.verdict.company,
            },
            "action": {
                "type": self.decision.action_type.value,
                "shouldBlock": self.decision.should_block,
                "shouldMonetize": self.decision.should_monetize,
                "revenue": self.decision.revenue,
                "paymentUrl": self.payment_url,
                "message": self.decision.message,
            },
        }


def build_payment_url(
    payment_endpoint: str,
    site_id: str,
    bot_name: Optional[str],
    amount: str,
) -> str:
    """
    Build the payment link a monetized crawler is sent to.

    Examples:
        >>> build_payment_url("https://api.example.com/payment", "42", "OpenAI", "0.002")
        'https://api.example.com/payment?site=42&bot=OpenAI&amount=0.002'
    """
    query = urlencode({"site": site_id, "bot": bot_name or "", "amount": amount})
    return f"{payment_endpoint}?{query}"


def evaluate_request(
    request: RequestMetadata,
    policy: SiteMonetizationPolicy,
    payment_endpoint: Optional[str] = None,
) -> DetectionOutcome:
    """
    Classify a request and decide the action for it.

    Args:
        request: Inbound request fields
        policy: The site's monetization settings
        payment_endpoint: If given, monetized outcomes for sites with an id
                          carry a payment link to this endpoint

    Returns:
        DetectionOutcome

    Raises:
        MissingSitePolicyError: If policy is missing
    """
    verdict = classify_user_agent(request.user_agent, request.ip_address)
    decision = decide_action(verdict, policy)

    payment_url = None
    if (
        decision.action_type is ActionType.MONETIZED
        and payment_endpoint
        and policy.site_id
    ):
        payment_url = build_payment_url(
            payment_endpoint, policy.site_id, verdict.bot_name, decision.revenue
        )

    outcome = DetectionOutcome(
        request=request,
        verdict=verdict,
        decision=decision,
        content_type=get_content_type(request.page_url),
        site_id=policy.site_id,
        payment_url=payment_url,
    )

    if verdict.is_bot:
        logger.debug(
            f"{verdict.detection_method.value}: {verdict.bot_name} "
            f"(confidence {verdict.confidence}) -> {decision.action_type.value}"
        )

    return outcome


def evaluate_and_log(
    request: RequestMetadata,
    policy: SiteMonetizationPolicy,
    backend: StorageBackend,
    payment_endpoint: Optional[str] = None,
) -> DetectionOutcome:
    """
    Evaluate a request and append it to the request log.

    A storage failure is logged and leaves the outcome as computed, with
    request_id left as None.
    """
    outcome = evaluate_request(request, policy, payment_endpoint)

    try:
        ids = backend.insert_bot_requests([outcome.to_log_record()])
        outcome.request_id = ids[0] if ids else None
    except StorageError as e:
        logger.warning(f"Failed to store bot request log: {e}")

    return outcome
