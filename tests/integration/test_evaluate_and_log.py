"""
Integration tests for evaluating single requests and recording them.
"""

import pytest

from crawlguard.detection import RequestMetadata
from crawlguard.pipeline import evaluate_and_log
from crawlguard.storage import StorageError


class FailingBackend:
    """Backend stand-in whose writes always fail."""

    def insert_bot_requests(self, records):
        raise StorageError("disk full")


class TestEvaluateAndLog:
    """Tests for evaluate_and_log function."""

    def test_stores_row_and_sets_id(
        self, monetizing_policy, sqlite_backend, user_agents
    ):
        """The stored row id is returned on the outcome."""
        request = RequestMetadata.from_dict(
            {
                "userAgent": user_agents["gptbot"],
                "ipAddress": "203.0.113.7",
                "pageUrl": "/blog/post",
                "contentLength": 2048,
            }
        )

        outcome = evaluate_and_log(request, monetizing_policy, sqlite_backend)

        assert outcome.request_id is not None
        row = sqlite_backend.find_by_id(outcome.request_id)
        assert row["site_id"] == "42"
        assert row["bot_name"] == "OpenAI"
        assert row["action_taken"] == "monetized"
        assert row["revenue_amount"] == "0.002"
        assert row["content_type"] == "page"
        assert row["content_length"] == 2048
        assert row["metadata"]["detection_method"] == "signature_match"
        assert outcome.to_response()["requestId"] == outcome.request_id

    @pytest.mark.parametrize(
        "name,action",
        [
            ("perplexitybot", "allowed"),
            ("chrome", "logged"),
            ("short", "logged"),
            ("python", "monetized"),
        ],
    )
    def test_actions_recorded(
        self, monetizing_policy, sqlite_backend, user_agents, name, action
    ):
        """Every outcome is recorded with its action."""
        outcome = evaluate_and_log(
            RequestMetadata(user_agent=user_agents[name]),
            monetizing_policy,
            sqlite_backend,
        )

        row = sqlite_backend.find_by_id(outcome.request_id)
        assert row["action_taken"] == action
        assert outcome.decision.action_type.value == action

    def test_storage_failure_keeps_outcome(self, monetizing_policy, user_agents):
        """A failed write leaves the decision intact without an id."""
        outcome = evaluate_and_log(
            RequestMetadata(user_agent=user_agents["gptbot"]),
            monetizing_policy,
            FailingBackend(),
        )

        assert outcome.request_id is None
        assert outcome.decision.should_monetize is True
        assert outcome.decision.revenue == "0.002"

    def test_rows_listed_by_site(self, monetizing_policy, sqlite_backend, sample_requests):
        """Logged requests can be listed back for the site."""
        for record in sample_requests[:10]:
            evaluate_and_log(
                RequestMetadata.from_dict(record), monetizing_policy, sqlite_backend
            )

        rows = sqlite_backend.find_by_site("42", limit=5)

        assert len(rows) == 5
        assert rows[0]["id"] > rows[-1]["id"]
