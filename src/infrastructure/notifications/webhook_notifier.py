"""Webhook notifications for scored attempts."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from ...domain.scoring.entities.attempt import Attempt
from ...domain.scoring.value_objects.score import Score

logger = logging.getLogger(__name__)

ATTEMPT_SCORED_EVENT = "attempt.scored"
WEBHOOK_TIMEOUT_SECONDS = 30.0
WEBHOOK_USER_AGENT = "ScoringCommitteeEngine/1.0"


class WebhookNotifier:
    """Posts `attempt.scored` events to caller-supplied URLs. Never raises on delivery."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = WEBHOOK_TIMEOUT_SECONDS,
        user_agent: str = WEBHOOK_USER_AGENT,
    ):
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self._owns_client = client is None
        self._client = client

    @staticmethod
    def build_payload(attempt: Attempt, score: Score) -> Dict[str, Any]:
        return {
            "event": ATTEMPT_SCORED_EVENT,
            "attempt_id": attempt.attempt_id,
            "tenant_id": attempt.tenant_id,
            "provider": attempt.provider,
            "level": attempt.level,
            "task": attempt.task.value,
            "score": score.to_dict(),
            "timestamp": datetime.utcnow().isoformat(),
        }

    async def notify_scored(self, webhook_url: str, attempt: Attempt, score: Score) -> bool:
        """Send the scored event. Returns whether the webhook accepted it."""
        headers = {"Content-Type": "application/json", "User-Agent": self.user_agent}

        try:
            response = await self._get_client().post(
                webhook_url,
                json=self.build_payload(attempt, score),
                headers=headers,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except Exception as e:
            logger.error(f"Failed to send webhook notification to {webhook_url}: {e}")
            return False

        logger.info(f"Webhook notification for attempt {attempt.attempt_id} sent to {webhook_url}")
        return True

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_seconds)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this notifier created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
