"""Outbound notifications."""

from .webhook_notifier import ATTEMPT_SCORED_EVENT, WebhookNotifier

__all__ = ["ATTEMPT_SCORED_EVENT", "WebhookNotifier"]
