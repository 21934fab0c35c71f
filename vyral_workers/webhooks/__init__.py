"""Webhook package for outbound job outcome notifications."""

from .dispatcher import WebhookDispatcher

__all__ = ["WebhookDispatcher"]
