"""Operational notifications."""

from recount_service.notifications.telegram import TelegramNotifier

__all__ = ["TelegramNotifier"]
