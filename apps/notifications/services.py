"""Notification services."""

from __future__ import annotations

import logging
from typing import Any

from django.db import transaction  # type: ignore

from .models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Stores in-app notifications for users."""

    def emit(
        self,
        user_id: str,
        type: str,
        message: str,
        metadata: dict[str, Any] | None = None,
        *,
        title: str = "",
    ) -> Notification:
        """
        Create a notification for ``user_id``.

        Args:
            user_id: Recipient identifier
            type: One of Notification.Type
            message: Body shown to the user
            metadata: Structured references (ids, numbers) for clients
            title: Short heading; defaults to the type label

        The insert runs in its own savepoint, so a failed notification
        leaves the caller's transaction usable.
        """
        with transaction.atomic():
            notification = Notification.objects.create(
                user_id=str(user_id),
                type=type,
                title=title or Notification.Type(type).label,
                message=message,
                metadata=metadata or {},
            )
        logger.info(f"Notification {notification.pk} ({type}) created for user {user_id}")
        return notification
