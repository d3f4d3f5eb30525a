"""Integration tests for notification endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.notifications.services import NotificationService


class NotificationAPITests(APITestCase):
    def setUp(self) -> None:
        User = get_user_model()
        self.provider = User.objects.create_user(username="provider", password="ProviderPass123")
        self.other = User.objects.create_user(username="other", password="OtherPass123")
        self.client.force_authenticate(self.provider)

    def test_emit_defaults_title_to_type_label(self) -> None:
        notification = NotificationService().emit(
            user_id=self.provider.pk,
            type=Notification.Type.AVAILABILITY_CONFLICT,
            message="Blocked dates overlap booking BK-1029",
            metadata={"bookingNumber": "BK-1029"},
        )

        self.assertEqual(notification.user_id, str(self.provider.pk))
        self.assertEqual(notification.title, "Availability conflict")
        self.assertFalse(notification.is_read)

    def test_user_sees_only_own_notifications_and_can_mark_read(self) -> None:
        service = NotificationService()
        own = service.emit(str(self.provider.pk), Notification.Type.GENERAL, "hello", title="Hi")
        service.emit(str(self.other.pk), Notification.Type.GENERAL, "not yours", title="Hi")

        listed = self.client.get(reverse("notification-list"))
        self.assertEqual(listed.status_code, status.HTTP_200_OK, listed.data)
        results = listed.data["results"] if isinstance(listed.data, dict) else listed.data
        self.assertEqual([n["id"] for n in results], [own.pk])

        response = self.client.post(reverse("notification-mark-read", args=[own.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        own.refresh_from_db()
        self.assertTrue(own.is_read)
