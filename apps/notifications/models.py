from django.db import models
from django.conf import settings


class NotificationType:
    """Known tags; ``notif_type`` itself stays free-form."""

    APPLICATION = "application"
    APPLICATION_STATUS = "application_status"
    PROJECT = "project"
    PROJECT_STATUS = "project_status"
    PAYMENT = "payment"


class Notification(models.Model):
    """
    Universal notification model for Client, Freelancer, Admin.
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications"
    )

    # The user whose action triggered the notification, if any.
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_notifications"
    )

    notif_type = models.CharField(max_length=50)

    title = models.CharField(max_length=255)

    message = models.TextField(blank=True)

    # Optional metadata (store IDs like project_id, application_id)
    data = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["recipient", "is_read"]),
        ]

    def __str__(self):
        return f"Notification({self.recipient_id}, {self.notif_type})"
