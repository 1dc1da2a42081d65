from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone


class ApplicationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class Application(models.Model):
    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        related_name="applications"
    )

    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="applications"
    )

    message = models.TextField(blank=True, default="")

    status = models.CharField(
        max_length=20,
        choices=ApplicationStatus.choices,
        default=ApplicationStatus.PENDING
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("project", "freelancer")
        ordering = ["-created_at"]
        constraints = [
            # A project is staffed by one freelancer at a time.
            models.UniqueConstraint(
                fields=["project"],
                condition=Q(status="approved"),
                name="one_approved_application_per_project",
            ),
        ]

    def __str__(self):
        return f"{self.freelancer_id} → {self.project_id} ({self.status})"
