from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class ProjectStatus(models.TextChoices):
    OPEN = "open", "Open"
    CLOSED = "closed", "Closed"


class ProgressStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    ONGOING = "ongoing", "Ongoing"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


def derive_status(progress_status):
    """Only an ongoing project is open to freelancers."""
    if progress_status == ProgressStatus.ONGOING:
        return ProjectStatus.OPEN
    return ProjectStatus.CLOSED


class Tag(models.Model):
    name = models.CharField(max_length=50, unique=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Project(models.Model):
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="projects",
    )

    # Drafts may leave any of these empty.
    title = models.CharField(max_length=255, blank=True, default="")
    description = models.TextField(blank=True, default="")
    budget = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    deadline = models.DateTimeField(null=True, blank=True)
    tags = models.ManyToManyField(Tag, related_name="projects", blank=True)

    responsibilities = models.TextField(blank=True, default="")
    location = models.CharField(max_length=255, blank=True, default="")
    requirement = models.TextField(blank=True, default="")

    # Projection of progress_status, rewritten by save().
    status = models.CharField(
        max_length=10,
        choices=ProjectStatus.choices,
        default=ProjectStatus.CLOSED,
        editable=False,
    )
    progress_status = models.CharField(
        max_length=20,
        choices=ProgressStatus.choices,
        default=ProgressStatus.DRAFT,
    )

    deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="deleted_projects",
    )

    payment = models.OneToOneField(
        "billing.Payment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="settled_project",
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["deleted", "status", "progress_status"]),
            models.Index(fields=["client", "deleted"]),
        ]

    def save(self, *args, **kwargs):
        self.status = derive_status(self.progress_status)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "progress_status" in update_fields:
            kwargs["update_fields"] = {*update_fields, "status", "updated_at"}
        super().save(*args, **kwargs)

    @property
    def is_open(self):
        return not self.deleted and self.status == ProjectStatus.OPEN

    def __str__(self):
        return f"Project: {self.title or '(untitled draft)'} by {self.client_id}"
