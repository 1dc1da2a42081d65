from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class FreelancerProfile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="freelancer_profile")
    profession = models.CharField(max_length=120, blank=True)
    bio = models.TextField(blank=True)
    avatar_url = models.URLField(blank=True, null=True)
    contact_number = models.CharField(max_length=20, blank=True, null=True)
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    is_verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Freelancer Profile: {self.user.username}"


class Favorite(models.Model):
    freelancer = models.ForeignKey(User, on_delete=models.CASCADE, related_name="favorites")
    project = models.ForeignKey("projects.Project", on_delete=models.CASCADE, related_name="favorited_by")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ("freelancer", "project")
        ordering = ["-created_at"]

    def __str__(self):
        return f"Favorite({self.freelancer_id} → {self.project_id})"


class ProfileVisit(models.Model):
    freelancer = models.ForeignKey(User, on_delete=models.CASCADE, related_name="profile_visits")
    visitor = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="visited_profiles",
    )
    visited_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-visited_at"]
        indexes = [
            models.Index(fields=["freelancer", "visited_at"]),
        ]
