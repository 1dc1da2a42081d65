from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.cores.exceptions import InvalidState


class Payment(models.Model):
    """
    Money owed to the freelancer of a completed project.

    Written once by the completion flow and never updated; the amount is
    the project budget at completion time.
    """

    project = models.OneToOneField(
        "projects.Project",
        on_delete=models.PROTECT,
        related_name="payment_record",
    )

    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments",
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=10, default="USD")

    paid_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-paid_at"]
        indexes = [
            models.Index(fields=["freelancer", "paid_at"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise InvalidState("Payments are immutable once issued.")
        super().save(*args, **kwargs)

    def __str__(self):
        return f"Payment #{self.id} → Freelancer {self.freelancer_id} ({self.amount})"
