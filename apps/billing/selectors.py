from decimal import Decimal

from django.db.models import Count, Sum
from django.db.models.functions import TruncMonth

from apps.users.models import Role

from .models import Payment


class PaymentAccessSelector:
    """
    Centralized read-access logic for payments (row-level access).
    """
    @staticmethod
    def for_actor(actor):
        qs = Payment.objects.select_related("project", "freelancer")

        if actor.role == Role.ADMIN:
            return qs
        if actor.role == Role.FREELANCER:
            return qs.filter(freelancer_id=actor.user_id)
        if actor.role == Role.CLIENT:
            return qs.filter(project__client_id=actor.user_id)
        return qs.none()


class FreelancerEarningsSelector:
    """
    Aggregations for freelancers (NOT access control).
    """
    @staticmethod
    def summary(freelancer_id):
        totals = Payment.objects.filter(freelancer_id=freelancer_id).aggregate(
            total=Sum("amount"),
            count=Count("id"),
        )
        return {
            "payment_count": totals["count"] or 0,
            "total_earned": totals["total"] or Decimal("0.00"),
        }

    @staticmethod
    def monthly_breakdown(freelancer_id, year=None, month=None):
        qs = Payment.objects.filter(freelancer_id=freelancer_id)

        if year:
            qs = qs.filter(paid_at__year=year)
        if month:
            qs = qs.filter(paid_at__month=month)

        rows = (
            qs.annotate(period=TruncMonth("paid_at"))
            .values("period")
            .annotate(total=Sum("amount"))
            .order_by("period")
        )

        return [
            {"month": row["period"].strftime("%Y-%m"), "total": row["total"]}
            for row in rows
        ]

    @classmethod
    def earnings_graph(cls, freelancer_id, year=None, month=None, compare=False):
        data = {
            "freelancer_id": freelancer_id,
            "monthly_earnings": cls.monthly_breakdown(freelancer_id, year=year, month=month),
            "previous_year_comparison": [],
        }
        if compare and year:
            data["previous_year_comparison"] = cls.monthly_breakdown(
                freelancer_id, year=int(year) - 1, month=month
            )
        return data
