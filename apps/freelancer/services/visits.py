from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db import DEFAULT_DB_ALIAS
from django.db.models import Count
from django.db.models.functions import TruncDate
from django.utils import timezone

from apps.cores.exceptions import Forbidden, NotFound, storage_guard
from apps.freelancer.models import ProfileVisit
from apps.users.models import Role

User = get_user_model()


class ProfileVisitService:

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    @storage_guard("get_public_profile")
    def view_profile(self, freelancer_id, visitor_id=None):
        """
        Load a freelancer's public profile and count the view.

        Self-views are not recorded.
        """
        freelancer = (
            User.objects.using(self.using)
            .select_related("freelancer_profile")
            .filter(id=freelancer_id, role=Role.FREELANCER, is_active=True)
            .first()
        )
        if freelancer is None:
            raise NotFound("Freelancer not found.")

        if visitor_id != freelancer.id:
            ProfileVisit.objects.using(self.using).create(
                freelancer_id=freelancer.id,
                visitor_id=visitor_id,
            )
        return freelancer

    @storage_guard("visit_stats")
    def visit_stats(self, freelancer_id, actor, days=30):
        if actor.user_id != freelancer_id or not actor.is_freelancer:
            raise Forbidden("You can only view your own profile visits.")

        visits = ProfileVisit.objects.using(self.using).filter(freelancer_id=freelancer_id)
        since = timezone.now() - timedelta(days=days)

        daily = (
            visits.filter(visited_at__gte=since)
            .annotate(day=TruncDate("visited_at"))
            .values("day")
            .annotate(count=Count("id"))
            .order_by("day")
        )
        return {
            "total_visits": visits.count(),
            "recent_visits": visits.filter(visited_at__gte=since).count(),
            "unique_visitors": visits.exclude(visitor=None).values("visitor").distinct().count(),
            "days": days,
            "daily": [{"date": row["day"].isoformat(), "count": row["count"]} for row in daily],
        }
