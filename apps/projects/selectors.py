from datetime import timedelta

from django.db.models import Count, Q
from django.utils import timezone

from apps.cores.exceptions import ValidationError

from .filters import ClientProjectFilter
from .models import ProgressStatus, Project, ProjectStatus


def _client_projects(client_id):
    return (
        Project.objects.filter(client_id=client_id)
        .select_related("client", "client__client_profile", "payment")
        .prefetch_related("tags")
        .order_by("-created_at", "-id")
    )


class ClientProjectSelector:
    """
    Read-side views of a client's own projects.
    """
    @staticmethod
    def for_client(client_id, params=None):
        filterset = ClientProjectFilter(data=params or {}, queryset=_client_projects(client_id))
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)
        return filterset.qs

    @staticmethod
    def grouped(client_id):
        projects = list(_client_projects(client_id))
        return {
            "active": [p for p in projects if not p.deleted],
            "archived": [p for p in projects if p.deleted],
        }


class ClientProjectMetricsSelector:
    """
    Dashboard counters for a client (NOT access control).
    """
    @staticmethod
    def summary(client_id):
        now = timezone.now()
        counts = Project.objects.filter(client_id=client_id).aggregate(
            total=Count("id"),
            draft=Count("id", filter=Q(progress_status=ProgressStatus.DRAFT)),
            ongoing=Count("id", filter=Q(progress_status=ProgressStatus.ONGOING)),
            completed=Count("id", filter=Q(progress_status=ProgressStatus.COMPLETED)),
            cancelled=Count("id", filter=Q(progress_status=ProgressStatus.CANCELLED)),
            open=Count("id", filter=Q(status=ProjectStatus.OPEN)),
            closed=Count("id", filter=Q(status=ProjectStatus.CLOSED)),
            active=Count("id", filter=Q(deleted=False)),
            archived=Count("id", filter=Q(deleted=True)),
            last_7_days=Count("id", filter=Q(created_at__gte=now - timedelta(days=7))),
            last_30_days=Count("id", filter=Q(created_at__gte=now - timedelta(days=30))),
            under_500=Count("id", filter=Q(budget__lt=500)),
            between_500_999=Count("id", filter=Q(budget__gte=500, budget__lt=1000)),
            over_1000=Count("id", filter=Q(budget__gte=1000)),
        )

        return {
            "total": counts["total"],
            "progress": {
                "draft": counts["draft"],
                "ongoing": counts["ongoing"],
                "completed": counts["completed"],
                "cancelled": counts["cancelled"],
            },
            "status": {"open": counts["open"], "closed": counts["closed"]},
            "visibility": {"active": counts["active"], "archived": counts["archived"]},
            "created": {
                "last_7_days": counts["last_7_days"],
                "last_30_days": counts["last_30_days"],
            },
            "budget": {
                "under_500": counts["under_500"],
                "500_999": counts["between_500_999"],
                "1000_plus": counts["over_1000"],
            },
        }
