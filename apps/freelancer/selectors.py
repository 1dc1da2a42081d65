from django.db.models import Count, Q

from apps.applications.models import Application, ApplicationStatus
from apps.projects.models import ProgressStatus, Project


class FreelancerMetricsSelector:
    """
    Dashboard cards for a freelancer (NOT access control).
    """
    @staticmethod
    def approved_projects(freelancer_id):
        return (
            Project.objects.filter(
                deleted=False,
                applications__freelancer_id=freelancer_id,
                applications__status=ApplicationStatus.APPROVED,
            )
            .select_related("client", "client__client_profile", "payment")
            .prefetch_related("tags")
            .distinct()
            .order_by("-updated_at", "-id")
        )

    @classmethod
    def cards(cls, freelancer_id):
        projects = cls.approved_projects(freelancer_id)
        project_counts = Project.objects.filter(
            id__in=projects.values("id")
        ).aggregate(
            completed=Count("id", filter=Q(progress_status=ProgressStatus.COMPLETED)),
            ongoing=Count("id", filter=Q(progress_status=ProgressStatus.ONGOING)),
            cancelled=Count("id", filter=Q(progress_status=ProgressStatus.CANCELLED)),
        )
        application_counts = Application.objects.filter(
            freelancer_id=freelancer_id
        ).aggregate(
            total=Count("id"),
            pending=Count("id", filter=Q(status=ApplicationStatus.PENDING)),
            approved=Count("id", filter=Q(status=ApplicationStatus.APPROVED)),
            rejected=Count("id", filter=Q(status=ApplicationStatus.REJECTED)),
        )
        return {
            "projects": project_counts,
            "applications": application_counts,
        }
