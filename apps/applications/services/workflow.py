import logging

from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction

from apps.applications.models import Application, ApplicationStatus
from apps.cores.context import ensure_owner
from apps.cores.exceptions import (
    Conflict,
    Forbidden,
    InvalidState,
    NotFound,
    ValidationError,
    storage_guard,
)
from apps.notifications.models import NotificationType
from apps.notifications.services import NotificationService
from apps.projects.models import ProgressStatus, Project
from apps.projects.services.lifecycle import ensure_publishable

logger = logging.getLogger(__name__)

DECISIONS = (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED)


class ApplicationWorkflowService:
    """
    Freelancer applications and the client's approve/reject decisions.

    Approving staffs the project (ongoing/open); rejecting the last
    candidate cancels it.
    """

    def __init__(self, notifications=None, using=DEFAULT_DB_ALIAS):
        self.using = using
        self.notifications = notifications or NotificationService(using=using)

    def _applications(self):
        return Application.objects.using(self.using)

    def _with_freelancer(self, queryset):
        return queryset.select_related(
            "freelancer",
            "freelancer__freelancer_profile",
        )

    def _after_commit(self, **notification):
        transaction.on_commit(
            lambda: self.notifications.notify(**notification),
            using=self.using,
        )

    # ------------------------------------
    # Freelancer side
    # ------------------------------------
    @storage_guard("apply_to_project")
    def apply_to_project(self, project_id, actor, message=""):
        if not actor.is_freelancer:
            raise Forbidden("Only freelancers can apply to projects.")

        with transaction.atomic(using=self.using):
            project = (
                Project.objects.using(self.using)
                .select_for_update()
                .filter(id=project_id)
                .first()
            )
            if project is None or not project.is_open:
                raise InvalidState("Project is not open for applications.")

            duplicate = self._applications().filter(
                project_id=project.id, freelancer_id=actor.user_id
            ).exists()
            if duplicate:
                raise Conflict("You have already applied to this project.")

            try:
                with transaction.atomic(using=self.using):
                    application = self._applications().create(
                        project_id=project.id,
                        freelancer_id=actor.user_id,
                        message=message or "",
                    )
            except IntegrityError as exc:
                raise Conflict("You have already applied to this project.") from exc

        logger.info("Freelancer %s applied to project %s", actor.user_id, project.id)

        self._after_commit(
            recipient_id=project.client_id,
            sender_id=actor.user_id,
            title="New application",
            message=f'A freelancer applied to "{project.title or "Untitled"}".',
            notif_type=NotificationType.APPLICATION,
            data={"project_id": project.id, "application_id": application.id},
        )
        return application

    @storage_guard("list_freelancer_applications")
    def list_for_freelancer(self, freelancer_id):
        return list(
            self._applications()
            .filter(freelancer_id=freelancer_id)
            .select_related("project", "project__client", "project__client__client_profile")
            .prefetch_related("project__tags")
            .order_by("-created_at", "-id")
        )

    # ------------------------------------
    # Client side
    # ------------------------------------
    @storage_guard("list_applicants")
    def list_applicants(self, project_id, actor):
        project = Project.objects.using(self.using).filter(id=project_id).first()
        if project is None:
            raise NotFound("Project not found.")
        ensure_owner(actor, project.client_id, allow_admin=False,
                     message="Unauthorized to view applicants for this project.")

        return list(
            self._with_freelancer(self._applications().filter(project_id=project.id))
            .order_by("-created_at", "-id")
        )

    @storage_guard("list_client_applications")
    def list_for_client(self, client_id):
        return list(
            self._with_freelancer(
                self._applications().filter(project__client_id=client_id)
            )
            .select_related("project")
            .order_by("-created_at", "-id")
        )

    @storage_guard("update_application_status")
    def update_application_status(self, application_id, actor, status):
        if status not in DECISIONS:
            raise ValidationError({"status": "Status must be 'approved' or 'rejected'."})

        with transaction.atomic(using=self.using):
            application = (
                self._applications()
                .select_for_update()
                .filter(id=application_id)
                .first()
            )
            if application is None:
                raise NotFound("Application not found.")

            project = (
                Project.objects.using(self.using)
                .select_for_update()
                .get(id=application.project_id)
            )
            ensure_owner(actor, project.client_id, allow_admin=False,
                         message="Unauthorized to update this application.")
            if project.deleted or project.progress_status == ProgressStatus.COMPLETED:
                raise InvalidState("Applications on this project can no longer change.")

            if status == ApplicationStatus.APPROVED:
                self._approve(application, project)
            else:
                self._reject(application, project)

        logger.info(
            "Application %s on project %s set to %s by client %s",
            application.id, project.id, status, actor.user_id,
        )

        self._after_commit(
            recipient_id=application.freelancer_id,
            sender_id=actor.user_id,
            title=f"Application {status}",
            message=f'Your application for "{project.title or "Untitled"}" was {status}.',
            notif_type=NotificationType.APPLICATION_STATUS,
            data={"project_id": project.id, "application_id": application.id, "status": status},
        )
        return application

    def _approve(self, application, project):
        other_approved = (
            self._applications()
            .filter(project_id=project.id, status=ApplicationStatus.APPROVED)
            .exclude(id=application.id)
            .exists()
        )
        if other_approved:
            raise Conflict("Another freelancer is already approved for this project.")

        if project.progress_status != ProgressStatus.ONGOING:
            ensure_publishable(project)

        application.status = ApplicationStatus.APPROVED
        try:
            with transaction.atomic(using=self.using):
                application.save(update_fields=["status", "updated_at"])
        except IntegrityError as exc:
            raise Conflict("Another freelancer is already approved for this project.") from exc

        if project.progress_status != ProgressStatus.ONGOING:
            project.progress_status = ProgressStatus.ONGOING
            project.save(update_fields=["progress_status"])

    def _reject(self, application, project):
        was_approved = application.status == ApplicationStatus.APPROVED

        application.status = ApplicationStatus.REJECTED
        application.save(update_fields=["status", "updated_at"])

        remaining = self._applications().filter(project_id=project.id)
        has_approved = remaining.filter(status=ApplicationStatus.APPROVED).exists()
        has_pending = remaining.filter(status=ApplicationStatus.PENDING).exists()

        lost_freelancer = was_approved and not has_approved
        no_candidates = not has_approved and not has_pending
        if (lost_freelancer or no_candidates) and project.progress_status != ProgressStatus.CANCELLED:
            project.progress_status = ProgressStatus.CANCELLED
            project.save(update_fields=["progress_status"])
            logger.info("Project %s cancelled after rejecting application %s", project.id, application.id)
