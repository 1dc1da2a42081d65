import logging
from datetime import datetime, time
from decimal import Decimal, InvalidOperation

from django.contrib.auth import get_user_model
from django.db import DEFAULT_DB_ALIAS, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.applications.models import ApplicationStatus
from apps.billing.services import PaymentService
from apps.cores.context import ensure_owner
from apps.cores.exceptions import (
    InvalidState,
    NotFound,
    ValidationError,
    storage_guard,
)
from apps.notifications.models import NotificationType
from apps.notifications.services import NotificationService
from apps.projects.filters import OpenProjectFilter
from apps.projects.models import ProgressStatus, Project, ProjectStatus, Tag

logger = logging.getLogger(__name__)

User = get_user_model()

REQUIRED_FIELDS = ("title", "description", "budget", "deadline")

EDITABLE_FIELDS = (
    "title",
    "description",
    "budget",
    "deadline",
    "responsibilities",
    "location",
    "requirement",
)

SORTABLE_FIELDS = {
    "created_at": "created_at",
    "createdAt": "created_at",
    "budget": "budget",
    "deadline": "deadline",
    "title": "title",
}


def missing_required_fields(values):
    return [name for name in REQUIRED_FIELDS if values.get(name) in (None, "")]


def ensure_publishable(project):
    """Raise ValidationError unless ``project`` can go on the open board."""
    missing = missing_required_fields({
        name: getattr(project, name) for name in REQUIRED_FIELDS
    })
    if missing:
        raise ValidationError({
            "missing_fields": missing,
            "detail": "Fill in the missing fields before publishing.",
        })


def clean_budget(value):
    if value in (None, ""):
        return None
    try:
        budget = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError({"budget": "Budget must be a number."})
    if not budget.is_finite():
        raise ValidationError({"budget": "Budget must be a number."})
    if budget < 0:
        raise ValidationError({"budget": "Budget cannot be negative."})
    return budget


def clean_deadline(value):
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        deadline = value
    else:
        try:
            deadline = parse_datetime(str(value))
            day = None if deadline else parse_date(str(value))
        except ValueError:
            deadline = day = None
        if deadline is None:
            if day is None:
                raise ValidationError({"deadline": "Deadline must be an ISO date or datetime."})
            deadline = datetime.combine(day, time.min)
    if timezone.is_naive(deadline):
        deadline = timezone.make_aware(deadline)
    return deadline


class ProjectLifecycleService:
    """
    State machine for a project's progress, visibility and archive flags.

    progress_status: draft -> ongoing -> completed | cancelled
    status:          derived, open only while ongoing
    deleted:         soft-delete / archive axis

    Every mutation runs in one transaction with the project row locked;
    notifications are sent after commit.
    """

    def __init__(self, notifications=None, payments=None, using=DEFAULT_DB_ALIAS):
        self.using = using
        self.notifications = notifications or NotificationService(using=using)
        self.payments = payments or PaymentService(using=using)

    def _projects(self):
        return Project.objects.using(self.using)

    def _locked(self, project_id):
        project = self._projects().select_for_update().filter(id=project_id).first()
        if project is None:
            raise NotFound("Project not found.")
        return project

    def _detailed(self, project_id):
        return (
            self._projects()
            .select_related("client", "client__client_profile", "payment")
            .prefetch_related("tags")
            .get(id=project_id)
        )

    def _after_commit(self, *notifications):
        def send():
            for kwargs in notifications:
                self.notifications.notify(**kwargs)

        transaction.on_commit(send, using=self.using)

    def _set_tags(self, project, names):
        tags = []
        for name in names:
            name = str(name).strip()
            if name:
                tag, _ = Tag.objects.using(self.using).get_or_create(name=name)
                tags.append(tag)
        project.tags.set(tags)

    # ------------------------------------
    # Create / read
    # ------------------------------------
    @storage_guard("create_project")
    def create_project(self, client_id, data, is_draft=False):
        if not is_draft:
            missing = missing_required_fields(data)
            if missing:
                raise ValidationError({"missing_fields": missing, "detail": "Missing required fields"})

        fields = {name: data[name] for name in EDITABLE_FIELDS if data.get(name) is not None}
        fields["budget"] = clean_budget(data.get("budget"))
        fields["deadline"] = clean_deadline(data.get("deadline"))

        with transaction.atomic(using=self.using):
            if not User.objects.using(self.using).filter(id=client_id).exists():
                raise NotFound("Client not found.")

            project = self._projects().create(
                client_id=client_id,
                progress_status=ProgressStatus.DRAFT if is_draft else ProgressStatus.ONGOING,
                **fields,
            )
            if data.get("tags"):
                self._set_tags(project, data["tags"])

        logger.info("Client %s created project %s (draft=%s)", client_id, project.id, is_draft)

        self._after_commit({
            "recipient_id": client_id,
            "title": "Draft saved" if is_draft else "Project created",
            "message": f'Your project "{project.title or "Untitled"}" was saved'
                       + (" as a draft." if is_draft else " and is open for applications."),
            "notif_type": NotificationType.PROJECT,
            "data": {"project_id": project.id},
        })
        return self._detailed(project.id)

    @storage_guard("get_project")
    def get_project(self, project_id):
        try:
            return self._detailed(project_id)
        except Project.DoesNotExist:
            raise NotFound("Project not found.")

    @storage_guard("list_open_projects")
    def list_open_projects(self, params=None):
        params = params or {}
        queryset = (
            self._projects()
            .filter(
                deleted=False,
                status=ProjectStatus.OPEN,
                progress_status=ProgressStatus.ONGOING,
            )
            .select_related("client", "client__client_profile")
            .prefetch_related("tags")
        )

        filterset = OpenProjectFilter(data=params, queryset=queryset)
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)

        sort_by = params.get("sort_by") or "created_at"
        sort_order = (params.get("sort_order") or "desc").lower()
        if sort_by not in SORTABLE_FIELDS:
            raise ValidationError({"sort_by": f"Cannot sort by '{sort_by}'."})
        if sort_order not in ("asc", "desc"):
            raise ValidationError({"sort_order": "Must be 'asc' or 'desc'."})

        field = SORTABLE_FIELDS[sort_by]
        ordering = field if sort_order == "asc" else f"-{field}"
        return filterset.qs.order_by(ordering, "-id")

    # ------------------------------------
    # Update / delete / archive
    # ------------------------------------
    @storage_guard("update_project")
    def update_project(self, project_id, actor, data):
        with transaction.atomic(using=self.using):
            project = self._locked(project_id)
            if project.deleted:
                raise NotFound("Project not found.")
            ensure_owner(actor, project.client_id, allow_admin=False,
                         message="Unauthorized to update this project.")

            changed = []
            for name in EDITABLE_FIELDS:
                if name not in data:
                    continue
                value = data[name]
                if name == "budget":
                    value = clean_budget(value)
                elif name == "deadline":
                    value = clean_deadline(value)
                elif value is None:
                    value = ""
                setattr(project, name, value)
                changed.append(name)

            if changed:
                project.save(update_fields=[*changed, "updated_at"])
            if "tags" in data:
                self._set_tags(project, data["tags"] or [])

        return self._detailed(project.id)

    @storage_guard("soft_delete_project")
    def soft_delete_project(self, project_id, actor):
        with transaction.atomic(using=self.using):
            project = self._locked(project_id)
            if project.deleted:
                raise NotFound("Project not found or already deleted.")
            ensure_owner(actor, project.client_id, message="Unauthorized to delete this project.")

            project.deleted = True
            project.deleted_at = timezone.now()
            project.deleted_by_id = actor.user_id
            project.save(update_fields=["deleted", "deleted_at", "deleted_by", "updated_at"])

        logger.info("Project %s soft-deleted by user %s", project.id, actor.user_id)
        return project

    @storage_guard("archive_project")
    def archive_project(self, project_id, actor):
        with transaction.atomic(using=self.using):
            project = self._locked(project_id)
            if project.status != ProjectStatus.CLOSED:
                raise InvalidState("Only closed projects can be archived.")
            if project.deleted:
                raise InvalidState("Project is already archived.")
            ensure_owner(actor, project.client_id, message="Unauthorized to archive this project.")

            project.deleted = True
            project.deleted_at = timezone.now()
            project.deleted_by_id = actor.user_id
            # A completed project keeps its final state.
            if project.progress_status != ProgressStatus.COMPLETED:
                project.progress_status = ProgressStatus.CANCELLED
            project.save(update_fields=[
                "deleted", "deleted_at", "deleted_by", "progress_status",
            ])

        logger.info("Project %s archived by user %s", project.id, actor.user_id)
        return self._detailed(project.id)

    @storage_guard("unarchive_project")
    def unarchive_project(self, project_id, actor):
        with transaction.atomic(using=self.using):
            project = self._locked(project_id)
            if not project.deleted:
                raise NotFound("Archived project not found or already active.")
            ensure_owner(actor, project.client_id, allow_admin=False,
                         message="Unauthorized to unarchive this project.")

            # progress_status is left as archived (cancelled); reopening is an
            # explicit progress update.
            project.deleted = False
            project.deleted_at = None
            project.deleted_by = None
            project.save(update_fields=["deleted", "deleted_at", "deleted_by", "updated_at"])

        return self._detailed(project.id)

    # ------------------------------------
    # Progress
    # ------------------------------------
    @storage_guard("complete_project")
    def complete_project(self, project_id, actor):
        with transaction.atomic(using=self.using):
            project = self._locked(project_id)
            if project.deleted:
                raise NotFound("Project not found.")
            if project.progress_status == ProgressStatus.COMPLETED:
                raise InvalidState("Project is already completed.")
            ensure_owner(actor, project.client_id, message="Unauthorized to complete this project.")

            approved = (
                project.applications
                .filter(status=ApplicationStatus.APPROVED)
                .order_by("updated_at", "id")
                .first()
            )
            if approved is None:
                raise InvalidState("No approved freelancer for this project.")
            if project.budget is None:
                raise InvalidState("Project has no budget to pay out.")

            payment = self.payments.issue_payment(project.id, approved.freelancer_id, project.budget)

            project.progress_status = ProgressStatus.COMPLETED
            project.payment = payment
            project.save(update_fields=["progress_status", "payment"])

        logger.info(
            "Project %s completed; payment %s issued to freelancer %s",
            project.id, payment.id, approved.freelancer_id,
        )

        title = project.title or "Untitled"
        self._after_commit(
            {
                "recipient_id": project.client_id,
                "title": "Project completed",
                "message": f'"{title}" is completed and {payment.amount} was paid out.',
                "notif_type": NotificationType.PROJECT_STATUS,
                "data": {"project_id": project.id, "payment_id": payment.id},
            },
            {
                "recipient_id": approved.freelancer_id,
                "sender_id": project.client_id,
                "title": "Project completed",
                "message": f'"{title}" was marked completed. Payment of {payment.amount} issued.',
                "notif_type": NotificationType.PROJECT_STATUS,
                "data": {"project_id": project.id, "payment_id": payment.id},
            },
        )
        return self._detailed(project.id)

    @storage_guard("update_project_progress")
    def update_project_progress(self, project_id, actor, progress_status):
        if progress_status not in ProgressStatus.values:
            raise ValidationError({
                "progress_status": f"Must be one of: {', '.join(ProgressStatus.values)}.",
            })

        if progress_status == ProgressStatus.COMPLETED:
            # Completion always goes through payment issuance.
            return self.complete_project(project_id, actor)

        with transaction.atomic(using=self.using):
            project = self._locked(project_id)
            if project.deleted:
                raise NotFound("Project not found.")
            ensure_owner(actor, project.client_id, message="Unauthorized to update this project.")
            if project.progress_status == ProgressStatus.COMPLETED:
                raise InvalidState("Completed projects cannot change progress.")

            if progress_status == ProgressStatus.ONGOING:
                ensure_publishable(project)

            previous = project.progress_status
            project.progress_status = progress_status
            project.save(update_fields=["progress_status"])

        logger.info(
            "Project %s progress %s -> %s by user %s",
            project.id, previous, progress_status, actor.user_id,
        )

        self._after_commit({
            "recipient_id": project.client_id,
            "title": "Project status updated",
            "message": f'"{project.title or "Untitled"}" is now {progress_status}.',
            "notif_type": NotificationType.PROJECT_STATUS,
            "data": {"project_id": project.id, "progress_status": progress_status},
        })
        return self._detailed(project.id)
