from decimal import Decimal

import pytest

from apps.billing.models import Payment
from apps.cores.context import Actor
from apps.cores.exceptions import Forbidden, InvalidState, NotFound, ValidationError
from apps.notifications.models import Notification, NotificationType
from apps.notifications.services import NotificationService
from apps.projects.models import ProgressStatus, Project, ProjectStatus, derive_status
from apps.projects.services import ProjectLifecycleService

from .conftest import BrokenSink

pytestmark = pytest.mark.django_db


def assert_status_projection(project):
    project.refresh_from_db()
    assert project.status == derive_status(project.progress_status)
    assert (project.status == ProjectStatus.OPEN) == (project.progress_status == ProgressStatus.ONGOING)


# ------------------------------------
# create_project
# ------------------------------------
def test_create_published_project_is_open(lifecycle, client_user, project_data):
    project = lifecycle.create_project(client_user.id, project_data)

    assert project.progress_status == ProgressStatus.ONGOING
    assert project.status == ProjectStatus.OPEN
    assert project.deleted is False
    assert sorted(t.name for t in project.tags.all()) == ["django", "python"]
    assert project.client.client_profile.company_name == "Acme"


def test_create_draft_without_title(lifecycle, client_user):
    project = lifecycle.create_project(client_user.id, {"description": "rough idea"}, is_draft=True)

    assert project.progress_status == ProgressStatus.DRAFT
    assert project.status == ProjectStatus.CLOSED
    assert project.title == ""


def test_create_without_budget_creates_nothing(lifecycle, client_user, project_data):
    del project_data["budget"]

    with pytest.raises(ValidationError) as exc:
        lifecycle.create_project(client_user.id, project_data)

    assert "budget" in str(exc.value.detail["missing_fields"])
    assert Project.objects.count() == 0


def test_create_rejects_negative_budget(lifecycle, client_user, project_data):
    project_data["budget"] = Decimal("-1")

    with pytest.raises(ValidationError):
        lifecycle.create_project(client_user.id, project_data)
    assert Project.objects.count() == 0


def test_create_for_unknown_client(lifecycle, project_data):
    with pytest.raises(NotFound):
        lifecycle.create_project(424242, project_data)


def test_create_notifies_client_after_commit(
    lifecycle, client_user, project_data, sink, django_capture_on_commit_callbacks
):
    with django_capture_on_commit_callbacks(execute=True):
        lifecycle.create_project(client_user.id, project_data)

    notif = Notification.objects.get(recipient=client_user)
    assert notif.notif_type == NotificationType.PROJECT
    assert notif.title == "Project created"
    assert [user_id for user_id, _ in sink.events] == [client_user.id]


def test_draft_notification_title(lifecycle, client_user, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        lifecycle.create_project(client_user.id, {}, is_draft=True)

    assert Notification.objects.get(recipient=client_user).title == "Draft saved"


# ------------------------------------
# update / delete
# ------------------------------------
def test_update_by_owner(lifecycle, open_project, client_user):
    updated = lifecycle.update_project(
        open_project.id,
        Actor.from_user(client_user),
        {"title": "New title", "tags": ["rest"]},
    )

    assert updated.title == "New title"
    assert [t.name for t in updated.tags.all()] == ["rest"]
    assert updated.progress_status == ProgressStatus.ONGOING


def test_update_by_other_client_is_forbidden(lifecycle, open_project, other_client):
    with pytest.raises(Forbidden):
        lifecycle.update_project(open_project.id, Actor.from_user(other_client), {"title": "x"})


def test_update_missing_or_deleted(lifecycle, open_project, client_user):
    actor = Actor.from_user(client_user)
    with pytest.raises(NotFound):
        lifecycle.update_project(999999, actor, {"title": "x"})

    lifecycle.soft_delete_project(open_project.id, actor)
    with pytest.raises(NotFound):
        lifecycle.update_project(open_project.id, actor, {"title": "x"})


def test_soft_delete(lifecycle, open_project, client_user):
    actor = Actor.from_user(client_user)
    project = lifecycle.soft_delete_project(open_project.id, actor)

    assert project.deleted is True
    assert project.deleted_at is not None
    assert project.deleted_by_id == client_user.id

    with pytest.raises(NotFound):
        lifecycle.soft_delete_project(open_project.id, actor)


def test_admin_can_soft_delete(lifecycle, open_project, admin_user):
    project = lifecycle.soft_delete_project(open_project.id, Actor.from_user(admin_user))
    assert project.deleted_by_id == admin_user.id


def test_freelancer_cannot_soft_delete(lifecycle, open_project, freelancer):
    with pytest.raises(Forbidden):
        lifecycle.soft_delete_project(open_project.id, Actor.from_user(freelancer))


# ------------------------------------
# archive / unarchive
# ------------------------------------
def test_archive_requires_closed_project(lifecycle, open_project, client_user):
    with pytest.raises(InvalidState):
        lifecycle.archive_project(open_project.id, Actor.from_user(client_user))
    assert_status_projection(open_project)


def test_archive_closed_project_cancels_it(lifecycle, client_user):
    actor = Actor.from_user(client_user)
    draft = lifecycle.create_project(client_user.id, {"title": "later"}, is_draft=True)

    archived = lifecycle.archive_project(draft.id, actor)

    assert archived.deleted is True
    assert archived.progress_status == ProgressStatus.CANCELLED
    assert archived.status == ProjectStatus.CLOSED

    with pytest.raises(InvalidState):
        lifecycle.archive_project(draft.id, actor)


def test_archive_missing_project(lifecycle, client_user):
    with pytest.raises(NotFound):
        lifecycle.archive_project(31337, Actor.from_user(client_user))


def test_archive_by_other_client_is_forbidden(lifecycle, client_user, other_client):
    draft = lifecycle.create_project(client_user.id, {}, is_draft=True)
    with pytest.raises(Forbidden):
        lifecycle.archive_project(draft.id, Actor.from_user(other_client))


def test_unarchive_keeps_project_cancelled(lifecycle, client_user):
    actor = Actor.from_user(client_user)
    draft = lifecycle.create_project(client_user.id, {}, is_draft=True)
    lifecycle.archive_project(draft.id, actor)

    restored = lifecycle.unarchive_project(draft.id, actor)

    assert restored.deleted is False
    assert restored.deleted_at is None
    assert restored.deleted_by_id is None
    assert restored.progress_status == ProgressStatus.CANCELLED
    assert restored.status == ProjectStatus.CLOSED


def test_unarchive_active_project(lifecycle, open_project, client_user):
    with pytest.raises(NotFound):
        lifecycle.unarchive_project(open_project.id, Actor.from_user(client_user))


# ------------------------------------
# progress
# ------------------------------------
def test_draft_needs_explicit_publish(lifecycle, client_user, project_data):
    actor = Actor.from_user(client_user)
    draft = lifecycle.create_project(client_user.id, {}, is_draft=True)

    lifecycle.update_project(draft.id, actor, project_data)
    assert not lifecycle.list_open_projects({}).filter(id=draft.id).exists()

    published = lifecycle.update_project_progress(draft.id, actor, ProgressStatus.ONGOING)

    assert published.status == ProjectStatus.OPEN
    assert lifecycle.list_open_projects({}).filter(id=draft.id).exists()


def test_publish_incomplete_draft_fails(lifecycle, client_user):
    actor = Actor.from_user(client_user)
    draft = lifecycle.create_project(client_user.id, {"title": "only a title"}, is_draft=True)

    with pytest.raises(ValidationError):
        lifecycle.update_project_progress(draft.id, actor, ProgressStatus.ONGOING)

    draft.refresh_from_db()
    assert draft.progress_status == ProgressStatus.DRAFT


def test_progress_rejects_unknown_value(lifecycle, open_project, client_user):
    with pytest.raises(ValidationError):
        lifecycle.update_project_progress(open_project.id, Actor.from_user(client_user), "paused")


def test_cancel_closes_project(lifecycle, open_project, client_user):
    project = lifecycle.update_project_progress(
        open_project.id, Actor.from_user(client_user), ProgressStatus.CANCELLED
    )
    assert project.status == ProjectStatus.CLOSED
    assert_status_projection(project)


def test_progress_to_completed_issues_payment(lifecycle, staffed_project, client_user, freelancer):
    project = lifecycle.update_project_progress(
        staffed_project.id, Actor.from_user(client_user), ProgressStatus.COMPLETED
    )

    assert project.progress_status == ProgressStatus.COMPLETED
    assert project.payment.freelancer_id == freelancer.id


def test_completed_progress_is_final(lifecycle, staffed_project, client_user):
    actor = Actor.from_user(client_user)
    lifecycle.complete_project(staffed_project.id, actor)

    with pytest.raises(InvalidState):
        lifecycle.update_project_progress(staffed_project.id, actor, ProgressStatus.ONGOING)

    staffed_project.refresh_from_db()
    assert staffed_project.progress_status == ProgressStatus.COMPLETED


# ------------------------------------
# complete_project
# ------------------------------------
def test_complete_project_pays_approved_freelancer(
    lifecycle, staffed_project, client_user, freelancer, django_capture_on_commit_callbacks
):
    with django_capture_on_commit_callbacks(execute=True):
        project = lifecycle.complete_project(staffed_project.id, Actor.from_user(client_user))

    assert project.progress_status == ProgressStatus.COMPLETED
    assert project.status == ProjectStatus.CLOSED

    payment = Payment.objects.get(project=project)
    assert payment.amount == Decimal("800.00")
    assert payment.freelancer_id == freelancer.id
    assert project.payment_id == payment.id

    recipients = set(
        Notification.objects.filter(notif_type=NotificationType.PROJECT_STATUS)
        .values_list("recipient_id", flat=True)
    )
    assert recipients == {client_user.id, freelancer.id}


def test_complete_twice_creates_one_payment(lifecycle, staffed_project, client_user):
    actor = Actor.from_user(client_user)
    lifecycle.complete_project(staffed_project.id, actor)

    with pytest.raises(InvalidState):
        lifecycle.complete_project(staffed_project.id, actor)

    assert Payment.objects.filter(project=staffed_project).count() == 1


def test_complete_without_approved_freelancer(lifecycle, open_project, application, client_user):
    with pytest.raises(InvalidState):
        lifecycle.complete_project(open_project.id, Actor.from_user(client_user))

    assert Payment.objects.count() == 0
    open_project.refresh_from_db()
    assert open_project.progress_status == ProgressStatus.ONGOING


def test_complete_by_freelancer_is_forbidden(lifecycle, staffed_project, freelancer):
    with pytest.raises(Forbidden):
        lifecycle.complete_project(staffed_project.id, Actor.from_user(freelancer))


def test_complete_deleted_project(lifecycle, staffed_project, client_user):
    actor = Actor.from_user(client_user)
    lifecycle.soft_delete_project(staffed_project.id, actor)

    with pytest.raises(NotFound):
        lifecycle.complete_project(staffed_project.id, actor)


def test_admin_can_complete(lifecycle, staffed_project, admin_user):
    project = lifecycle.complete_project(staffed_project.id, Actor.from_user(admin_user))
    assert project.progress_status == ProgressStatus.COMPLETED


def test_archiving_completed_project_keeps_it_completed(lifecycle, staffed_project, client_user):
    actor = Actor.from_user(client_user)
    lifecycle.complete_project(staffed_project.id, actor)

    archived = lifecycle.archive_project(staffed_project.id, actor)

    assert archived.deleted is True
    assert archived.progress_status == ProgressStatus.COMPLETED


def test_push_failure_does_not_undo_completion(
    staffed_project, client_user, freelancer, django_capture_on_commit_callbacks
):
    service = ProjectLifecycleService(notifications=NotificationService(sink=BrokenSink()))

    with django_capture_on_commit_callbacks(execute=True):
        project = service.complete_project(staffed_project.id, Actor.from_user(client_user))

    assert project.progress_status == ProgressStatus.COMPLETED
    assert Notification.objects.filter(recipient=freelancer).exists()


# ------------------------------------
# list_open_projects
# ------------------------------------
def test_open_listing_excludes_closed_and_deleted(lifecycle, client_user, project_data):
    actor = Actor.from_user(client_user)
    visible = lifecycle.create_project(client_user.id, project_data)
    lifecycle.create_project(client_user.id, {}, is_draft=True)
    removed = lifecycle.create_project(client_user.id, project_data)
    lifecycle.soft_delete_project(removed.id, actor)

    assert list(lifecycle.list_open_projects({})) == [visible]


def test_open_listing_filters(lifecycle, client_user, project_data):
    cheap = lifecycle.create_project(
        client_user.id, {**project_data, "title": "Logo design", "budget": Decimal("100"), "tags": ["design"]}
    )
    pricey = lifecycle.create_project(client_user.id, {**project_data, "budget": Decimal("2000")})

    assert list(lifecycle.list_open_projects({"search": "logo"})) == [cheap]
    assert list(lifecycle.list_open_projects({"search": "design"})) == [cheap]
    assert list(lifecycle.list_open_projects({"min_budget": "500"})) == [pricey]
    assert list(lifecycle.list_open_projects({"max_budget": "500"})) == [cheap]
    assert set(lifecycle.list_open_projects({"tags": "design,django"})) == {cheap, pricey}


def test_open_listing_sorting(lifecycle, client_user, project_data):
    low = lifecycle.create_project(client_user.id, {**project_data, "budget": Decimal("10")})
    high = lifecycle.create_project(client_user.id, {**project_data, "budget": Decimal("20")})

    ascending = lifecycle.list_open_projects({"sort_by": "budget", "sort_order": "asc"})
    assert list(ascending) == [low, high]
    assert list(lifecycle.list_open_projects({})) == [high, low]


@pytest.mark.parametrize("params", [
    {"min_budget": "cheap"},
    {"sort_by": "password"},
    {"sort_order": "sideways"},
])
def test_open_listing_rejects_bad_params(lifecycle, params):
    with pytest.raises(ValidationError):
        lifecycle.list_open_projects(params)
