from unittest import mock

import pytest
from django.db import IntegrityError, transaction
from django.db.models.query import QuerySet

from apps.applications.models import Application, ApplicationStatus
from apps.cores.context import Actor
from apps.cores.exceptions import Conflict, Forbidden, InvalidState, NotFound, ValidationError
from apps.notifications.models import Notification, NotificationType
from apps.projects.models import ProgressStatus, Project, ProjectStatus

pytestmark = pytest.mark.django_db


# ------------------------------------
# apply_to_project
# ------------------------------------
def test_apply_creates_pending_application(workflow, open_project, freelancer):
    application = workflow.apply_to_project(open_project.id, Actor.from_user(freelancer), "Hello")

    assert application.status == ApplicationStatus.PENDING
    assert application.project_id == open_project.id
    assert application.message == "Hello"


def test_apply_notifies_client(
    workflow, open_project, freelancer, client_user, sink, django_capture_on_commit_callbacks
):
    with django_capture_on_commit_callbacks(execute=True):
        workflow.apply_to_project(open_project.id, Actor.from_user(freelancer), "Hello")

    notif = Notification.objects.get(recipient=client_user)
    assert notif.notif_type == NotificationType.APPLICATION
    assert notif.sender_id == freelancer.id
    assert notif.data["project_id"] == open_project.id
    assert sink.events[0][0] == client_user.id


def test_apply_twice_conflicts(workflow, open_project, freelancer):
    actor = Actor.from_user(freelancer)
    workflow.apply_to_project(open_project.id, actor, "first")

    with pytest.raises(Conflict):
        workflow.apply_to_project(open_project.id, actor, "second")

    assert Application.objects.filter(project=open_project, freelancer=freelancer).count() == 1


def test_duplicate_application_rows_are_rejected_by_storage(application):
    with pytest.raises(IntegrityError), transaction.atomic():
        Application.objects.create(
            project_id=application.project_id, freelancer_id=application.freelancer_id,
        )


def test_apply_conflicts_when_duplicate_slips_past_lookup(workflow, application, freelancer):
    with mock.patch.object(QuerySet, "exists", return_value=False):
        with pytest.raises(Conflict):
            workflow.apply_to_project(application.project_id, Actor.from_user(freelancer), "again")

    assert Application.objects.filter(freelancer=freelancer).count() == 1


def test_only_freelancers_apply(workflow, open_project, other_client):
    with pytest.raises(Forbidden):
        workflow.apply_to_project(open_project.id, Actor.from_user(other_client), "")


def test_apply_to_closed_project(workflow, lifecycle, client_user, freelancer):
    draft = lifecycle.create_project(client_user.id, {}, is_draft=True)

    with pytest.raises(InvalidState):
        workflow.apply_to_project(draft.id, Actor.from_user(freelancer), "")


def test_apply_to_deleted_or_missing_project(workflow, lifecycle, open_project, client_user, freelancer):
    actor = Actor.from_user(freelancer)
    with pytest.raises(InvalidState):
        workflow.apply_to_project(987654, actor, "")

    lifecycle.soft_delete_project(open_project.id, Actor.from_user(client_user))
    with pytest.raises(InvalidState):
        workflow.apply_to_project(open_project.id, actor, "")


# ------------------------------------
# listings
# ------------------------------------
def test_list_for_freelancer_newest_first(workflow, lifecycle, client_user, freelancer, project_data):
    actor = Actor.from_user(freelancer)
    first = lifecycle.create_project(client_user.id, project_data)
    second = lifecycle.create_project(client_user.id, project_data)
    a1 = workflow.apply_to_project(first.id, actor, "")
    a2 = workflow.apply_to_project(second.id, actor, "")

    assert workflow.list_for_freelancer(freelancer.id) == [a2, a1]


def test_list_applicants_owner_only(workflow, open_project, application, client_user, other_client):
    applicants = workflow.list_applicants(open_project.id, Actor.from_user(client_user))
    assert applicants == [application]
    assert applicants[0].freelancer.freelancer_profile.profession == "Backend developer"

    with pytest.raises(Forbidden):
        workflow.list_applicants(open_project.id, Actor.from_user(other_client))
    with pytest.raises(NotFound):
        workflow.list_applicants(55555, Actor.from_user(client_user))


def test_list_for_client(workflow, open_project, application, client_user, other_client):
    assert workflow.list_for_client(client_user.id) == [application]
    assert workflow.list_for_client(other_client.id) == []


# ------------------------------------
# update_application_status
# ------------------------------------
def test_approve_sets_project_ongoing(workflow, lifecycle, open_project, application, client_user):
    actor = Actor.from_user(client_user)
    lifecycle.update_project_progress(open_project.id, actor, ProgressStatus.CANCELLED)

    updated = workflow.update_application_status(application.id, actor, "approved")

    assert updated.status == ApplicationStatus.APPROVED
    open_project.refresh_from_db()
    assert open_project.progress_status == ProgressStatus.ONGOING
    assert open_project.status == ProjectStatus.OPEN


def test_second_approval_conflicts(workflow, open_project, application, second_freelancer, client_user):
    actor = Actor.from_user(client_user)
    other = workflow.apply_to_project(open_project.id, Actor.from_user(second_freelancer), "")
    workflow.update_application_status(application.id, actor, "approved")

    with pytest.raises(Conflict):
        workflow.update_application_status(other.id, actor, "approved")

    other.refresh_from_db()
    assert other.status == ApplicationStatus.PENDING


def test_second_approved_row_is_rejected_by_storage(staffed_project, second_freelancer):
    with pytest.raises(IntegrityError), transaction.atomic():
        Application.objects.create(
            project=staffed_project, freelancer=second_freelancer, status=ApplicationStatus.APPROVED,
        )


def test_approval_conflicts_when_rival_slips_past_lookup(
    workflow, staffed_project, second_freelancer, client_user
):
    rival = Application.objects.create(project=staffed_project, freelancer=second_freelancer)

    with mock.patch.object(QuerySet, "exists", return_value=False):
        with pytest.raises(Conflict):
            workflow.update_application_status(rival.id, Actor.from_user(client_user), "approved")

    rival.refresh_from_db()
    assert rival.status == ApplicationStatus.PENDING
    assert Application.objects.filter(project=staffed_project, status="approved").count() == 1


def test_approval_does_not_publish_incomplete_project(workflow, application, client_user):
    Project.objects.filter(pk=application.project_id).update(
        title="", progress_status=ProgressStatus.DRAFT, status=ProjectStatus.CLOSED,
    )

    with pytest.raises(ValidationError) as exc:
        workflow.update_application_status(application.id, Actor.from_user(client_user), "approved")

    assert exc.value.detail["missing_fields"] == ["title"]
    application.refresh_from_db()
    assert application.status == ApplicationStatus.PENDING
    project = Project.objects.get(pk=application.project_id)
    assert project.progress_status == ProgressStatus.DRAFT
    assert project.status == ProjectStatus.CLOSED


def test_reapproving_same_application_is_allowed(workflow, application, client_user):
    actor = Actor.from_user(client_user)
    workflow.update_application_status(application.id, actor, "approved")
    again = workflow.update_application_status(application.id, actor, "approved")
    assert again.status == ApplicationStatus.APPROVED


def test_rejecting_sole_approved_cancels_project(workflow, staffed_project, application, client_user):
    workflow.update_application_status(application.id, Actor.from_user(client_user), "rejected")

    staffed_project.refresh_from_db()
    assert staffed_project.progress_status == ProgressStatus.CANCELLED
    assert staffed_project.status == ProjectStatus.CLOSED


def test_rejecting_only_applicant_cancels_project(
    workflow, open_project, application, client_user, freelancer, django_capture_on_commit_callbacks
):
    with django_capture_on_commit_callbacks(execute=True):
        rejected = workflow.update_application_status(
            application.id, Actor.from_user(client_user), "rejected"
        )

    assert rejected.status == ApplicationStatus.REJECTED
    open_project.refresh_from_db()
    assert open_project.progress_status == ProgressStatus.CANCELLED
    assert open_project.status == ProjectStatus.CLOSED

    notif = Notification.objects.get(recipient=freelancer)
    assert notif.notif_type == NotificationType.APPLICATION_STATUS
    assert notif.data["status"] == "rejected"


def test_rejecting_pending_keeps_staffed_project(
    workflow, staffed_project, second_freelancer, client_user
):
    pending = workflow.apply_to_project(staffed_project.id, Actor.from_user(second_freelancer), "")

    workflow.update_application_status(pending.id, Actor.from_user(client_user), "rejected")

    staffed_project.refresh_from_db()
    assert staffed_project.progress_status == ProgressStatus.ONGOING


def test_rejecting_one_of_many_pending_keeps_project(
    workflow, open_project, application, second_freelancer, client_user
):
    workflow.apply_to_project(open_project.id, Actor.from_user(second_freelancer), "")

    workflow.update_application_status(application.id, Actor.from_user(client_user), "rejected")

    open_project.refresh_from_db()
    assert open_project.progress_status == ProgressStatus.ONGOING


def test_status_value_is_validated(workflow, application, client_user):
    with pytest.raises(ValidationError):
        workflow.update_application_status(application.id, Actor.from_user(client_user), "pending")


def test_status_update_checks(workflow, application, other_client, client_user):
    with pytest.raises(NotFound):
        workflow.update_application_status(777777, Actor.from_user(client_user), "approved")
    with pytest.raises(Forbidden):
        workflow.update_application_status(application.id, Actor.from_user(other_client), "approved")


def test_status_frozen_after_completion(workflow, lifecycle, staffed_project, application, client_user):
    actor = Actor.from_user(client_user)
    lifecycle.complete_project(staffed_project.id, actor)

    with pytest.raises(InvalidState):
        workflow.update_application_status(application.id, actor, "rejected")
