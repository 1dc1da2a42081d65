from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from apps.applications.services import ApplicationWorkflowService
from apps.cores.context import Actor
from apps.freelancer.models import FreelancerProfile
from apps.notifications.services import NotificationService
from apps.notifications.sinks import NotificationSink
from apps.projects.services import ProjectLifecycleService
from apps.users.models import ClientProfile, Role, User


class RecordingSink(NotificationSink):
    def __init__(self):
        self.events = []

    def push(self, user_id, event):
        self.events.append((user_id, event))


class BrokenSink(NotificationSink):
    def push(self, user_id, event):
        raise ConnectionError("channel layer unavailable")


def make_user(email, role, **extra):
    username = email.split("@")[0]
    return User.objects.create_user(email, username, "pass1234", role=role, **extra)


@pytest.fixture
def client_user(db):
    user = make_user("client@example.com", Role.CLIENT, fullname="Carla Client")
    ClientProfile.objects.create(user=user, company_name="Acme", country="PT")
    return user


@pytest.fixture
def other_client(db):
    return make_user("other@example.com", Role.CLIENT)


@pytest.fixture
def freelancer(db):
    user = make_user("free@example.com", Role.FREELANCER, fullname="Fred Lancer")
    FreelancerProfile.objects.create(user=user, profession="Backend developer", hourly_rate=Decimal("40"))
    return user


@pytest.fixture
def second_freelancer(db):
    return make_user("free2@example.com", Role.FREELANCER)


@pytest.fixture
def admin_user(db):
    return make_user("admin@example.com", Role.ADMIN, is_staff=True)


@pytest.fixture
def actor_for():
    return Actor.from_user


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def notifications(sink):
    return NotificationService(sink=sink)


@pytest.fixture
def lifecycle(notifications):
    return ProjectLifecycleService(notifications=notifications)


@pytest.fixture
def workflow(notifications):
    return ApplicationWorkflowService(notifications=notifications)


@pytest.fixture
def project_data():
    return {
        "title": "Build an API",
        "description": "REST API for a booking system",
        "budget": Decimal("800.00"),
        "deadline": timezone.now() + timedelta(days=30),
        "tags": ["python", "django"],
    }


@pytest.fixture
def open_project(lifecycle, client_user, project_data):
    return lifecycle.create_project(client_user.id, project_data)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client():
    def _auth(user):
        api = APIClient()
        api.force_authenticate(user=user)
        return api
    return _auth


@pytest.fixture
def application(workflow, open_project, freelancer):
    return workflow.apply_to_project(open_project.id, Actor.from_user(freelancer), "I can do it")


@pytest.fixture
def staffed_project(workflow, open_project, application, client_user):
    workflow.update_application_status(application.id, Actor.from_user(client_user), "approved")
    open_project.refresh_from_db()
    return open_project
