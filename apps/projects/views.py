import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.applications.serializers import (
    ApplicantSerializer,
    ApplicationCreateSerializer,
    ApplicationSerializer,
)
from apps.applications.services.workflow import ApplicationWorkflowService
from apps.cores.context import Actor
from apps.cores.pagination import PageLimitPagination
from apps.cores.permissions import IsClient, IsFreelancer

from .selectors import ClientProjectMetricsSelector, ClientProjectSelector
from .serializers import (
    ProgressSerializer,
    ProjectCreateSerializer,
    ProjectSerializer,
    ProjectUpdateSerializer,
)
from .services import ProjectLifecycleService

logger = logging.getLogger(__name__)


OPEN_PROJECT_PARAMS = [
    OpenApiParameter("search", str),
    OpenApiParameter("min_budget", float),
    OpenApiParameter("max_budget", float),
    OpenApiParameter("start_date", str, description="Deadline lower bound (ISO 8601)"),
    OpenApiParameter("end_date", str, description="Deadline upper bound (ISO 8601)"),
    OpenApiParameter("tags", str, description="Comma separated, matches any"),
    OpenApiParameter("sort_by", str, enum=["created_at", "budget", "deadline", "title"]),
    OpenApiParameter("sort_order", str, enum=["asc", "desc"]),
    OpenApiParameter("page", int),
    OpenApiParameter("limit", int),
]


class ProjectViewSet(viewsets.ViewSet):
    """
    Project board, client project management and lifecycle transitions.
    """
    permission_classes = [permissions.IsAuthenticated]
    pagination_class = PageLimitPagination
    lookup_value_regex = r"\d+"

    client_actions = {"create", "mine", "archived", "metrics", "unarchive"}

    def get_permissions(self):
        if self.action in self.client_actions:
            return [permissions.IsAuthenticated(), IsClient()]
        if self.action == "applications" and self.request.method == "POST":
            return [permissions.IsAuthenticated(), IsFreelancer()]
        return super().get_permissions()

    @property
    def service(self):
        return ProjectLifecycleService()

    @property
    def actor(self):
        return Actor.from_user(self.request.user)

    def _paginate(self, queryset, serializer_class=ProjectSerializer):
        paginator = self.pagination_class()
        page = paginator.paginate_queryset(queryset, self.request, view=self)
        data = serializer_class(page, many=True, context={"request": self.request}).data
        return paginator.get_paginated_response(data)

    def _respond(self, project, status_code=status.HTTP_200_OK):
        return Response(
            ProjectSerializer(project, context={"request": self.request}).data,
            status=status_code,
        )

    # ------------------------------------
    # Board
    # ------------------------------------
    @extend_schema(parameters=OPEN_PROJECT_PARAMS, responses=ProjectSerializer(many=True))
    def list(self, request):
        queryset = self.service.list_open_projects(request.query_params)
        return self._paginate(queryset)

    @extend_schema(request=ProjectCreateSerializer, responses={201: ProjectSerializer})
    def create(self, request):
        serializer = ProjectCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        is_draft = data.pop("is_draft", False)

        project = self.service.create_project(request.user.id, data, is_draft=is_draft)
        return self._respond(project, status.HTTP_201_CREATED)

    @extend_schema(responses=ProjectSerializer)
    def retrieve(self, request, pk=None):
        return self._respond(self.service.get_project(pk))

    @extend_schema(request=ProjectUpdateSerializer, responses=ProjectSerializer)
    def partial_update(self, request, pk=None):
        serializer = ProjectUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        project = self.service.update_project(pk, self.actor, serializer.validated_data)
        return self._respond(project)

    @extend_schema(responses={204: None})
    def destroy(self, request, pk=None):
        self.service.soft_delete_project(pk, self.actor)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------
    # Client views
    # ------------------------------------
    @extend_schema(
        parameters=[
            OpenApiParameter("progress_status", str),
            OpenApiParameter("status", str),
            OpenApiParameter("include_archived", bool),
            OpenApiParameter("page", int),
            OpenApiParameter("limit", int),
        ],
        responses=ProjectSerializer(many=True),
    )
    @action(detail=False, methods=["get"])
    def mine(self, request):
        queryset = ClientProjectSelector.for_client(request.user.id, request.query_params)
        return self._paginate(queryset)

    @action(detail=False, methods=["get"])
    def archived(self, request):
        grouped = ClientProjectSelector.grouped(request.user.id)
        context = {"request": request}
        return Response({
            "active": ProjectSerializer(grouped["active"], many=True, context=context).data,
            "archived": ProjectSerializer(grouped["archived"], many=True, context=context).data,
        })

    @action(detail=False, methods=["get"])
    def metrics(self, request):
        return Response(ClientProjectMetricsSelector.summary(request.user.id))

    # ------------------------------------
    # Lifecycle
    # ------------------------------------
    @extend_schema(request=None, responses=ProjectSerializer)
    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):
        return self._respond(self.service.archive_project(pk, self.actor))

    @extend_schema(request=None, responses=ProjectSerializer)
    @action(detail=True, methods=["post"])
    def unarchive(self, request, pk=None):
        return self._respond(self.service.unarchive_project(pk, self.actor))

    @extend_schema(request=None, responses=ProjectSerializer)
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        return self._respond(self.service.complete_project(pk, self.actor))

    @extend_schema(request=ProgressSerializer, responses=ProjectSerializer)
    @action(detail=True, methods=["patch"])
    def progress(self, request, pk=None):
        serializer = ProgressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        project = self.service.update_project_progress(
            pk, self.actor, serializer.validated_data["progress_status"]
        )
        return self._respond(project)

    # ------------------------------------
    # Applications on a project
    # ------------------------------------
    @extend_schema(request=ApplicationCreateSerializer, responses=ApplicantSerializer(many=True))
    @action(detail=True, methods=["get", "post"])
    def applications(self, request, pk=None):
        workflow = ApplicationWorkflowService()

        if request.method == "POST":
            serializer = ApplicationCreateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            application = workflow.apply_to_project(
                pk, self.actor, serializer.validated_data.get("message", "")
            )
            return Response(ApplicationSerializer(application).data, status=status.HTTP_201_CREATED)

        applicants = workflow.list_applicants(pk, self.actor)
        return Response(ApplicantSerializer(applicants, many=True).data)
