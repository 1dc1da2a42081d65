from drf_spectacular.utils import extend_schema
from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.cores.context import Actor
from apps.cores.permissions import IsClient, IsFreelancer

from .serializers import (
    ApplicationSerializer,
    ApplicationStatusSerializer,
    ClientApplicationSerializer,
    MyApplicationSerializer,
)
from .services.workflow import ApplicationWorkflowService


class MyApplicationsView(APIView):
    """Applications sent by the current freelancer, newest first."""

    permission_classes = [permissions.IsAuthenticated, IsFreelancer]

    @extend_schema(responses=MyApplicationSerializer(many=True))
    def get(self, request):
        applications = ApplicationWorkflowService().list_for_freelancer(request.user.id)
        return Response(MyApplicationSerializer(applications, many=True).data)


class ClientApplicationsView(APIView):
    """Every application across the current client's projects."""

    permission_classes = [permissions.IsAuthenticated, IsClient]

    @extend_schema(responses=ClientApplicationSerializer(many=True))
    def get(self, request):
        applications = ApplicationWorkflowService().list_for_client(request.user.id)
        return Response(ClientApplicationSerializer(applications, many=True).data)


class ApplicationStatusView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(request=ApplicationStatusSerializer, responses=ApplicationSerializer)
    def patch(self, request, application_id):
        serializer = ApplicationStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        application = ApplicationWorkflowService().update_application_status(
            application_id,
            Actor.from_user(request.user),
            serializer.validated_data["status"],
        )
        return Response(ApplicationSerializer(application).data)
