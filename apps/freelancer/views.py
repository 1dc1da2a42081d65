import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.billing.selectors import FreelancerEarningsSelector
from apps.billing.serializers import EarningsSummarySerializer, MonthlyEarningSerializer
from apps.cores.context import Actor
from apps.cores.permissions import IsFreelancer
from apps.projects.serializers import ProjectSerializer

from .selectors import FreelancerMetricsSelector
from .serializers import (
    EarningsQuerySerializer,
    FavoriteSerializer,
    PublicFreelancerSerializer,
    VisitQuerySerializer,
)
from .services import FavoriteService, ProfileVisitService

logger = logging.getLogger(__name__)


# ---------------------------
# Public profile
# ---------------------------
class PublicFreelancerProfileView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(responses=PublicFreelancerSerializer)
    def get(self, request, user_id):
        freelancer = ProfileVisitService().view_profile(user_id, visitor_id=request.user.id)
        return Response(PublicFreelancerSerializer(freelancer).data)


# ---------------------------
# Dashboard
# ---------------------------
class FreelancerDashboardMetricsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsFreelancer]

    def get(self, request):
        cards = FreelancerMetricsSelector.cards(request.user.id)
        projects = FreelancerMetricsSelector.approved_projects(request.user.id)
        cards["approved_projects"] = ProjectSerializer(
            projects, many=True, context={"request": request}
        ).data
        return Response(cards)


class FreelancerEarningsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsFreelancer]

    @extend_schema(parameters=[
        OpenApiParameter("year", int),
        OpenApiParameter("month", int),
        OpenApiParameter("compare", bool),
    ])
    def get(self, request):
        query = EarningsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        summary = FreelancerEarningsSelector.summary(request.user.id)
        graph = FreelancerEarningsSelector.earnings_graph(
            request.user.id,
            year=params.get("year"),
            month=params.get("month"),
            compare=params.get("compare", False),
        )
        return Response({
            "summary": EarningsSummarySerializer(summary).data,
            "monthly_earnings": MonthlyEarningSerializer(graph["monthly_earnings"], many=True).data,
            "previous_year_comparison": MonthlyEarningSerializer(
                graph["previous_year_comparison"], many=True
            ).data,
        })


class FreelancerVisitsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsFreelancer]

    @extend_schema(parameters=[OpenApiParameter("days", int)])
    def get(self, request):
        query = VisitQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        stats = ProfileVisitService().visit_stats(
            request.user.id,
            Actor.from_user(request.user),
            days=query.validated_data["days"],
        )
        return Response(stats)


# ---------------------------
# Favorites
# ---------------------------
class FavoriteListView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsFreelancer]

    @extend_schema(responses=FavoriteSerializer(many=True))
    def get(self, request):
        favorites = FavoriteService().list_favorites(request.user.id)
        return Response(FavoriteSerializer(favorites, many=True, context={"request": request}).data)


class FavoriteDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsFreelancer]

    @extend_schema(request=None, responses={201: FavoriteSerializer})
    def post(self, request, project_id):
        favorite = FavoriteService().add_favorite(Actor.from_user(request.user), project_id)
        return Response(
            FavoriteSerializer(favorite, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(responses={204: None})
    def delete(self, request, project_id):
        FavoriteService().remove_favorite(Actor.from_user(request.user), project_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
