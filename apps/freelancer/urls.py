from django.urls import path

from .views import (
    FavoriteDetailView,
    FavoriteListView,
    FreelancerDashboardMetricsView,
    FreelancerEarningsView,
    FreelancerVisitsView,
    PublicFreelancerProfileView,
)

urlpatterns = [
    path("freelancers/<int:user_id>/", PublicFreelancerProfileView.as_view(), name="freelancer-public-profile"),

    # -------- Dashboard --------
    path("freelancer-dashboard/metrics/", FreelancerDashboardMetricsView.as_view(), name="freelancer-metrics"),
    path("freelancer-dashboard/earnings/", FreelancerEarningsView.as_view(), name="freelancer-earnings"),
    path("freelancer-dashboard/visits/", FreelancerVisitsView.as_view(), name="freelancer-visits"),

    # -------- Favorites --------
    path("favorites/", FavoriteListView.as_view(), name="favorite-list"),
    path("favorites/<int:project_id>/", FavoriteDetailView.as_view(), name="favorite-detail"),
]
