from django.urls import path

from .views import ApplicationStatusView, ClientApplicationsView, MyApplicationsView

urlpatterns = [
    path("applications/mine/", MyApplicationsView.as_view(), name="my-applications"),
    path("applications/client/", ClientApplicationsView.as_view(), name="client-applications"),
    path(
        "applications/<int:application_id>/status/",
        ApplicationStatusView.as_view(),
        name="application-status",
    ),
]
