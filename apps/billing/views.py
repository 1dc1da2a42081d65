from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.billing.selectors import PaymentAccessSelector
from apps.cores.context import Actor
from apps.cores.pagination import PageLimitPagination

from .serializers import PaymentSerializer


class PaymentListView(APIView):
    """
    Payments visible to the requester: received (freelancer), paid on own
    projects (client) or all (admin).
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(responses=PaymentSerializer(many=True))
    def get(self, request):
        qs = PaymentAccessSelector.for_actor(Actor.from_user(request.user)).order_by("-paid_at", "-id")

        paginator = PageLimitPagination()
        page = paginator.paginate_queryset(qs, request, view=self)
        return paginator.get_paginated_response(PaymentSerializer(page, many=True).data)
