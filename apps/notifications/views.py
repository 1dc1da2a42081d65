from drf_spectacular.utils import extend_schema, inline_serializer
from rest_framework import serializers, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.cores.context import Actor

from .serializers import NotificationSerializer
from .services import NotificationService


class NotificationListView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses=NotificationSerializer(many=True))
    def get(self, request):
        notifications = NotificationService().list_for_user(request.user.id)
        return Response(NotificationSerializer(notifications, many=True).data)


class UnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses=inline_serializer("UnreadCount", {"unread_count": serializers.IntegerField()}))
    def get(self, request):
        return Response({"unread_count": NotificationService().unread_count(request.user.id)})


class MarkAllReadView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses=inline_serializer("MarkAllRead", {"updated": serializers.IntegerField()}))
    def post(self, request):
        updated = NotificationService().mark_all_read(request.user.id)
        return Response({"updated": updated})


class MarkReadView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses=NotificationSerializer)
    def patch(self, request, notification_id):
        notif = NotificationService().mark_read(notification_id, Actor.from_user(request.user))
        return Response(NotificationSerializer(notif).data)


class NotificationDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={204: None})
    def delete(self, request, notification_id):
        NotificationService().delete_notification(notification_id, Actor.from_user(request.user))
        return Response(status=status.HTTP_204_NO_CONTENT)
