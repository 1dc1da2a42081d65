from rest_framework import serializers

from apps.users.serializers import SenderSerializer

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    sender = SenderSerializer(read_only=True)

    class Meta:
        model = Notification
        fields = [
            "id",
            "title",
            "message",
            "notif_type",
            "data",
            "is_read",
            "sender",
            "created_at",
        ]
        read_only_fields = fields
