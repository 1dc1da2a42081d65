from rest_framework import serializers

from .models import ClientProfile, User


# ----------------------------
# Client profile
# ----------------------------
class ClientProfileSerializer(serializers.ModelSerializer):
    member_since = serializers.SerializerMethodField()

    class Meta:
        model = ClientProfile
        fields = [
            "company_name",
            "company_logo",
            "bio",
            "country",
            "city",
            "verified",
            "member_since",
        ]

    def get_member_since(self, obj):
        return obj.user.created_at.strftime("%B %Y") if obj.user.created_at else None


# ----------------------------
# User embeds
# ----------------------------
class UserMiniSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = ["id", "name", "email", "role"]


class ClientSerializer(UserMiniSerializer):
    client_profile = serializers.SerializerMethodField()

    class Meta(UserMiniSerializer.Meta):
        fields = UserMiniSerializer.Meta.fields + ["client_profile"]

    def get_client_profile(self, obj):
        profile = getattr(obj, "client_profile", None)
        if profile is None:
            return None
        return ClientProfileSerializer(profile, context=self.context).data


class SenderSerializer(serializers.ModelSerializer):
    """Display info for the sender of a notification."""

    name = serializers.CharField(source="display_name", read_only=True)
    avatar = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "name", "role", "avatar"]

    def get_avatar(self, obj):
        freelancer_profile = getattr(obj, "freelancer_profile", None)
        if freelancer_profile is not None and freelancer_profile.avatar_url:
            return freelancer_profile.avatar_url
        client_profile = getattr(obj, "client_profile", None)
        if client_profile is not None:
            return client_profile.company_logo
        return None
