from rest_framework import serializers

from apps.users.models import User

from .models import Favorite, FreelancerProfile


class FreelancerProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = FreelancerProfile
        fields = [
            "profession",
            "bio",
            "avatar_url",
            "hourly_rate",
            "is_verified",
        ]


class FreelancerSerializer(serializers.ModelSerializer):
    """Freelancer embed used on applicant lists and public profiles."""

    name = serializers.CharField(source="display_name", read_only=True)
    profile = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "name", "email", "profile"]

    def get_profile(self, obj):
        profile = getattr(obj, "freelancer_profile", None)
        if profile is None:
            return None
        return FreelancerProfileSerializer(profile).data


class PublicFreelancerSerializer(FreelancerSerializer):
    member_since = serializers.SerializerMethodField()

    class Meta(FreelancerSerializer.Meta):
        fields = ["id", "name", "profile", "member_since"]

    def get_member_since(self, obj):
        return obj.created_at.strftime("%B %Y") if obj.created_at else None


class FavoriteSerializer(serializers.ModelSerializer):
    project = serializers.SerializerMethodField()

    class Meta:
        model = Favorite
        fields = ["id", "project", "created_at"]

    def get_project(self, obj):
        from apps.projects.serializers import ProjectSerializer

        return ProjectSerializer(obj.project, context=self.context).data


class EarningsQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(required=False, min_value=2000, max_value=2100)
    month = serializers.IntegerField(required=False, min_value=1, max_value=12)
    compare = serializers.BooleanField(required=False, default=False)


class VisitQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(required=False, min_value=1, max_value=365, default=30)
