from rest_framework import serializers

from apps.freelancer.serializers import FreelancerSerializer
from apps.projects.serializers import ProjectSummarySerializer

from .models import Application, ApplicationStatus


class ApplicationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Application
        fields = ["id", "project", "freelancer", "message", "status", "created_at", "updated_at"]
        read_only_fields = fields


# ---------------- Freelancer side ----------------
class MyApplicationSerializer(serializers.ModelSerializer):
    project = ProjectSummarySerializer(read_only=True)

    class Meta:
        model = Application
        fields = ["id", "project", "message", "status", "created_at", "updated_at"]
        read_only_fields = fields


# ---------------- Client side ----------------
class ApplicantSerializer(serializers.ModelSerializer):
    freelancer = FreelancerSerializer(read_only=True)

    class Meta:
        model = Application
        fields = ["id", "project", "freelancer", "message", "status", "created_at", "updated_at"]
        read_only_fields = fields


class ClientApplicationSerializer(ApplicantSerializer):
    project = ProjectSummarySerializer(read_only=True)


# ---------------- Input ----------------
class ApplicationCreateSerializer(serializers.Serializer):
    message = serializers.CharField(required=False, allow_blank=True, max_length=5000)

    def validate_message(self, value):
        if "<script>" in value.lower():
            raise serializers.ValidationError("Invalid content in message.")
        return value.strip()


class ApplicationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[ApplicationStatus.APPROVED, ApplicationStatus.REJECTED]
    )
