import json

from rest_framework import serializers

from apps.billing.serializers import PaymentSerializer
from apps.users.serializers import ClientSerializer

from .models import ProgressStatus, Project


# ----------------------------
# Custom Field for Flexible List Input
# ----------------------------
class TagListField(serializers.Field):
    """
    Accepts a list, a JSON array string or a comma-separated string of tag
    names. Form posts send the JSON string form.
    """
    def to_internal_value(self, data):
        if data is None or data == "":
            return []
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except (json.JSONDecodeError, ValueError):
                data = data.split(",")
        if not isinstance(data, (list, tuple)):
            raise serializers.ValidationError("Expected a list of tag names.")

        names = []
        for item in data:
            if not isinstance(item, (str, int)):
                raise serializers.ValidationError("Tag names must be strings.")
            name = str(item).strip()
            if len(name) > 50:
                raise serializers.ValidationError("Tag names are at most 50 characters.")
            if name and name not in names:
                names.append(name)
        return names

    def to_representation(self, value):
        return [tag.name for tag in value.all()]


# ----------------------------
# Output
# ----------------------------
class ProjectSerializer(serializers.ModelSerializer):
    client = ClientSerializer(read_only=True)
    tags = TagListField(read_only=True)
    payment = PaymentSerializer(read_only=True)

    class Meta:
        model = Project
        fields = [
            "id",
            "title",
            "description",
            "budget",
            "deadline",
            "tags",
            "responsibilities",
            "location",
            "requirement",
            "status",
            "progress_status",
            "deleted",
            "deleted_at",
            "payment",
            "client",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProjectSummarySerializer(serializers.ModelSerializer):
    """Compact project embed for application lists."""

    tags = TagListField(read_only=True)

    class Meta:
        model = Project
        fields = [
            "id",
            "title",
            "budget",
            "deadline",
            "tags",
            "status",
            "progress_status",
            "deleted",
            "client_id",
        ]
        read_only_fields = fields


# ----------------------------
# Input
# ----------------------------
class ProjectWriteSerializer(serializers.Serializer):
    """
    Shape check only. Required-field rules for published projects live in
    the lifecycle service, since drafts may omit everything.
    """
    title = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    budget = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True,
    )
    deadline = serializers.DateTimeField(required=False, allow_null=True)
    tags = TagListField(required=False)
    responsibilities = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    requirement = serializers.CharField(required=False, allow_blank=True)


class ProjectCreateSerializer(ProjectWriteSerializer):
    is_draft = serializers.BooleanField(required=False, default=False)


class ProjectUpdateSerializer(ProjectWriteSerializer):
    read_only_keys = ("status", "progress_status", "is_draft")

    def validate(self, attrs):
        blocked = [key for key in self.read_only_keys if key in self.initial_data]
        if blocked:
            raise serializers.ValidationError(
                {key: "This field cannot be changed here." for key in blocked}
            )
        return attrs


class ProgressSerializer(serializers.Serializer):
    progress_status = serializers.ChoiceField(choices=ProgressStatus.choices)
