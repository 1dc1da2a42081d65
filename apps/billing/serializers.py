from rest_framework import serializers

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    project_title = serializers.CharField(source="project.title", read_only=True)
    freelancer_name = serializers.CharField(source="freelancer.display_name", read_only=True)

    class Meta:
        model = Payment
        fields = (
            "id",
            "project",
            "project_title",
            "freelancer",
            "freelancer_name",
            "amount",
            "currency",
            "paid_at",
            "created_at",
        )
        read_only_fields = fields


class EarningsSummarySerializer(serializers.Serializer):
    payment_count = serializers.IntegerField()
    total_earned = serializers.DecimalField(max_digits=14, decimal_places=2)


class MonthlyEarningSerializer(serializers.Serializer):
    month = serializers.CharField()
    total = serializers.DecimalField(max_digits=14, decimal_places=2)
