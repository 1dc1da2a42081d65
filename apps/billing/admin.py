from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "project", "freelancer", "amount", "currency", "paid_at")

    def has_change_permission(self, request, obj=None):
        return False
