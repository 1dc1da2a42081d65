from django.contrib import admin

from .models import ClientProfile, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("id", "email", "username", "role", "is_active", "created_at")
    list_filter = ("role", "is_active")
    search_fields = ("email", "username", "fullname")


admin.site.register(ClientProfile)
