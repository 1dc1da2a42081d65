from django.contrib import admin

from .models import Project, Tag


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "client", "status", "progress_status", "deleted", "created_at")
    list_filter = ("status", "progress_status", "deleted")
    search_fields = ("title", "description")
    readonly_fields = ("status", "payment", "deleted_at", "deleted_by")


admin.site.register(Tag)
