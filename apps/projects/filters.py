import django_filters
from django.db.models import Q

from .models import ProgressStatus, Project, ProjectStatus


def split_csv(value):
    return [item.strip() for item in value.split(",") if item.strip()]


class OpenProjectFilter(django_filters.FilterSet):
    """Query filters for the public project board."""

    search = django_filters.CharFilter(method="filter_search")
    min_budget = django_filters.NumberFilter(field_name="budget", lookup_expr="gte")
    max_budget = django_filters.NumberFilter(field_name="budget", lookup_expr="lte")
    start_date = django_filters.DateTimeFilter(field_name="deadline", lookup_expr="gte")
    end_date = django_filters.DateTimeFilter(field_name="deadline", lookup_expr="lte")
    tags = django_filters.CharFilter(method="filter_tags")

    class Meta:
        model = Project
        fields = []

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value)
            | Q(description__icontains=value)
            | Q(tags__name__iexact=value)
        ).distinct()

    def filter_tags(self, queryset, name, value):
        names = split_csv(value)
        if not names:
            return queryset
        # Any-of: the project shares at least one tag with the query.
        return queryset.filter(tags__name__in=names).distinct()


class ClientProjectFilter(django_filters.FilterSet):
    progress_status = django_filters.ChoiceFilter(choices=ProgressStatus.choices)
    status = django_filters.ChoiceFilter(choices=ProjectStatus.choices)
    include_archived = django_filters.BooleanFilter(method="filter_include_archived")

    class Meta:
        model = Project
        fields = []

    def filter_queryset(self, queryset):
        if not self.form.cleaned_data.get("include_archived"):
            queryset = queryset.filter(deleted=False)
        return super().filter_queryset(queryset)

    def filter_include_archived(self, queryset, name, value):
        return queryset
