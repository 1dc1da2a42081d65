from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PageLimitPagination(PageNumberPagination):
    """``?page=&limit=`` pagination answered as ``{data, meta}``."""

    page_size = 5
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data):
        page_size = self.page.paginator.per_page
        return Response({
            "data": data,
            "meta": {
                "total": self.page.paginator.count,
                "page": self.page.number,
                "page_size": page_size,
                "total_pages": self.page.paginator.num_pages,
            },
        })

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "data": schema,
                "meta": {
                    "type": "object",
                    "properties": {
                        "total": {"type": "integer"},
                        "page": {"type": "integer"},
                        "page_size": {"type": "integer"},
                        "total_pages": {"type": "integer"},
                    },
                },
            },
        }
