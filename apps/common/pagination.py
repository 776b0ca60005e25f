"""
Page/limit pagination for list endpoints.

The paginator counts the queryset before fetching the page. The two queries
are not run in one transaction, so ``total_data`` can be stale relative to
concurrent inserts.
"""

from django.conf import settings
from django.db.models import QuerySet
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from .exceptions import ValidationError

ORDER_BY = ('asc', 'desc')


class SplitBillPagination(PageNumberPagination):
    """
    Pagination for every list endpoint.

    Query Parameters:
        page (int): 1-based page number (default 1)
        limit (int): Page size (default PAGINATION_DEFAULT_LIMIT)

    Response:
        {"data": [...], "pagination": {"page", "limit", "total_data", "total_page"}}
    """
    page_size = getattr(settings, 'PAGINATION_DEFAULT_LIMIT', 10)
    page_size_query_param = 'limit'
    max_page_size = getattr(settings, 'PAGINATION_MAX_LIMIT', 100)

    def get_paginated_response(self, data):
        paginator = self.page.paginator
        return Response({
            'data': data,
            'pagination': {
                'page': self.page.number,
                'limit': paginator.per_page,
                'total_data': paginator.count,
                # Django reports one empty page for an empty queryset
                'total_page': paginator.num_pages if paginator.count else 0,
            },
        })

    def get_paginated_response_schema(self, schema):
        return {
            'type': 'object',
            'required': ['data', 'pagination'],
            'properties': {
                'data': schema,
                'pagination': {
                    'type': 'object',
                    'properties': {
                        'page': {'type': 'integer', 'example': 1},
                        'limit': {'type': 'integer', 'example': self.page_size},
                        'total_data': {'type': 'integer', 'example': 42},
                        'total_page': {'type': 'integer', 'example': 5},
                    },
                },
            },
        }


def order_queryset(queryset: QuerySet, *, sort_field: str, order_by: str = 'desc') -> QuerySet:
    """Order by a single field, ascending or descending."""
    if order_by not in ORDER_BY:
        raise ValidationError(
            f"Invalid order_by: '{order_by}'. Valid options: {', '.join(ORDER_BY)}",
            field='order_by',
        )
    prefix = '-' if order_by == 'desc' else ''
    return queryset.order_by(f'{prefix}{sort_field}')
