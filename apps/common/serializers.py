import re

from django.conf import settings
from rest_framework import serializers

from .pagination import ORDER_BY

RFC3339_PATTERN = re.compile(
    r'^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$'
)

RFC3339_MESSAGE = 'Date must be in RFC3339 format (YYYY-MM-DDTHH:mm:ssZ)'


class RFC3339DateTimeField(serializers.DateTimeField):
    """DateTimeField that only accepts RFC3339 timestamps with a UTC offset."""

    default_error_messages = {
        'rfc3339': RFC3339_MESSAGE,
    }

    def to_internal_value(self, value):
        if not isinstance(value, str) or not RFC3339_PATTERN.match(value.strip()):
            self.fail('rfc3339')
        return super().to_internal_value(value.strip())


class PaginationQuerySerializer(serializers.Serializer):
    """
    Validate page/limit/order_by query parameters.

    Subclasses add ``sort_by`` with their own choices.

    Query Parameters:
        page (int): 1-based page number (default 1)
        limit (int): Page size (default PAGINATION_DEFAULT_LIMIT)
        order_by (str): asc or desc (default desc)
    """

    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, required=False)
    order_by = serializers.ChoiceField(choices=ORDER_BY, required=False, default='desc')

    def validate_limit(self, value):
        max_limit = getattr(settings, 'PAGINATION_MAX_LIMIT', 100)
        if value > max_limit:
            raise serializers.ValidationError(f'limit must not exceed {max_limit}')
        return value


class PaginationSerializer(serializers.Serializer):
    page = serializers.IntegerField()
    limit = serializers.IntegerField()
    total_data = serializers.IntegerField()
    total_page = serializers.IntegerField()


class ErrorSerializer(serializers.Serializer):
    """Error body returned for domain errors."""

    error = serializers.CharField()
    field = serializers.CharField(required=False)
