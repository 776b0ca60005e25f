"""
DRF exception handler that turns domain errors into HTTP responses.

Configured through ``REST_FRAMEWORK['EXCEPTION_HANDLER']``.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    SplitBillError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses must come before their bases.
STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: SplitBillError) -> int:
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def domain_exception_handler(exc, context):
    """
    Map SplitBill errors to responses, fall back to DRF for its own errors.

    Server-side failures are logged and answered with a generic message so
    backend details do not leak to clients.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown view'

    if isinstance(exc, SplitBillError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error("%s in %s: %s", exc.__class__.__name__, view_name, exc, exc_info=exc)
            return Response({'error': 'Internal server error'}, status=status_code)

        logger.info("%s in %s: %s", exc.__class__.__name__, view_name, exc)
        return Response(exc.to_dict(), status=status_code)

    logger.error("Unhandled error in %s: %s", view_name, exc, exc_info=exc)
    return Response(
        {'error': 'Internal server error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
