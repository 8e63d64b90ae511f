"""
Engagement errors and the DRF exception handler.

Error taxonomy
--------------
- InvalidReference: actor/target id is malformed or missing      -> 400
- NotFound: well-formed id, no such entity                        -> 404
- InvalidOperation: self-follow, empty content, bad page          -> 400
- InvalidTargetKind: like target kind is not article/comment      -> 400
- ConflictRetryable: a concurrent mutation won a uniqueness race  -> 409
  (handled inside the toggle engine, normally never reaches a view)
- StorageUnavailable: transient I/O failure at the database       -> 503
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.db import IntegrityError, OperationalError
import logging

logger = logging.getLogger(__name__)


class EngagementError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'engagement_error'

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class InvalidReference(EngagementError):
    code = 'invalid_reference'


class NotFound(EngagementError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'


class InvalidOperation(EngagementError):
    code = 'invalid_operation'


class InvalidTargetKind(InvalidOperation):
    code = 'invalid_target_kind'


class ConflictRetryable(EngagementError):
    status_code = status.HTTP_409_CONFLICT
    code = 'conflict'


class StorageUnavailable(EngagementError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = 'storage_unavailable'


def custom_exception_handler(exc, context):
    """
    Custom exception handler that:
    1. Renders engagement errors with their own status
    2. Converts Django database exceptions to DRF responses
    3. Logs everything unexpected
    """
    response = exception_handler(exc, context)

    if response is not None:
        if not isinstance(response.data, dict) or 'error' not in response.data:
            response.data = {
                'error': str(exc),
                'details': response.data
            }
        return response

    if isinstance(exc, EngagementError):
        if isinstance(exc, StorageUnavailable):
            logger.error("Storage unavailable: %s", exc.message)
        return Response(
            {'error': exc.message, 'code': exc.code},
            status=exc.status_code
        )

    if isinstance(exc, IntegrityError):
        logger.warning("IntegrityError: %s", exc)
        return Response(
            {'error': 'Data integrity error. This may be a duplicate entry.'},
            status=status.HTTP_409_CONFLICT
        )

    if isinstance(exc, OperationalError):
        logger.error("Database unavailable: %s", exc)
        return Response(
            {'error': 'Storage temporarily unavailable.', 'code': StorageUnavailable.code},
            status=status.HTTP_503_SERVICE_UNAVAILABLE
        )

    if isinstance(exc, ValueError):
        return Response(
            {'error': str(exc)},
            status=status.HTTP_400_BAD_REQUEST
        )

    logger.exception("Unhandled exception: %s", exc)

    return Response(
        {'error': 'An unexpected error occurred.'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
