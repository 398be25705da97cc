import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.db.models import ProtectedError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .responses import error_message

logger = logging.getLogger(__name__)


class ConflictError(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This record already exists.'
    default_code = 'conflict'


def _first_message(detail):
    """Return the message when ``detail`` holds exactly one string."""
    if isinstance(detail, dict) and len(detail) == 1:
        return _first_message(next(iter(detail.values())))
    if isinstance(detail, list) and len(detail) == 1:
        return _first_message(detail[0])
    if isinstance(detail, str):
        return str(detail)
    return None


def _envelope(message, status_code, name, detail):
    return Response(
        error_message(message, status_code, {'name': name, 'message': detail}),
        status=status_code,
    )


def envelope_exception_handler(exc, context):
    """Render every API error with the failure envelope."""
    if isinstance(exc, DjangoValidationError):
        exc = exceptions.ValidationError(exc.messages)
    elif isinstance(exc, Http404):
        exc = exceptions.NotFound('Record not found.')

    if isinstance(exc, IntegrityError):
        logger.warning('Integrity error: %s', exc)
        return _envelope(
            'This record already exists.', status.HTTP_400_BAD_REQUEST,
            'DuplicateError', 'The provided data conflicts with existing records',
        )

    if isinstance(exc, ProtectedError):
        return _envelope(
            'Referenced record is still in use.', status.HTTP_400_BAD_REQUEST,
            'ReferenceError', 'The record is referenced by other records',
        )

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception('Unhandled error in %s', view.__class__.__name__ if view else 'view', exc_info=exc)
        return _envelope(
            'An unexpected error occurred.', status.HTTP_500_INTERNAL_SERVER_ERROR,
            'ServerError', 'An internal server error occurred',
        )

    if isinstance(exc, exceptions.ValidationError):
        message = _first_message(exc.detail) or 'Validation failed.'
        body = error_message(message, response.status_code, {'name': 'ValidationError', 'message': exc.detail})
    elif isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        body = error_message(str(exc.detail), response.status_code, {'name': 'AuthenticationError'})
    else:
        body = error_message(str(exc.detail), response.status_code)

    response.data = body
    return response
