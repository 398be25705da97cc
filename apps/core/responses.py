"""
Standard response envelopes.

Success: ``{success, statusCode, message, data, meta?}``
Failure: ``{success: false, statusCode, message, error?}``
"""
from rest_framework import status
from rest_framework.response import Response


def success_message(data=None, status_code=status.HTTP_200_OK, message='Success', meta=None):
    body = {
        'success': True,
        'statusCode': status_code,
        'message': message,
        'data': data,
    }
    if meta:
        body['meta'] = meta
    return body


def error_message(message='An error occurred', status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, error=None):
    body = {
        'success': False,
        'statusCode': status_code,
        'message': message,
    }
    if error is not None:
        body['error'] = error
    return body


def success(data=None, message='Success', meta=None):
    return Response(success_message(data, status.HTTP_200_OK, message, meta), status=status.HTTP_200_OK)


def created(data=None, message='Created successfully'):
    return Response(success_message(data, status.HTTP_201_CREATED, message), status=status.HTTP_201_CREATED)


def error(message='An error occurred', status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=None):
    return Response(error_message(message, status_code, detail), status=status_code)


def bad_request(message='Bad request', detail=None):
    return error(message, status.HTTP_400_BAD_REQUEST, detail)


def not_found(message='Resource not found'):
    return error(message, status.HTTP_404_NOT_FOUND)
