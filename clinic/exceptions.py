"""
Domain errors and the project-wide DRF exception handler.

Every error leaving the API is wrapped in the envelope
``{'ok': False, 'error': {'code': ..., 'message': ...}}``.  Not-found and
permission failures carry generic messages so that callers cannot probe
for the existence of resources in other organizations.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger('clinic')


class ValidationFailed(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'validation_error'


class DuplicateResource(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'duplicate'


class AuthorizationError(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'

    def __init__(self, detail=None, code=None):
        # Always generic
        super().__init__(None, code)


class InvalidStateTransition(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Invalid state transition.'
    default_code = 'invalid_state'


class ResourceNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'

    def __init__(self, detail=None, code=None):
        super().__init__(None, code)


def _first_message(data):
    if isinstance(data, dict):
        for value in data.values():
            return _first_message(value)
        return ''
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else ''
    return str(data)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view').__class__.__name__ if context.get('view') else '?')
        return Response(
            {'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error.'}},
            status=500,
        )

    code = getattr(exc, 'default_code', 'api_error')
    error = {'code': code}
    if isinstance(exc, ValidationError):
        error['code'] = 'validation_error'
        error['message'] = _first_message(resp.data)
        if isinstance(resp.data, dict):
            error['fields'] = resp.data
    elif isinstance(resp.data, dict) and 'detail' in resp.data:
        error['message'] = str(resp.data['detail'])
    else:
        error['message'] = _first_message(resp.data)
    resp.data = {'ok': False, 'error': error}
    return resp
