"""
Error taxonomy for the Eco-Points core and the DRF exception handler that
renders it in the API envelope.
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger(__name__)


class EcoPointsError(Exception):
    """Base class for errors surfaced by the ledger, calculator and rate limiter"""
    code = 'INTERNAL_ERROR'
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'An error occurred'

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidInput(EcoPointsError):
    """Missing or out-of-range input, bad action shape"""
    code = 'INVALID_INPUT'
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid input'


class NotFound(EcoPointsError):
    """Unknown catalog entry, provider, tier or certificate"""
    code = 'NOT_FOUND'
    status_code = status.HTTP_404_NOT_FOUND
    default_message = 'Resource not found'


class RateLimited(EcoPointsError):
    """Request rejected by the rate limiter; nothing was mutated"""
    code = 'RATE_LIMITED'
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = 'Rate limit exceeded'

    def __init__(self, retry_after_seconds, limit=None, remaining=0, message=None):
        self.retry_after_seconds = retry_after_seconds
        self.limit = limit
        self.remaining = remaining
        super().__init__(
            message or f'Rate limit exceeded. Please try again in {retry_after_seconds} seconds.'
        )


class Conflict(EcoPointsError):
    """A concurrent write won the race; raised by stores and retried by the ledger"""
    code = 'CONFLICT'
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Concurrent update detected'


class TransientFailure(EcoPointsError):
    """Conflict retries were exhausted; the caller may retry later"""
    code = 'TRANSIENT_FAILURE'
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = 'The ledger is busy, please retry'


class StorageUnavailable(EcoPointsError):
    """The backing store could not be reached"""
    code = 'STORAGE_UNAVAILABLE'
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = 'Storage unavailable'


class ConfigurationFault(EcoPointsError):
    """
    Reference data violates an integrity rule (tier gaps/overlaps, factors
    yielding negative emissions avoided). Fatal: never recovered from.
    """
    code = 'CONFIGURATION_FAULT'
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Reference catalog is misconfigured'


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns consistent error responses
    """
    if isinstance(exc, EcoPointsError):
        return _eco_points_error_response(exc)

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        logger.error(f"API Exception: {exc}")

        custom_response_data = {
            'code': response.status_code,
            'msg': 'An error occurred',
            'errors': response.data
        }

        if response.status_code == status.HTTP_400_BAD_REQUEST:
            custom_response_data['msg'] = 'Validation error'
        elif response.status_code == status.HTTP_404_NOT_FOUND:
            custom_response_data['msg'] = 'Resource not found'
        elif response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            custom_response_data['msg'] = 'Method not allowed'
        elif response.status_code >= 500:
            custom_response_data['msg'] = 'Internal server error'
            custom_response_data['errors'] = {'detail': 'Internal server error'}

        response.data = custom_response_data

    return response


def _eco_points_error_response(exc):
    if isinstance(exc, ConfigurationFault):
        logger.critical(f"Configuration fault: {exc.message}", exc_info=exc)
    elif exc.status_code >= 500:
        logger.error(f"API Exception: {exc.code} {exc.message}")
    else:
        logger.warning(f"API Exception: {exc.code} {exc.message}")

    errors = {'code': exc.code}
    # Internal detail of integrity faults is for the logs only
    if isinstance(exc, ConfigurationFault):
        message = 'Internal server error'
    else:
        message = exc.message
        if exc.details:
            errors['details'] = exc.details

    response = Response({
        'code': exc.status_code,
        'msg': message,
        'errors': errors
    }, status=exc.status_code)

    if isinstance(exc, RateLimited):
        response['Retry-After'] = str(exc.retry_after_seconds)
        response['X-RateLimit-Remaining'] = str(exc.remaining)
        if exc.limit is not None:
            response['X-RateLimit-Limit'] = str(exc.limit)

    return response
