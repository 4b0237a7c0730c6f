import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    Render every handled API error as ``{"error": ..., "code": ...}``.

    Anything DRF does not recognise is left alone so Django answers 500.
    """
    if isinstance(exc, Http404):
        exc = exceptions.NotFound(*exc.args)
    elif isinstance(exc, PermissionDenied):
        exc = exceptions.PermissionDenied(*exc.args)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            "error": "Validation failed",
            "code": "validation_error",
            "errors": response.data,
        }
        return response

    codes = exc.get_codes()
    response.data = {
        "error": str(exc.detail),
        "code": codes if isinstance(codes, str) else exc.default_code,
    }
    if response.status_code >= 500:
        logger.error(f"API error in {context.get('view').__class__.__name__}: {exc.detail}")
    return response
