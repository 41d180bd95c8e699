"""
Standardized API Responses

Every API response of the project has the shape:
{
    "status": "success" | "error",
    "message": "human readable message or empty",
    "data": {...} | [...] | null
}

Views either return plain data (wrapped by StandardizedJSONRenderer) or
build the envelope explicitly with success_response / error_response.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status as http_status
from rest_framework.renderers import JSONRenderer
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Exception handler answering with the error envelope.

    Django ValidationErrors raised from model code (e.g. DynamicField.clean)
    become HTTP 400 instead of a server error.
    """
    if isinstance(exc, DjangoValidationError):
        errors = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        return Response(
            format_error_response(errors),
            status=http_status.HTTP_400_BAD_REQUEST
        )

    response = exception_handler(exc, context)

    if response is not None:
        response.data = format_error_response(response.data)
    else:
        view = context.get('view')
        logger.error(f"Unhandled error in {view.__class__.__name__ if view else 'API'}: {exc}")

    return response


def format_error_response(errors):
    """
    Flatten DRF error structures into one message.

    - {"field": ["error1", "error2"]} -> "field: error1, error2"
    - {"detail": "message"}           -> "message"
    - ["error1", "error2"]            -> "error1, error2"
    """
    if isinstance(errors, dict):
        if set(errors) == {'detail'}:
            message = str(errors['detail'])
        else:
            message = format_nested_errors(errors)
    elif isinstance(errors, list):
        message = ", ".join(str(e) for e in errors)
    else:
        message = str(errors)

    return {
        "status": "error",
        "message": message,
        "data": None
    }


def format_nested_errors(errors_dict):
    """Format nested error dictionaries."""
    messages = []
    for key, value in errors_dict.items():
        if isinstance(value, list):
            messages.append(f"{key}: {', '.join(str(v) for v in value)}")
        elif isinstance(value, dict):
            messages.append(f"{key}: {format_nested_errors(value)}")
        else:
            messages.append(f"{key}: {value}")
    return "; ".join(messages)


class StandardizedJSONRenderer(JSONRenderer):
    """
    JSON renderer wrapping responses that are not yet in the envelope.
    """

    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = renderer_context.get('response') if renderer_context else None

        # 204 No Content has no body
        if response is not None and response.status_code == http_status.HTTP_204_NO_CONTENT:
            return b''

        if response is not None and not self.is_already_formatted(data):
            if response.status_code >= 400:
                data = format_error_response(data)
            else:
                data = self.format_success_response(data)

        return super().render(data, accepted_media_type, renderer_context)

    def is_already_formatted(self, data):
        """Check if response is already in the standard format."""
        return isinstance(data, dict) and {'status', 'message', 'data'} <= set(data)

    def format_success_response(self, data):
        if isinstance(data, dict) and 'detail' in data:
            return {"status": "success", "message": str(data['detail']), "data": None}
        if data is None or (isinstance(data, dict) and not data):
            return {"status": "success", "message": "", "data": None}
        return {"status": "success", "message": "", "data": data}


def success_response(data=None, message="", status_code=http_status.HTTP_200_OK):
    """
    Helper function to create standardized success responses.

    Usage:
        from dynafield_project.response_formatter import success_response

        return success_response(
            data=serializer.data,
            message="Dynamic field created successfully",
            status_code=status.HTTP_201_CREATED
        )
    """
    return Response({
        "status": "success",
        "message": message,
        "data": data
    }, status=status_code)


def error_response(message, data=None, status_code=http_status.HTTP_400_BAD_REQUEST):
    """
    Helper function to create standardized error responses.

    Usage:
        from dynafield_project.response_formatter import error_response

        return error_response(
            message="Could not store the value of dynamic field ProjectCode",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    """
    return Response({
        "status": "error",
        "message": message,
        "data": data
    }, status=status_code)
