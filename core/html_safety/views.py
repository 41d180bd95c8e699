"""
API View for the HTML safety filter.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from dynafield_project.response_formatter import success_response, error_response

from .safety import safety
from .serializers import HTMLSafetySerializer


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def html_safety(request):
    """
    Filter untrusted HTML.

    POST /core/html_safety/
    - Request body: {'html': '...', 'no_ext_src_load': true, ...}
    - Returns {'string': filtered HTML, 'replaced': bool}
    """
    serializer = HTMLSafetySerializer(data=request.data)
    if not serializer.is_valid():
        return error_response(
            message="Invalid data",
            data=serializer.errors,
            status_code=status.HTTP_400_BAD_REQUEST
        )

    result = safety(serializer.validated_data['html'], **serializer.policy_flags())
    return success_response(
        data={'string': result.string, 'replaced': result.replaced},
        message="HTML content was changed" if result.replaced else "HTML content is safe"
    )
