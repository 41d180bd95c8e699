"""
API Views for Dynamic Fields.
Provides REST API endpoints for field configurations, per-object values and
object search.
"""
import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status
from django.shortcuts import get_object_or_404

from core.base.models import StatusChoices
from dynafield_project.pagination import auto_paginate
from dynafield_project.response_formatter import success_response, error_response

from .backend import DynamicFieldBackend
from .models import DynamicField
from .serializers import (
    DynamicFieldSerializer,
    DynamicFieldListSerializer,
    DynamicFieldValueSerializer,
    DynamicFieldSearchSerializer,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Dynamic Field configuration API Views
# ============================================================================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@auto_paginate
def dynamic_field_list(request):
    """
    List all dynamic fields or create a new one.

    GET /core/dynamic_fields/fields/
    - Returns list of dynamic fields ordered by field_order
    - Query params:
        - name: Filter by name (exact, case-insensitive)
        - label: Filter by label (case-insensitive contains)
        - search: Search across name and label
        - object_type: Filter by object type
        - status: 'active' or 'inactive'

    POST /core/dynamic_fields/fields/
    - Create a new dynamic field
    - Request body: DynamicFieldSerializer fields
    """
    if request.method == 'GET':
        fields = DynamicField.objects.filter_by_search_params(request.query_params)

        object_type = request.query_params.get('object_type')
        if object_type:
            fields = fields.filter(object_type=object_type)

        field_status = request.query_params.get('status')
        if field_status == StatusChoices.ACTIVE:
            fields = fields.active()
        elif field_status == StatusChoices.INACTIVE:
            fields = fields.inactive()

        serializer = DynamicFieldListSerializer(fields, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    elif request.method == 'POST':
        serializer = DynamicFieldSerializer(data=request.data, context={'request': request})
        if serializer.is_valid():
            field = serializer.save()
            logger.info(f"Dynamic field {field.name} ({field.field_type}) created by user {request.user.id}")
            return success_response(
                data=DynamicFieldSerializer(field).data,
                message="Dynamic field created successfully",
                status_code=status.HTTP_201_CREATED
            )
        return error_response(
            message="Invalid data",
            data=serializer.errors,
            status_code=status.HTTP_400_BAD_REQUEST
        )


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def dynamic_field_detail(request, pk):
    """
    Retrieve, update or deactivate a dynamic field.

    GET /core/dynamic_fields/fields/{id}/
    - Returns the full configuration

    PUT /core/dynamic_fields/fields/{id}/
    - Update a dynamic field (partial updates allowed)

    DELETE /core/dynamic_fields/fields/{id}/
    - Deactivate the field; stored values are kept
    """
    field = get_object_or_404(DynamicField, pk=pk)

    if request.method == 'GET':
        serializer = DynamicFieldSerializer(field)
        return success_response(
            data=serializer.data,
            message="Dynamic field retrieved successfully"
        )

    elif request.method == 'PUT':
        serializer = DynamicFieldSerializer(
            field, data=request.data, partial=True, context={'request': request}
        )
        if serializer.is_valid():
            updated_field = serializer.save()
            return success_response(
                data=DynamicFieldSerializer(updated_field).data,
                message="Dynamic field updated successfully"
            )
        return error_response(
            message="Invalid data",
            data=serializer.errors,
            status_code=status.HTTP_400_BAD_REQUEST
        )

    elif request.method == 'DELETE':
        field.deactivate()
        logger.info(f"Dynamic field {field.name} deactivated by user {request.user.id}")
        return success_response(
            data=DynamicFieldSerializer(field).data,
            message="Dynamic field deactivated successfully"
        )


# ============================================================================
# Dynamic Field value API Views
# ============================================================================

@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def dynamic_field_value_detail(request, pk, object_id):
    """
    Read or replace the value of a dynamic field for one object.

    GET /core/dynamic_fields/fields/{id}/values/{object_id}/
    - Query params:
        - is_set: 'true' to read the value as a list of groups
    - Returns {'object_id', 'value', 'display'}

    PUT /core/dynamic_fields/fields/{id}/values/{object_id}/
    - Request body: {'value': ..., 'is_set': false, 'no_validate_regex': false}
    - 400 if the value does not pass the driver validation
    - 500 if the value could not be stored
    """
    field = get_object_or_404(DynamicField, pk=pk)
    backend = DynamicFieldBackend()

    if request.method == 'GET':
        is_set = request.query_params.get('is_set', '').lower() == 'true'
        value = backend.value_get(field, object_id, is_set=is_set)
        display = backend.readable_value_render(field, value) if value is not None else None
        return success_response(
            data={
                'object_id': object_id,
                'value': value,
                'display': display['value'] if display else '',
            },
            message="Dynamic field value retrieved successfully"
        )

    elif request.method == 'PUT':
        if not field.is_active:
            return error_response(
                message=f"Dynamic field {field.name} is inactive",
                status_code=status.HTTP_400_BAD_REQUEST
            )

        serializer = DynamicFieldValueSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(
                message="Invalid data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        value = serializer.validated_data['value']
        is_set = serializer.validated_data['is_set']

        valid = backend.value_validate(
            field,
            value,
            user_id=request.user.id,
            no_validate_regex=serializer.validated_data['no_validate_regex'],
        )
        if not valid:
            return error_response(
                message=f"Invalid value for dynamic field {field.name}",
                status_code=status.HTTP_400_BAD_REQUEST
            )

        if not backend.value_set(field, object_id, value, user_id=request.user.id, is_set=is_set):
            return error_response(
                message=f"Could not store the value of dynamic field {field.name}",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return success_response(
            data={
                'object_id': object_id,
                'value': backend.value_get(field, object_id, is_set=is_set),
            },
            message="Dynamic field value updated successfully"
        )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dynamic_field_search(request, pk):
    """
    Find the objects whose value of a dynamic field matches a search.

    GET /core/dynamic_fields/fields/{id}/search/?operator=Like&term=ABC*
    - Query params:
        - operator: Equals (default), Like, Empty, GreaterThan,
          GreaterThanEquals, SmallerThan, SmallerThanEquals
        - term: Search term; for Empty '1' finds empty values, '0' non-empty ones
    - Returns {'object_ids': [...]}
    """
    field = get_object_or_404(DynamicField, pk=pk)

    serializer = DynamicFieldSearchSerializer(data=request.query_params)
    if not serializer.is_valid():
        return error_response(
            message="Invalid search",
            data=serializer.errors,
            status_code=status.HTTP_400_BAD_REQUEST
        )

    object_ids = DynamicFieldBackend().object_search(
        field,
        operator=serializer.validated_data['operator'],
        search_term=serializer.validated_data['term'],
    )
    return success_response(
        data={'object_ids': object_ids},
        message=f"{len(object_ids)} object(s) found"
    )
