"""
Serializers for the Dynamic Field API.
"""
import copy

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import DynamicField


class DynamicFieldSerializer(serializers.ModelSerializer):
    """
    Full serializer of a dynamic field configuration.

    Runs the model level configuration checks (DynamicField.clean) so an
    unknown field type or an invalid regex answers with HTTP 400.
    """
    is_active = serializers.BooleanField(read_only=True)

    class Meta:
        model = DynamicField
        fields = [
            'id',
            'name',
            'label',
            'field_order',
            'field_type',
            'object_type',
            'config',
            'status',
            'is_active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'status', 'is_active', 'created_at', 'updated_at']

    def validate(self, data):
        """Cross-field validation through the model's clean()"""
        instance = copy.copy(self.instance) if self.instance else DynamicField()

        for attr, value in data.items():
            setattr(instance, attr, value)

        try:
            instance.clean()
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.message_dict)

        return data

    def create(self, validated_data):
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            validated_data['created_by'] = request.user
            validated_data['updated_by'] = request.user
        return super().create(validated_data)

    def update(self, instance, validated_data):
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            validated_data['updated_by'] = request.user
        return super().update(instance, validated_data)


class DynamicFieldListSerializer(serializers.ModelSerializer):
    """
    Lightweight serializer for listing dynamic fields.
    """
    class Meta:
        model = DynamicField
        fields = ['id', 'name', 'label', 'field_order', 'field_type', 'object_type', 'status']


class DynamicFieldValueSerializer(serializers.Serializer):
    """
    Value of one dynamic field for one object.

    The value shape depends on the field: a scalar, a list for multi-value
    fields, or a list of lists for sets (is_set).
    """
    value = serializers.JSONField(allow_null=True)
    is_set = serializers.BooleanField(default=False)
    no_validate_regex = serializers.BooleanField(default=False)


class DynamicFieldSearchSerializer(serializers.Serializer):
    """
    Query parameters of an object search.
    """
    OPERATORS = [
        'Equals', 'Like', 'Empty',
        'GreaterThan', 'GreaterThanEquals', 'SmallerThan', 'SmallerThanEquals',
    ]

    operator = serializers.ChoiceField(choices=OPERATORS, default='Equals')
    term = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, data):
        # 'Empty' expects a flag: term '1' (or any non-empty) searches for empty values
        if data['operator'] == 'Empty':
            data['term'] = data['term'] not in ('', '0', 'false', 'False')
        return data
