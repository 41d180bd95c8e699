"""
Dynamic Field Models - Core Infrastructure

Schema-less attributes for any domain object without per-field migrations.

    DynamicField:       configuration of one field (type, label, JSON config)
    DynamicFieldValue:  narrow value table, one row per stored value unit

Usage:
    field = DynamicField.objects.create(
        name='ProjectCode',
        label='Project Code',
        field_type='Text',
        object_type='Ticket',
        config={'multi_value': True, 'regex_list': [
            {'value': r'^[A-Z]{3}-\\d+$', 'error_message': 'Use ABC-123'},
        ]},
    )
    # Values are read and written through the driver, never directly:
    DynamicFieldBackend().value_set(field, object_id=42, value=['ABC-1'], user_id=1)
"""

import re

from django.db import models
from django.core.exceptions import ValidationError

from core.base import AuditMixin, SoftDeleteMixin
from core.base.managers import SoftDeleteManager


DATE_RESTRICTIONS = ('DisableFutureDates', 'DisablePastDates')


class DynamicField(AuditMixin, SoftDeleteMixin, models.Model):
    """
    Configuration of a single dynamic field.

    The engine treats instances as read-only descriptors; changing the
    configuration happens through the admin or the API only.

    Config keys (all optional):
        - multi_value: bool
        - regex_list: [{'value': pattern, 'error_message': str}]
        - default_value, link, link_preview
        - possible_values: {key: label}, possible_none, translatable_values
        - date_restriction: 'DisableFutureDates' | 'DisablePastDates'
    """
    name = models.CharField(
        max_length=200,
        unique=True,
        help_text="Internal name, used in request parameters (e.g. 'ProjectCode')"
    )
    label = models.CharField(
        max_length=200,
        help_text="Display label (e.g. 'Project Code')"
    )
    field_order = models.IntegerField(
        default=0,
        help_text="Display order"
    )
    field_type = models.CharField(
        max_length=200,
        help_text="Driver name (e.g. 'Text', 'Date', 'Multiselect')"
    )
    object_type = models.CharField(
        max_length=100,
        help_text="Kind of object the field is attached to (e.g. 'Ticket')"
    )
    config = models.JSONField(
        default=dict,
        blank=True,
        help_text="Driver specific configuration"
    )

    objects = SoftDeleteManager()

    class Meta:
        db_table = 'dynamic_field'
        ordering = ['field_order', 'name']

    def __str__(self):
        return f"{self.name} ({self.field_type})"

    # ===== Config shortcuts =====

    @property
    def multi_value(self):
        return bool((self.config or {}).get('multi_value'))

    @property
    def regex_list(self):
        return (self.config or {}).get('regex_list') or []

    @property
    def default_value(self):
        return (self.config or {}).get('default_value')

    @property
    def param_name(self):
        """Request parameter name of the edit field."""
        return f'DynamicField_{self.name}'

    @property
    def search_param_name(self):
        """Request parameter name of the search field."""
        return f'Search_DynamicField_{self.name}'

    def clean(self):
        """Validate dynamic field configuration"""
        super().clean()

        if not self.name or not self.name.isalnum():
            raise ValidationError({
                'name': "Field name must be alphanumeric"
            })

        from core.dynamic_field.registry import get_default_registry
        if self.field_type not in get_default_registry().field_types():
            raise ValidationError({
                'field_type': f"Unknown field type: {self.field_type}"
            })

        config = self.config or {}
        if not isinstance(config, dict):
            raise ValidationError({
                'config': "Config must be an object"
            })

        regex_list = config.get('regex_list') or []
        if not isinstance(regex_list, list):
            raise ValidationError({
                'config': "regex_list must be a list"
            })
        for regex in regex_list:
            if not isinstance(regex, dict) or not regex.get('value'):
                raise ValidationError({
                    'config': "Every regex_list entry needs a 'value' pattern"
                })
            try:
                re.compile(regex['value'])
            except re.error as e:
                raise ValidationError({
                    'config': f"Invalid regular expression '{regex['value']}': {e}"
                })

        possible_values = config.get('possible_values')
        if possible_values is not None and not isinstance(possible_values, dict):
            raise ValidationError({
                'config': "possible_values must be an object of key/label pairs"
            })

        date_restriction = config.get('date_restriction')
        if date_restriction and date_restriction not in DATE_RESTRICTIONS:
            raise ValidationError({
                'config': f"date_restriction must be one of {', '.join(DATE_RESTRICTIONS)}"
            })


class DynamicFieldValue(models.Model):
    """
    One stored value unit of a dynamic field.

    Identity is (field, object_id, index_set, index_value). Exactly one of
    the value columns is meaningful per row, chosen by the driver's
    table attribute. Rows are only written by DynamicFieldValueService,
    always as a full replace of the (field, object_id) row set.
    """
    id = models.BigAutoField(primary_key=True)
    field = models.ForeignKey(
        DynamicField,
        on_delete=models.CASCADE,
        related_name='values',
        db_column='field_id'
    )
    object_id = models.BigIntegerField(
        help_text="ID of the object the value belongs to"
    )
    value_text = models.TextField(null=True, blank=True)
    value_date = models.DateTimeField(null=True, blank=True)
    value_int = models.BigIntegerField(null=True, blank=True)
    index_value = models.SmallIntegerField(
        null=True,
        blank=True,
        help_text="Position within a multi-value field"
    )
    index_set = models.SmallIntegerField(
        null=True,
        blank=True,
        help_text="Group index for set-capable fields"
    )

    class Meta:
        db_table = 'dynamic_field_value'
        ordering = ['index_set', 'index_value', 'id']
        indexes = [
            models.Index(fields=['field', 'object_id'], name='dfv_field_object_idx'),
        ]

    def __str__(self):
        return f"{self.field_id}/{self.object_id} [{self.index_set}.{self.index_value}]"
