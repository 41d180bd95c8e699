"""
Dynamic Field Value Service - Core Infrastructure

CRUD over the dynamic_field_value table. The service is agnostic of field
types: drivers pass their value key (which selects the physical column) and
the value shape flags, and the codec in values.py produces the row indices.

Usage:
    from core.dynamic_field.services import DynamicFieldValueService

    service = DynamicFieldValueService()

    service.value_set(
        field_id=field.id,
        object_id=42,
        value=['first', 'second'],
        value_key='ValueText',
        multi_value=True,
        user_id=1,
    )
    service.value_get(field_id=field.id, object_id=42, value_key='ValueText', multi_value=True)
    # ['first', 'second']
"""

import logging
from datetime import date, datetime

from django.db import DEFAULT_DB_ALIAS, DatabaseError, transaction

from .models import DynamicFieldValue
from .values import ValueRow, from_rows, to_rows

logger = logging.getLogger(__name__)


# Logical value key -> physical column of dynamic_field_value
VALUE_KEY_COLUMNS = {
    'ValueText': 'value_text',
    'ValueDateTime': 'value_date',
    'ValueInt': 'value_int',
}


class DynamicFieldValueService:
    """Storage of dynamic field values for one database alias."""

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    # ===== Reading =====

    def rows_get(self, field_id, object_id, value_key):
        """
        Load the stored rows of a field for one object.

        Returns:
            list of ValueRow ordered by (index_set, index_value)
        """
        column = self._column(value_key)
        records = (
            DynamicFieldValue.objects.using(self.using)
            .filter(field_id=field_id, object_id=object_id)
            .order_by('index_set', 'index_value', 'id')
            .values_list(column, 'index_value', 'index_set')
        )
        return [
            ValueRow(value=value, index_value=index_value or 0, index_set=index_set or 0)
            for value, index_value, index_set in records
        ]

    def value_get(self, field_id, object_id, value_key, multi_value=False, is_set=False):
        """
        Get the logical value of a field for one object.

        Returns:
            The decoded value, or None when nothing is stored
        """
        rows = self.rows_get(field_id, object_id, value_key)
        if not rows:
            return None
        return from_rows(rows, multi_value=multi_value, is_set=is_set)

    def historical_value_get(self, field_id, value_key):
        """
        Get all distinct values ever stored for a field.

        Used for autocompletion and reporting.

        Returns:
            dict: {value: value}, ordered by value
        """
        column = self._column(value_key)
        values = (
            DynamicFieldValue.objects.using(self.using)
            .filter(field_id=field_id, **{f'{column}__isnull': False})
            .order_by(column)
            .values_list(column, flat=True)
            .distinct()
        )
        return {value: value for value in values}

    def object_ids_search(self, field_id, predicate):
        """
        Find the objects whose stored values satisfy a search predicate.

        Args:
            field_id: Dynamic field ID
            predicate: SearchPredicate built against the dynamic_field_value table

        Returns:
            list of object IDs (ascending)
        """
        queryset = DynamicFieldValue.objects.using(self.using).filter(field_id=field_id)
        queryset = queryset.extra(where=[predicate.sql], params=list(predicate.params))
        return list(
            queryset.order_by('object_id').values_list('object_id', flat=True).distinct()
        )

    # ===== Writing =====

    def value_set(self, field_id, object_id, value, value_key,
                  multi_value=False, is_set=False, user_id=None):
        """
        Replace the stored value of a field for one object.

        The old rows are deleted and the new ones inserted in one transaction,
        so readers never observe a partial row set.

        Returns:
            bool: True on success, False if the database rejected the write
        """
        rows = to_rows(value, multi_value=multi_value, is_set=is_set)
        return self.rows_set(field_id, object_id, rows, value_key, user_id=user_id)

    def rows_set(self, field_id, object_id, rows, value_key, user_id=None):
        """Full replace of the row set of (field_id, object_id)."""
        column = self._column(value_key)
        records = [
            DynamicFieldValue(
                field_id=field_id,
                object_id=object_id,
                index_value=row.index_value,
                index_set=row.index_set,
                **{column: row.value},
            )
            for row in rows
        ]

        try:
            with transaction.atomic(using=self.using):
                DynamicFieldValue.objects.using(self.using).filter(
                    field_id=field_id,
                    object_id=object_id,
                ).delete()
                DynamicFieldValue.objects.using(self.using).bulk_create(records)
        except DatabaseError as e:
            logger.error(
                f"Could not store value of dynamic field {field_id} "
                f"for object {object_id} (user {user_id}): {e}"
            )
            return False

        logger.debug(
            f"Stored {len(records)} value row(s) of dynamic field {field_id} "
            f"for object {object_id} (user {user_id})"
        )
        return True

    def object_values_delete(self, field_id, object_id, user_id=None):
        """Delete all values of a field for one object."""
        return self._delete(
            {'field_id': field_id, 'object_id': object_id},
            f"dynamic field {field_id} for object {object_id} (user {user_id})",
        )

    def all_values_delete(self, field_id, user_id=None):
        """Delete all values of a field, for every object."""
        return self._delete(
            {'field_id': field_id},
            f"dynamic field {field_id} (user {user_id})",
        )

    # ===== Validation =====

    def value_validate(self, value, value_key, user_id=None):
        """
        Check that a single value fits the physical column of the value key.

        None is always valid (it is stored as NULL).

        Returns:
            bool
        """
        column = VALUE_KEY_COLUMNS.get(value_key)
        if column is None:
            logger.error(f"Unknown dynamic field value key {value_key!r}")
            return False

        if value is None:
            return True

        if column == 'value_text':
            valid = isinstance(value, str)
        elif column == 'value_int':
            valid = isinstance(value, int) and not isinstance(value, bool)
        else:
            valid = isinstance(value, (date, datetime))

        if not valid:
            logger.error(
                f"The value {value!r} is not valid for {column} (user {user_id})"
            )
        return valid

    # ===== Private helper methods =====

    def _delete(self, filter_kwargs, context):
        try:
            with transaction.atomic(using=self.using):
                DynamicFieldValue.objects.using(self.using).filter(**filter_kwargs).delete()
        except DatabaseError as e:
            logger.error(f"Could not delete values of {context}: {e}")
            return False
        return True

    @staticmethod
    def _column(value_key):
        try:
            return VALUE_KEY_COLUMNS[value_key]
        except KeyError:
            raise ValueError(f"Unknown dynamic field value key {value_key!r}") from None
