"""
Dynamic Field Backend

Single entry point for callers: every operation takes a DynamicField and is
dispatched to the driver of its field type.

Usage:
    from core.dynamic_field.backend import DynamicFieldBackend

    backend = DynamicFieldBackend()
    backend.value_set(field, object_id=42, value='ABC-1', user_id=request.user.id)
    backend.value_get(field, object_id=42)
    backend.object_search(field, operator='Like', search_term='ABC*')
"""

import logging

from core.dynamic_field.registry import get_default_registry
from core.dynamic_field.values import map_values

logger = logging.getLogger(__name__)


# Table name of DynamicFieldValue, used as alias in search predicates
VALUE_TABLE = 'dynamic_field_value'


class DynamicFieldBackend:

    def __init__(self, registry=None):
        self.registry = registry or get_default_registry()

    def driver(self, field):
        driver = self.registry.driver_for(field)
        if driver is None:
            logger.error(f"Dynamic field {field.name} has unknown field type {field.field_type!r}")
        return driver

    def _dispatch(self, field, operation, *args, default=None, **kwargs):
        driver = self.driver(field)
        if driver is None:
            return default
        return getattr(driver, operation)(field, *args, **kwargs)

    # ===== Values =====

    def value_get(self, field, object_id, is_set=False):
        return self._dispatch(field, 'value_get', object_id, is_set=is_set)

    def value_set(self, field, object_id, value, user_id=None, is_set=False):
        """
        Store a value, skipping the write when it equals the stored one.

        Returns:
            bool
        """
        driver = self.driver(field)
        if driver is None:
            return False

        old_value = driver.value_get(field, object_id, is_set=is_set)
        new_value = value
        if value is not None:
            # compare in the logical form the driver reads back
            new_value = self._normalized(driver, field, value, is_set)

        if not driver.value_is_different(old_value, new_value):
            logger.debug(f"Value of dynamic field {field.name} for object {object_id} is unchanged")
            return True

        return driver.value_set(field, object_id, value, user_id=user_id, is_set=is_set)

    @staticmethod
    def _normalized(driver, field, value, is_set):
        def normalize(item):
            return driver.value_from_storage(driver.value_to_storage(item))

        try:
            return map_values(value, normalize, driver.is_multi_value(field), is_set)
        except (TypeError, ValueError):
            return value

    def value_validate(self, field, value, user_id=None, no_validate_regex=False):
        return self._dispatch(
            field, 'value_validate', value,
            user_id=user_id, no_validate_regex=no_validate_regex, default=False,
        )

    def value_is_different(self, field, value1, value2):
        driver = self.driver(field)
        if driver is None:
            return None
        return driver.value_is_different(value1, value2)

    def object_values_delete(self, field, object_id, user_id=None):
        return self.registry.value_service.object_values_delete(field.id, object_id, user_id=user_id)

    def all_values_delete(self, field, user_id=None):
        return self.registry.value_service.all_values_delete(field.id, user_id=user_id)

    def historical_values_get(self, field):
        return self._dispatch(field, 'historical_values_get')

    def value_lookup(self, field, key):
        return self._dispatch(field, 'value_lookup', key)

    # ===== Search =====

    def search_predicate_get(self, field, operator, search_term, table_alias=VALUE_TABLE):
        return self._dispatch(field, 'search_predicate_get', table_alias, operator, search_term)

    def search_sql_order_field_get(self, field, table_alias=VALUE_TABLE):
        return self._dispatch(field, 'search_sql_order_field_get', table_alias)

    def object_search(self, field, operator, search_term):
        """
        IDs of the objects whose value of the field matches the search.

        Returns:
            list of object IDs; empty when the operator is not supported
        """
        predicate = self.search_predicate_get(field, operator, search_term)
        if predicate is None:
            return []
        return self.registry.value_service.object_ids_search(field.id, predicate)

    # ===== Rendering =====

    def edit_field_render(self, field, **kwargs):
        return self._dispatch(field, 'edit_field_render', **kwargs)

    def edit_field_value_get(self, field, **kwargs):
        return self._dispatch(field, 'edit_field_value_get', **kwargs)

    def edit_field_value_validate(self, field, **kwargs):
        return self._dispatch(field, 'edit_field_value_validate', **kwargs)

    def display_value_render(self, field, value, **kwargs):
        return self._dispatch(field, 'display_value_render', value, **kwargs)

    def readable_value_render(self, field, value, **kwargs):
        return self._dispatch(field, 'readable_value_render', value, **kwargs)

    def search_field_render(self, field, **kwargs):
        return self._dispatch(field, 'search_field_render', **kwargs)

    def search_field_value_get(self, field, **kwargs):
        return self._dispatch(field, 'search_field_value_get', **kwargs)

    def search_field_parameter_build(self, field, **kwargs):
        return self._dispatch(field, 'search_field_parameter_build', **kwargs)

    # ===== Stats and templates =====

    def stats_field_parameter_build(self, field):
        return self._dispatch(field, 'stats_field_parameter_build')

    def stats_search_field_parameter_build(self, field, value):
        return self._dispatch(field, 'stats_search_field_parameter_build', value)

    def template_value_type_get(self, field, field_type=None):
        return self._dispatch(field, 'template_value_type_get', field_type=field_type)

    # ===== Misc =====

    def object_match(self, field, value, object_attributes):
        return self._dispatch(field, 'object_match', value, object_attributes, default=False)

    def random_value_set(self, field, object_id, user_id=None, set_count=0, rng=None):
        return self._dispatch(
            field, 'random_value_set', object_id,
            user_id=user_id, set_count=set_count, rng=rng, default={'success': False},
        )

    def has_behavior(self, field, behavior):
        driver = self.driver(field)
        if driver is None:
            return False
        return driver.has_behavior(behavior)
