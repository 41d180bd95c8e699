"""
Driver Registry

Maps field types to driver instances. Driver classes are composed with their
configured extensions and instantiated once per registry; the default
registry is built from settings on first use.

Settings:
    DYNAMIC_FIELD_DRIVERS = {'Text': 'core.dynamic_field.drivers.TextDriver', ...}
    DYNAMIC_FIELD_DRIVER_EXTENSIONS = {'Text': {'100-Audit': {...}}}

Usage:
    from core.dynamic_field.registry import get_default_registry

    driver = get_default_registry().driver_for(field)
    driver.value_get(field, object_id=42)
"""

import logging
from functools import lru_cache

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.signals import setting_changed
from django.dispatch import receiver
from django.utils.module_loading import import_string

from core.dynamic_field.drivers.base import build_driver_class
from core.dynamic_field.search import SearchPredicateBuilder
from core.dynamic_field.services import DynamicFieldValueService

logger = logging.getLogger(__name__)


DEFAULT_DRIVERS = {
    'Text': 'core.dynamic_field.drivers.text.TextDriver',
    'TextArea': 'core.dynamic_field.drivers.text.TextAreaDriver',
    'Checkbox': 'core.dynamic_field.drivers.checkbox.CheckboxDriver',
    'Date': 'core.dynamic_field.drivers.date.DateDriver',
    'DateTime': 'core.dynamic_field.drivers.date.DateTimeDriver',
    'Dropdown': 'core.dynamic_field.drivers.select.DropdownDriver',
    'Multiselect': 'core.dynamic_field.drivers.select.MultiselectDriver',
}


class DriverRegistry:
    """
    Field type -> driver instance.

    Args:
        drivers: {field_type: driver class or dotted path}, merged over DEFAULT_DRIVERS
        extensions: {field_type: {extension_key: extension}}
        value_service: Shared DynamicFieldValueService of all drivers
        vendor: Database vendor of the search predicates (defaults to the connection's)
    """

    def __init__(self, drivers=None, extensions=None, value_service=None, vendor=None):
        self.drivers = {**DEFAULT_DRIVERS, **(drivers or {})}
        self.extensions = extensions or {}
        self.value_service = value_service or DynamicFieldValueService()
        self.vendor = vendor
        self._instances = {}

    def field_types(self):
        """Registered field types, sorted."""
        return sorted(self.drivers)

    def get(self, field_type):
        """
        Driver instance of a field type, built on first use.

        Returns:
            DynamicFieldDriver, or None for unknown field types

        Raises:
            ImproperlyConfigured: If the driver or one of its extensions can't be loaded
        """
        driver = self._instances.get(field_type)
        if driver is not None:
            return driver

        driver_class = self.drivers.get(field_type)
        if driver_class is None:
            logger.error(f"No driver registered for dynamic field type {field_type!r}")
            return None

        if isinstance(driver_class, str):
            try:
                driver_class = import_string(driver_class)
            except ImportError as e:
                raise ImproperlyConfigured(
                    f"Can't load dynamic field driver {field_type} ({driver_class}): {e}"
                ) from e

        driver_class = build_driver_class(driver_class, self.extensions.get(field_type))

        search_builder = None
        if self.vendor:
            search_builder = SearchPredicateBuilder(vendor=self.vendor)

        driver = driver_class(value_service=self.value_service, search_builder=search_builder)
        self._instances[field_type] = driver

        logger.debug(f"Loaded dynamic field driver {driver!r}")
        return driver

    def driver_for(self, field):
        """Driver of a DynamicField instance."""
        return self.get(field.field_type)


@lru_cache(maxsize=None)
def get_default_registry():
    """Registry configured from the Django settings."""
    return DriverRegistry(
        drivers=getattr(settings, 'DYNAMIC_FIELD_DRIVERS', None),
        extensions=getattr(settings, 'DYNAMIC_FIELD_DRIVER_EXTENSIONS', None),
    )


@receiver(setting_changed)
def reset_default_registry(setting, **kwargs):
    if setting in ('DYNAMIC_FIELD_DRIVERS', 'DYNAMIC_FIELD_DRIVER_EXTENSIONS'):
        get_default_registry.cache_clear()
