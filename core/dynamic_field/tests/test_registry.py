from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, TestCase, override_settings

from core.base.test_utils import create_dynamic_field
from core.dynamic_field.drivers import TextDriver
from core.dynamic_field.registry import DEFAULT_DRIVERS, DriverRegistry, get_default_registry


class BracketReadableMixin:
    """Extension used by the tests: wraps readable values in brackets."""

    def value_readable(self, field, item):
        return f'[{super().value_readable(field, item)}]'


class StarReadableMixin:
    """Extension used by the tests: prefixes readable values with a star."""

    def value_readable(self, field, item):
        return f'*{super().value_readable(field, item)}'


MODULE = 'core.dynamic_field.tests.test_registry'

TEXT_EXTENSIONS = {
    'Text': {
        '200-Star': {
            'module': f'{MODULE}.StarReadableMixin',
            'behaviors': {'IsFiltrable': False, 'IsACLReducible': True},
        },
        '100-Bracket': {
            'module': f'{MODULE}.BracketReadableMixin',
            'behaviors': {'IsFiltrable': True},
        },
        '050-Ignored': 'not an extension',
    },
}


class DriverRegistryTests(SimpleTestCase):
    """Tests for DriverRegistry"""

    def test_default_field_types(self):
        registry = DriverRegistry()
        self.assertEqual(registry.field_types(), sorted(DEFAULT_DRIVERS))

    def test_driver_instances_are_cached(self):
        registry = DriverRegistry()
        self.assertIs(registry.get('Text'), registry.get('Text'))
        self.assertIs(registry.get('Text').value_service, registry.get('Date').value_service)

    def test_unknown_field_type(self):
        registry = DriverRegistry()
        with self.assertLogs('core.dynamic_field.registry', level='ERROR'):
            self.assertIsNone(registry.get('Color'))

    def test_custom_driver_class(self):
        registry = DriverRegistry(drivers={'Code': TextDriver})
        self.assertIn('Code', registry.field_types())
        self.assertIsInstance(registry.get('Code'), TextDriver)

    def test_broken_driver_path(self):
        registry = DriverRegistry(drivers={'Text': 'core.dynamic_field.drivers.NoSuchDriver'})
        with self.assertRaises(ImproperlyConfigured):
            registry.get('Text')

    def test_broken_extension_path(self):
        registry = DriverRegistry(extensions={
            'Text': {'100-Missing': {'module': f'{MODULE}.NoSuchMixin'}},
        })
        with self.assertRaises(ImproperlyConfigured):
            registry.get('Text')

    def test_vendor_is_passed_to_search_builder(self):
        registry = DriverRegistry(vendor='postgresql')
        self.assertEqual(registry.get('Text').search_builder.vendor, 'postgresql')


class DriverExtensionTests(TestCase):
    """Tests for composing drivers with extensions"""

    def setUp(self):
        self.field = create_dynamic_field(name='ProjectCode')

    def test_later_extensions_wrap_earlier_ones(self):
        driver = DriverRegistry(extensions=TEXT_EXTENSIONS).get('Text')
        self.assertIsInstance(driver, TextDriver)
        self.assertEqual(driver.readable_value_render(self.field, 'ABC')['value'], '*[ABC]')

    def test_behaviors_are_merged_in_key_order(self):
        driver = DriverRegistry(extensions=TEXT_EXTENSIONS).get('Text')
        self.assertFalse(driver.has_behavior('IsFiltrable'))
        self.assertTrue(driver.has_behavior('IsACLReducible'))
        self.assertTrue(driver.has_behavior('IsSetCapable'))

    def test_extensions_do_not_leak_into_other_drivers(self):
        registry = DriverRegistry(extensions=TEXT_EXTENSIONS)
        registry.get('Text')
        self.assertFalse(TextDriver.behaviors['IsACLReducible'])
        self.assertEqual(
            registry.get('TextArea').readable_value_render(self.field, 'ABC')['value'],
            'ABC'
        )

    def test_default_registry_follows_settings(self):
        with override_settings(DYNAMIC_FIELD_DRIVER_EXTENSIONS=TEXT_EXTENSIONS):
            self.assertTrue(get_default_registry().get('Text').has_behavior('IsACLReducible'))
        self.assertFalse(get_default_registry().get('Text').has_behavior('IsACLReducible'))
