"""
Dynamic Field Driver Base

Every field type is implemented by a driver class. A driver declares:

    value_key         logical name of its value ('ValueText', 'ValueInt', ...)
    table_attribute   physical column in dynamic_field_value
    field_css_class   CSS class used by edit/search inputs
    behaviors         capability flags (IsFiltrable, IsSetCapable, ...)

Extensions configured in settings.DYNAMIC_FIELD_DRIVER_EXTENSIONS are
composed into a new driver class once, before the driver is first used:

    DYNAMIC_FIELD_DRIVER_EXTENSIONS = {
        'Text': {
            '100-Audit': {
                'module': 'myapp.dynamic_field.AuditedTextMixin',
                'behaviors': {'IsFiltrable': True},
            },
        },
    }
"""

import logging
from types import MappingProxyType

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from core.dynamic_field.render import edit_label_render
from core.dynamic_field.search import SearchPredicateBuilder
from core.dynamic_field.services import DynamicFieldValueService

logger = logging.getLogger(__name__)


BEHAVIORS = (
    'IsACLReducible',
    'IsNotificationEventCondition',
    'IsFiltrable',
    'IsStatsCondition',
    'IsCustomerInterfaceCapable',
    'IsLikeOperatorCapable',
    'IsSetCapable',
)


def build_driver_class(driver_class, extensions=None):
    """
    Compose a driver class with its configured extensions.

    Extensions are applied in lexicographic order of their keys. An
    extension 'module' becomes a base class in front of the driver, so its
    methods override the driver's and can call super(); later extensions
    come first in the MRO. Behavior flags are merged, later extensions win.

    Args:
        driver_class: Driver class to extend
        extensions: {extension_key: {'module': dotted path, 'behaviors': {...}}}

    Returns:
        A driver class with an immutable, fully merged behaviors mapping

    Raises:
        ImproperlyConfigured: If an extension module cannot be loaded
    """
    behaviors = dict(driver_class.behaviors)
    mixins = []

    for extension_key in sorted(extensions or {}):
        extension = extensions[extension_key]

        # skip invalid extensions
        if not isinstance(extension, dict) or not extension:
            continue

        module = extension.get('module')
        if module:
            try:
                mixins.insert(0, import_string(module))
            except ImportError as e:
                raise ImproperlyConfigured(
                    f"Can't load dynamic field driver extension {extension_key} "
                    f"({module}) for {driver_class.__name__}: {e}"
                ) from e

        extension_behaviors = extension.get('behaviors')
        if isinstance(extension_behaviors, dict):
            behaviors.update(extension_behaviors)

    namespace = {
        'behaviors': MappingProxyType(behaviors),
        '__module__': driver_class.__module__,
        '__doc__': driver_class.__doc__,
    }
    return type(driver_class.__name__, tuple(mixins) + (driver_class,), namespace)


class DynamicFieldDriver:
    """
    Common base of all dynamic field drivers.

    Drivers are stateless apart from their collaborators, which are injected
    at construction time (value storage and search predicate builder).
    """

    field_type = None
    value_key = None
    table_attribute = None
    field_css_class = ''
    behaviors = MappingProxyType({behavior: False for behavior in BEHAVIORS})

    def __init__(self, value_service=None, search_builder=None):
        self.value_service = value_service or DynamicFieldValueService()
        self._search_builder = search_builder

    @property
    def search_builder(self):
        # resolved lazily, the connection vendor is only known once settings are loaded
        if self._search_builder is None:
            self._search_builder = SearchPredicateBuilder(using=self.value_service.using)
        return self._search_builder

    def has_behavior(self, behavior):
        """Check a capability flag of this driver."""
        return bool(self.behaviors.get(behavior))

    def edit_label_render(self, field, field_name, mandatory=False, additional_text=None):
        return edit_label_render(
            field,
            field_name,
            mandatory=mandatory,
            additional_text=additional_text,
        )

    def __repr__(self):
        return f'<{type(self).__name__} {self.field_type}>'
