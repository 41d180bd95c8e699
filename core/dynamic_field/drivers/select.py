"""
Dropdown and Multiselect dynamic field drivers.

Both store the keys of config['possible_values'] in
dynamic_field_value.value_text; labels are only used for rendering.
Multiselect values are always sequences of keys.
"""

import logging
from types import MappingProxyType

from django.utils.translation import gettext as _

from core.dynamic_field.drivers.base_text import BaseTextDriver, param_list
from core.dynamic_field.render import escape_text, field_css_class
from core.dynamic_field.search import SearchPredicate

logger = logging.getLogger(__name__)


class BaseSelectDriver(BaseTextDriver):
    """Shared functions of the select based drivers."""

    fold_case = False
    edit_template = 'dynamic_field/agent/select'
    customer_edit_template = 'dynamic_field/customer/select'
    multiple = False

    behaviors = MappingProxyType({
        'IsACLReducible': True,
        'IsNotificationEventCondition': True,
        'IsFiltrable': True,
        'IsStatsCondition': True,
        'IsCustomerInterfaceCapable': True,
        'IsLikeOperatorCapable': False,
        'IsSetCapable': True,
    })

    def possible_values(self, field, include_none=True):
        """{key: label} of the selectable values, '' first when possible_none is set."""
        config = field.config or {}
        possible_values = {}
        if include_none and config.get('possible_none'):
            possible_values[''] = '-'
        possible_values.update({
            str(key): label for key, label in (config.get('possible_values') or {}).items()
        })
        return possible_values

    def label(self, field, key):
        config = field.config or {}
        label = self.possible_values(field).get(str(key), key)
        if label and config.get('translatable_values'):
            label = _(label)
        return label

    def _item_validate(self, field, item):
        if item is None or item == '':
            return True
        if str(item) not in self.possible_values(field, include_none=False):
            logger.error(f"The value {item!r} is not a possible value of dynamic field {field.name}")
            return False
        return True

    def _edit_item_validate(self, field, item, mandatory):
        server_error, error_message = super()._edit_item_validate(field, item, mandatory)
        if server_error:
            return server_error, error_message
        if not self._item_validate(field, item):
            return True, _('The field content is invalid')
        return False, None

    def value_readable(self, field, item):
        if item is None:
            return ''
        return self.label(field, item)

    def value_lookup(self, field, key):
        if key is None:
            return ''
        return self.label(field, key)

    def search_predicate_get(self, field, table_alias, operator, search_term):
        # the search form submits a list of keys
        if operator == 'Equals' and isinstance(search_term, (list, tuple)):
            return SearchPredicate.combine([
                super(BaseSelectDriver, self).search_predicate_get(field, table_alias, operator, term)
                for term in search_term
            ], 'OR')
        return super().search_predicate_get(field, table_alias, operator, search_term)

    # ===== Edit form =====

    def _options(self, field, selected):
        selected = {str(key) for key in selected if key is not None}
        return [
            {
                'key': key,
                'value': escape_text(self.label(field, key)),
                'selected': key in selected,
            }
            for key in self.possible_values(field)
        ]

    def edit_field_render(self, field, value=None, use_default_value=False, params=None,
                          template=None, mandatory=False, server_error=False,
                          error_message=None, read_only=False, css_class=None,
                          customer_interface=False):
        field_name = field.param_name

        render_value = None
        if use_default_value:
            render_value = field.default_value
        if value is not None:
            render_value = value

        field_value = self.edit_field_value_get(field, params=params, template=template)
        if field_value:
            render_value = field_value

        if render_value is None:
            render_value = []
        elif not isinstance(render_value, (list, tuple)):
            render_value = [render_value]

        field_class = field_css_class(
            f'{self.field_css_class} Modernize W50pc',
            css_class=css_class,
            mandatory=mandatory,
            server_error=server_error,
        )

        return {
            'label': self.edit_label_render(field, field_name, mandatory=mandatory),
            'server_error': bool(server_error),
            'error_message': error_message,
            'field': {
                'template': self.customer_edit_template if customer_interface else self.edit_template,
                'field_id': field_name,
                'field_name': field_name,
                'field_class': field_class,
                'field_label_escaped': escape_text(field.label),
                'multiple': self.multiple,
                'read_only': bool(read_only),
                'options': self._options(field, render_value),
            },
        }

    # ===== Search form =====

    def search_field_value_get(self, field, params=None, profile=None,
                               return_profile_structure=False):
        field_name = field.search_param_name

        if params is not None:
            value = param_list(params, field_name)
        elif profile is not None:
            value = profile.get(field_name)
        else:
            return None

        if return_profile_structure:
            return {field_name: value}
        return value

    def search_field_render(self, field, default_value=None, params=None, profile=None,
                            use_label_hints=False):
        field_name = field.search_param_name

        value = self.search_field_value_get(field, params=params, profile=profile)
        if not value:
            value = default_value
        if value is None:
            value = []
        elif not isinstance(value, (list, tuple)):
            value = [value]

        return {
            'field': {
                'field_id': field_name,
                'field_name': field_name,
                'field_class': f'{self.field_css_class} Modernize',
                'multiple': True,
                'options': self._options(field, value),
            },
            'label': self.edit_label_render(field, field_name),
        }

    def search_field_parameter_build(self, field, params=None, profile=None):
        value = self.search_field_value_get(field, params=params, profile=profile)
        if value is None or value == '':
            value = []
        elif not isinstance(value, (list, tuple)):
            value = [value]

        return {
            'parameter': {'Equals': list(value)} if value else {},
            'display': ', '.join(str(self.label(field, key)) for key in value),
        }

    def stats_field_parameter_build(self, field):
        config = field.config or {}
        return {
            'name': field.label,
            'element': field.param_name,
            'block': 'MultiSelectField',
            'values': self.possible_values(field, include_none=False),
            'translatable_values': bool(config.get('translatable_values')),
        }

    def stats_search_field_parameter_build(self, field, value):
        return {'Equals': value}

    def template_value_type_get(self, field, field_type=None):
        field_name = field.param_name
        edit_value_type = 'ARRAY' if self.is_multi_value(field) else 'SCALAR'

        if field_type == 'Edit':
            return {field_name: edit_value_type}
        if field_type == 'Search':
            return {f'Search_{field_name}': 'ARRAY'}
        return {
            field_name: edit_value_type,
            f'Search_{field_name}': 'ARRAY',
        }

    def object_match(self, field, value, object_attributes):
        attribute = object_attributes.get(field.param_name)
        if attribute is None:
            return False
        if isinstance(attribute, (list, tuple)) and not isinstance(value, (list, tuple)):
            return value in attribute
        return attribute == value

    def random_value(self, field, rng):
        keys = list(self.possible_values(field, include_none=False))
        if not keys:
            return ''
        return rng.choice(keys)


class DropdownDriver(BaseSelectDriver):

    field_type = 'Dropdown'
    field_css_class = 'DynamicFieldText'

    def edit_field_value_get(self, field, params=None, template=None,
                             return_template_structure=False):
        field_name = field.param_name
        value = None

        if template and template.get(field_name) is not None:
            value = template[field_name]
        elif params is not None:
            if self.is_multi_value(field):
                value = param_list(params, field_name)
            else:
                value = params.get(field_name)

        if return_template_structure:
            return {field_name: value}
        return value


class MultiselectDriver(BaseSelectDriver):

    field_type = 'Multiselect'
    field_css_class = 'DynamicFieldMultiSelect'
    multiple = True

    def is_multi_value(self, field):
        return True

    def edit_field_value_get(self, field, params=None, template=None,
                             return_template_structure=False):
        field_name = field.param_name
        value = None

        if template and template.get(field_name) is not None:
            value = template[field_name]
        elif params is not None:
            value = param_list(params, field_name)

        if return_template_structure:
            return {field_name: value}
        return value
