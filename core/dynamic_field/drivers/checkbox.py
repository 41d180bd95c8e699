"""
Checkbox dynamic field driver.

Values are stored in dynamic_field_value.value_int as 0 (unchecked) or 1
(checked). Browsers do not submit unchecked checkboxes, so the edit form
carries a hidden '<name>Used' input telling "unchecked" apart from "not
submitted".
"""

import logging
from types import MappingProxyType

from django.utils.translation import gettext as _

from core.dynamic_field.drivers.base_text import BaseTextDriver
from core.dynamic_field.render import edit_field_entry

logger = logging.getLogger(__name__)


CHECKED_VALUES = ('1', 'on', 'true', 'checked')


class CheckboxDriver(BaseTextDriver):

    field_type = 'Checkbox'
    value_key = 'ValueInt'
    table_attribute = 'value_int'
    field_css_class = 'DynamicFieldCheckbox'
    edit_template = 'dynamic_field/agent/checkbox'
    customer_edit_template = 'dynamic_field/customer/checkbox'
    fold_case = False

    behaviors = MappingProxyType({
        'IsACLReducible': False,
        'IsNotificationEventCondition': True,
        'IsFiltrable': True,
        'IsStatsCondition': True,
        'IsCustomerInterfaceCapable': True,
        'IsLikeOperatorCapable': False,
        'IsSetCapable': True,
    })

    def is_multi_value(self, field):
        return False

    def value_to_storage(self, item):
        if item is None or item == '':
            return None
        if isinstance(item, bool):
            return int(item)
        if isinstance(item, str):
            return 1 if item.strip().lower() in CHECKED_VALUES else int(item)
        return int(item)

    def _item_validate(self, field, item):
        value = self.value_to_storage(item)
        if value not in (None, 0, 1):
            logger.error(f"The value {item!r} is not valid for checkbox field {field.name}")
            return False
        return True

    def value_readable(self, field, item):
        value = self.value_to_storage(item)
        if value is None:
            return ''
        return _('Checked') if value else _('Unchecked')

    def value_lookup(self, field, key):
        if key is None:
            return ''
        return self.value_readable(field, key)

    def search_predicate_get(self, field, table_alias, operator, search_term):
        if operator not in ('Equals', 'Empty'):
            logger.error(f"Unsupported Operator {operator}")
            return None

        if operator == 'Equals':
            # -1 is the "unchecked" choice of the search form
            try:
                search_term = 0 if str(search_term) == '-1' else self.value_to_storage(search_term)
            except (TypeError, ValueError):
                logger.error(f"Invalid checkbox search term {search_term!r}")
                return None

        return super().search_predicate_get(field, table_alias, operator, search_term)

    def edit_field_value_get(self, field, params=None, template=None,
                             return_template_structure=False):
        field_name = field.param_name
        value = None

        if template and template.get(field_name) is not None:
            value = template[field_name]

        elif params is not None:
            submitted = params.get(field_name)
            if submitted is not None:
                value = 1 if str(submitted).lower() in CHECKED_VALUES else 0
            elif params.get(f'{field_name}Used'):
                value = 0

        if return_template_structure:
            return {field_name: value}

        return value

    def _edit_field_entry(self, field, template_name, field_id, field_name,
                          field_class, value, read_only):
        try:
            checked = bool(self.value_to_storage(value))
        except (TypeError, ValueError):
            checked = False

        return edit_field_entry(
            template=template_name,
            field_id=field_id,
            field_name=field_name,
            field_class=field_class,
            label=field.label,
            value=1,
            multi_value=False,
            read_only=read_only,
            checked=checked,
            used_name=f'{field_name}Used',
        )

    def search_field_render(self, field, default_value=None, params=None, profile=None,
                            use_label_hints=False):
        field_name = field.search_param_name

        value = self.search_field_value_get(field, params=params, profile=profile)
        if value is None:
            value = default_value
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None

        options = [
            {'key': '', 'value': '-', 'selected': value in (None, '')},
            {'key': '1', 'value': _('Checked'), 'selected': str(value) == '1'},
            {'key': '-1', 'value': _('Unchecked'), 'selected': str(value) == '-1'},
        ]

        return {
            'field': {
                'field_id': field_name,
                'field_name': field_name,
                'field_class': self.field_css_class,
                'options': options,
            },
            'label': self.edit_label_render(field, field_name),
        }

    def search_field_parameter_build(self, field, params=None, profile=None):
        value = self.search_field_value_get(field, params=params, profile=profile)
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None

        if value in (None, ''):
            return {'parameter': {}, 'display': ''}

        checked = str(value) == '1'
        return {
            'parameter': {'Equals': 1 if checked else 0},
            'display': _('Checked') if checked else _('Unchecked'),
        }

    def stats_field_parameter_build(self, field):
        return {
            'name': field.label,
            'element': field.param_name,
            'block': 'MultiSelectField',
            'values': {'1': _('Checked'), '-1': _('Unchecked')},
        }

    def stats_search_field_parameter_build(self, field, value):
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        return {'Equals': 0 if str(value) == '-1' else 1}

    def random_value(self, field, rng):
        return rng.randint(0, 1)
