"""
Base driver of the Text and TextArea dynamic fields.

Text values are stored in dynamic_field_value.value_text. Other drivers
(Date, Checkbox, Dropdown, Multiselect) reuse this implementation and
override the parts that differ: storage conversion, validation, rendering.

Request parameters ('params') are Django QueryDicts (request.POST /
request.GET) or any mapping offering get() and getlist().
"""

import logging
import random
import re
from types import MappingProxyType

from django.utils.translation import gettext as _

from core.dynamic_field.drivers.base import DynamicFieldDriver
from core.dynamic_field.render import (
    display_values,
    edit_field_entry,
    field_css_class,
    readable_values,
    search_field_entry,
)
from core.dynamic_field.values import flatten, map_values

logger = logging.getLogger(__name__)


def param_list(params, name):
    """All submitted values of a request parameter."""
    if hasattr(params, 'getlist'):
        return params.getlist(name)
    value = params.get(name)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def as_items(value):
    """Items of a value for per-item processing (validation, display)."""
    if isinstance(value, (list, tuple)):
        return list(flatten(value))
    return [value]


class BaseTextDriver(DynamicFieldDriver):
    """Text functions shared by all value_text based drivers."""

    value_key = 'ValueText'
    table_attribute = 'value_text'
    field_css_class = 'DynamicFieldText'
    edit_template = 'dynamic_field/agent/base_text'
    customer_edit_template = 'dynamic_field/customer/base_text'
    edit_value_type = 'SCALAR'
    search_value_type = 'SCALAR'
    fold_case = True

    behaviors = MappingProxyType({
        'IsACLReducible': False,
        'IsNotificationEventCondition': True,
        'IsFiltrable': False,
        'IsStatsCondition': True,
        'IsCustomerInterfaceCapable': True,
        'IsLikeOperatorCapable': True,
        'IsSetCapable': True,
    })

    def is_multi_value(self, field):
        """Whether values of this field are sequences of items."""
        return field.multi_value

    # ===== Storage conversion hooks =====

    def value_to_storage(self, item):
        """Convert one logical item to the column value."""
        return item

    def value_from_storage(self, item):
        """Convert one column value to the logical item."""
        return item

    def value_readable(self, field, item):
        """Text shown for one logical item."""
        return item

    # ===== Values =====

    def value_get(self, field, object_id, is_set=False):
        value = self.value_service.value_get(
            field_id=field.id,
            object_id=object_id,
            value_key=self.value_key,
            multi_value=self.is_multi_value(field),
            is_set=is_set,
        )
        return map_values(value, self.value_from_storage, self.is_multi_value(field), is_set)

    def value_set(self, field, object_id, value, user_id=None, is_set=False):
        try:
            value = map_values(value, self.value_to_storage, self.is_multi_value(field), is_set)
        except (TypeError, ValueError) as e:
            logger.error(
                f"Could not convert value {value!r} of dynamic field {field.name} "
                f"for object {object_id}: {e}"
            )
            return False

        return self.value_service.value_set(
            field_id=field.id,
            object_id=object_id,
            value=value,
            value_key=self.value_key,
            multi_value=self.is_multi_value(field),
            is_set=is_set,
            user_id=user_id,
        )

    def value_is_different(self, value1, value2):
        """
        Deep comparison of two values.

        A value that was never set (None) and an empty list are reported as
        equal, in both argument orders.
        """
        if value1 is None and isinstance(value2, (list, tuple)) and not value2:
            return False
        if value2 is None and isinstance(value1, (list, tuple)) and not value1:
            return False
        return value1 != value2

    def value_validate(self, field, value, user_id=None, no_validate_regex=False):
        """
        Validate a value before storing it.

        Every item must pass the storage type check and, unless
        no_validate_regex is set, every configured regular expression. The
        first failing item ends the validation.

        Returns:
            bool
        """
        regex_list = field.regex_list
        check_regex = bool(regex_list) and not no_validate_regex

        for item in as_items(value):
            try:
                storage_item = self.value_to_storage(item)
            except (TypeError, ValueError) as e:
                logger.error(f"The value {item!r} is not valid for dynamic field {field.name}: {e}")
                return False

            if not self.value_service.value_validate(storage_item, self.value_key, user_id=user_id):
                return False

            if not self._item_validate(field, item):
                return False

            if check_regex and isinstance(item, str) and item:
                for regex in regex_list:
                    if not self._regex_match(regex, item):
                        logger.error(
                            f"The value '{item}' is not matching /{regex.get('value')}/ "
                            f"({regex.get('error_message')})!"
                        )
                        return False

        return True

    def _item_validate(self, field, item):
        """Driver specific check of one item, on top of the storage check."""
        return True

    @staticmethod
    def _regex_match(regex, item):
        try:
            return re.search(regex.get('value') or '', item) is not None
        except re.error as e:
            logger.error(f"Invalid regular expression /{regex.get('value')}/ in dynamic field config: {e}")
            return False

    # ===== Search =====

    def search_predicate_get(self, field, table_alias, operator, search_term):
        return self.search_builder.build(
            operator=operator,
            search_term=search_term,
            table_alias=table_alias,
            column_name=self.table_attribute,
            fold_case=self.fold_case,
            text_column=self.table_attribute == 'value_text',
        )

    def search_sql_order_field_get(self, field, table_alias):
        return self.search_builder.order_field(table_alias, self.table_attribute)

    # ===== Edit form =====

    def edit_field_render(self, field, value=None, use_default_value=False, params=None,
                          template=None, mandatory=False, server_error=False,
                          error_message=None, read_only=False, css_class=None,
                          customer_interface=False):
        """
        Build the edit form view model.

        Value precedence: submitted request value, then the explicit value,
        then the configured default (when use_default_value is set).
        """
        field_name = field.param_name
        multi_value = self.is_multi_value(field)

        render_value = ''
        if use_default_value:
            default_value = field.default_value
            render_value = '' if default_value is None else default_value
        if value is not None:
            render_value = value

        # extract the dynamic field value from the web request
        field_value = self.edit_field_value_get(field, params=params, template=template)

        if multi_value:
            if field_value:
                render_value = field_value
        elif field_value is not None:
            render_value = field_value

        if not isinstance(render_value, (list, tuple)):
            render_value = [render_value]
        elif not render_value:
            render_value = [None]

        field_class = field_css_class(
            f'{self.field_css_class} W50pc',
            css_class=css_class,
            mandatory=mandatory,
            server_error=server_error,
        )
        template_name = self.customer_edit_template if customer_interface else self.edit_template

        entries = []
        for index, item in enumerate(render_value):
            field_id = f'{field_name}_{index}' if multi_value else field_name
            entries.append(self._edit_field_entry(
                field, template_name, field_id, field_name, field_class, item, read_only,
            ))

        data = {
            'label': self.edit_label_render(field, field_name, mandatory=mandatory),
            'server_error': bool(server_error),
            'error_message': error_message,
        }

        if multi_value:
            data['multi_value'] = entries
            data['multi_value_template'] = None
            if not read_only:
                data['multi_value_template'] = self._edit_field_entry(
                    field, template_name, f'{field_name}_Template', field_name,
                    field_class, None, read_only,
                )
        else:
            data['field'] = entries[0]

        return data

    def _edit_field_entry(self, field, template_name, field_id, field_name,
                          field_class, value, read_only):
        return edit_field_entry(
            template=template_name,
            field_id=field_id,
            field_name=field_name,
            field_class=field_class,
            label=field.label,
            value=value,
            multi_value=self.is_multi_value(field),
            read_only=read_only,
        )

    def edit_field_value_get(self, field, params=None, template=None,
                             return_template_structure=False):
        """
        Read the submitted edit value.

        For multi-value fields the last submitted entry belongs to the hidden
        template input used to add rows in the UI and is dropped.
        """
        field_name = field.param_name
        value = None

        if template and template.get(field_name) is not None:
            value = template[field_name]

        elif params is not None:
            if self.is_multi_value(field):
                submitted = param_list(params, field_name)[:-1]
                value = ['' if item is None else item for item in submitted]
            else:
                value = params.get(field_name)

        if return_template_structure:
            return {field_name: value}

        return value

    def edit_field_value_validate(self, field, params=None, template=None, mandatory=False):
        """
        Validate the submitted edit value item by item.

        Returns:
            dict: {
                'server_error': bool,
                'error_message': first error message or None,
                'items': [{'value', 'server_error', 'error_message'}, ...],
            }
        """
        value = self.edit_field_value_get(field, params=params, template=template)

        if self.is_multi_value(field):
            values = list(value or [])
        else:
            values = [value]

        items = []
        for item in values:
            item_error, item_message = self._edit_item_validate(field, item, mandatory)
            items.append({
                'value': item,
                'server_error': item_error,
                'error_message': item_message,
            })

        server_error = any(item['server_error'] for item in items)
        error_message = next(
            (item['error_message'] for item in items if item['error_message']),
            None,
        )

        if mandatory and not values:
            server_error = True
            error_message = error_message or _('This field is required.')

        return {
            'server_error': server_error,
            'error_message': error_message,
            'items': items,
        }

    def _edit_item_validate(self, field, item, mandatory):
        """Mandatory and regex checks of one submitted item."""
        if item is None or item == '':
            if mandatory:
                return True, _('This field is required.')
            return False, None

        for regex in field.regex_list:
            if not self._regex_match(regex, str(item)):
                return True, regex.get('error_message')

        return False, None

    # ===== Display =====

    def display_value_render(self, field, value, html_output=True,
                             value_max_chars=None, title_max_chars=None):
        """
        Display view model: {'value', 'title', 'link', 'link_preview'}.

        Multi values are joined with <br> (or a newline for plain text) and
        truncated against one character budget shared by all items.
        """
        items = [self.value_readable(field, item) for item in as_items(value)]
        data = display_values(
            items,
            value_max_chars=value_max_chars,
            title_max_chars=title_max_chars,
            html_output=html_output,
        )

        config = field.config or {}
        data['link'] = config.get('link') or ''
        data['link_preview'] = config.get('link_preview') or ''
        return data

    def readable_value_render(self, field, value, value_max_chars=None, title_max_chars=None):
        items = [self.value_readable(field, item) for item in as_items(value)]
        return readable_values(
            items,
            value_max_chars=value_max_chars,
            title_max_chars=title_max_chars,
        )

    # ===== Search form =====

    def search_field_render(self, field, default_value=None, params=None, profile=None,
                            use_label_hints=False):
        field_name = field.search_param_name

        value = '' if default_value is None else default_value

        # get the field value, this function is always called after the profile is loaded
        field_value = self.search_field_value_get(field, params=params, profile=profile)
        if field_value is not None:
            value = field_value

        # saved profiles of generic jobs may hold a list
        if isinstance(value, (list, tuple)):
            value = value[0] if value else ''

        additional_text = _('e.g. Text or Te*t') if use_label_hints else None

        return {
            'field': search_field_entry(
                field_id=field_name,
                field_name=field_name,
                field_class=self.field_css_class,
                label=field.label,
                value=value,
            ),
            'label': self.edit_label_render(field, field_name, additional_text=additional_text),
        }

    def search_field_value_get(self, field, params=None, profile=None,
                               return_profile_structure=False):
        field_name = field.search_param_name

        if params is not None:
            value = params.get(field_name)
        elif profile is not None:
            value = profile.get(field_name)
        else:
            return None

        if return_profile_structure:
            return {field_name: value}

        return value

    def search_field_parameter_build(self, field, params=None, profile=None):
        """
        Search parameter structure for the submitted search value.

        A '*' or '||' in the term turns the Equals search into a Like search.
        """
        value = self.search_field_value_get(field, params=params, profile=profile)

        operator = 'Equals'
        if value and isinstance(value, str) and ('*' in value or '||' in value):
            operator = 'Like'

        return {
            'parameter': {operator: value},
            'display': value,
        }

    # ===== Stats =====

    def stats_field_parameter_build(self, field):
        return {
            'name': field.label,
            'element': field.param_name,
            'block': 'InputField',
        }

    def stats_search_field_parameter_build(self, field, value):
        operator = 'Equals'
        if value and isinstance(value, str) and '*' in value:
            operator = 'Like'
        return {operator: value}

    def template_value_type_get(self, field, field_type=None):
        field_name = field.param_name

        if field_type == 'Edit':
            return {field_name: self.edit_value_type}
        if field_type == 'Search':
            return {f'Search_{field_name}': self.search_value_type}
        return {
            field_name: self.edit_value_type,
            f'Search_{field_name}': self.search_value_type,
        }

    # ===== Misc =====

    def random_value(self, field, rng):
        return str(rng.randrange(500))

    def random_value_set(self, field, object_id, user_id=None, set_count=0, rng=None):
        """
        Store a random value, for demo and load test data.

        Returns:
            dict: {'success': bool, 'value': the stored value}
        """
        rng = rng or random.Random()
        is_set = False

        if set_count:
            if self.is_multi_value(field):
                value = [
                    [self.random_value(field, rng) for _ in range(rng.randint(1, 3))]
                    for _ in range(set_count)
                ]
            else:
                value = [self.random_value(field, rng) for _ in range(set_count)]
            is_set = True

        elif self.is_multi_value(field):
            value = [self.random_value(field, rng) for _ in range(rng.randint(1, 3))]

        else:
            value = self.random_value(field, rng)

        success = self.value_set(field, object_id, value, user_id=user_id, is_set=is_set)
        if not success:
            return {'success': False}

        return {'success': True, 'value': value}

    def object_match(self, field, value, object_attributes):
        """Strict equality of the object's attribute with the given value."""
        attribute = object_attributes.get(field.param_name)

        # return false if field is not defined
        if attribute is None:
            return False

        return attribute == value

    def historical_values_get(self, field):
        return self.value_service.historical_value_get(field.id, self.value_key)

    def value_lookup(self, field, key):
        return '' if key is None else key
