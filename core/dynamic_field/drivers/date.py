"""
Date and DateTime dynamic field drivers.

Values are stored in dynamic_field_value.value_date as timezone aware
datetimes. Date fields store midnight UTC and read back a datetime.date.

Accepted input items: datetime.date, datetime.datetime or an ISO 8601
string ('2024-05-01', '2024-05-01T10:30:00', '2024-05-01 10:30:00').
"""

import logging
from datetime import date, datetime, time, timezone as dt_timezone
from types import MappingProxyType

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta
from django.db import connections
from django.utils import timezone
from django.utils.translation import gettext as _

from core.dynamic_field.drivers.base_text import BaseTextDriver

logger = logging.getLogger(__name__)


TIME_POINT_FORMATS = ('minute', 'hour', 'day', 'week', 'month', 'year')


class BaseDateTimeDriver(BaseTextDriver):
    """Shared functions of the value_date based drivers."""

    value_key = 'ValueDateTime'
    table_attribute = 'value_date'
    fold_case = False

    behaviors = MappingProxyType({
        'IsACLReducible': False,
        'IsNotificationEventCondition': True,
        'IsFiltrable': False,
        'IsStatsCondition': True,
        'IsCustomerInterfaceCapable': True,
        'IsLikeOperatorCapable': False,
        'IsSetCapable': True,
    })

    def parse(self, item):
        """Parse one input item to an aware datetime, None for empty input."""
        if item is None or item == '':
            return None
        if isinstance(item, datetime):
            value = item
        elif isinstance(item, date):
            value = datetime.combine(item, time.min)
        elif isinstance(item, str):
            value = date_parser.isoparse(item.strip())
        else:
            raise TypeError(f'Unsupported date value {item!r}')

        if timezone.is_naive(value):
            value = timezone.make_aware(value, dt_timezone.utc)
        return value

    def value_to_storage(self, item):
        return self.parse(item)

    def value_from_storage(self, item):
        return item

    def _item_validate(self, field, item):
        value = self.value_to_storage(item)
        if value is None:
            return True

        restriction = (field.config or {}).get('date_restriction')
        today = timezone.now().date()

        if restriction == 'DisableFutureDates' and value.date() > today:
            logger.error(f"The value {item!r} of dynamic field {field.name} is in the future")
            return False
        if restriction == 'DisablePastDates' and value.date() < today:
            logger.error(f"The value {item!r} of dynamic field {field.name} is in the past")
            return False
        return True

    def _edit_item_validate(self, field, item, mandatory):
        server_error, error_message = super()._edit_item_validate(field, item, mandatory)
        if server_error or item in (None, ''):
            return server_error, error_message

        try:
            valid = self._item_validate(field, item)
        except (TypeError, ValueError):
            return True, _('Invalid date!')

        if not valid:
            restriction = (field.config or {}).get('date_restriction')
            if restriction == 'DisableFutureDates':
                return True, _('Date invalid, it can not be in the future!')
            return True, _('Date invalid, it can not be in the past!')
        return False, None

    def search_predicate_get(self, field, table_alias, operator, search_term):
        if operator == 'Like':
            logger.error(f"Unsupported Operator {operator}")
            return None

        if operator != 'Empty':
            try:
                search_term = self.value_to_storage(search_term)
                # bind the term the way the ORM binds stored values
                search_term = connections[self.value_service.using].ops.adapt_datetimefield_value(
                    search_term
                )
            except (TypeError, ValueError) as e:
                logger.error(f"Invalid date search term {search_term!r}: {e}")
                return None

        return super().search_predicate_get(field, table_alias, operator, search_term)

    # ===== Search form =====

    def search_field_value_get(self, field, params=None, profile=None,
                               return_profile_structure=False):
        """
        Read the search form values.

        Returns:
            dict with the keys start, stop (absolute range) and
            time_point_start, time_point_value, time_point_format (relative
            range), or None when nothing was submitted
        """
        field_name = field.search_param_name
        keys = {
            'start': f'{field_name}_Start',
            'stop': f'{field_name}_Stop',
            'time_point_start': f'{field_name}_TimePointStart',
            'time_point_value': f'{field_name}_TimePointValue',
            'time_point_format': f'{field_name}_TimePointFormat',
        }

        source = params if params is not None else profile
        if source is None:
            return None

        value = {key: source.get(name) for key, name in keys.items()}
        if not any(value.values()):
            value = None

        if return_profile_structure:
            return {
                name: None if value is None else value[key]
                for key, name in keys.items()
            }
        return value

    def search_field_render(self, field, default_value=None, params=None, profile=None,
                            use_label_hints=False):
        field_name = field.search_param_name

        value = self.search_field_value_get(field, params=params, profile=profile)
        if value is None:
            value = default_value if isinstance(default_value, dict) else {}

        return {
            'field': {
                'field_id': field_name,
                'field_name': field_name,
                'field_class': self.field_css_class,
                'start': self._readable(value.get('start')),
                'stop': self._readable(value.get('stop')),
                'time_point_start': value.get('time_point_start') or 'Last',
                'time_point_value': value.get('time_point_value') or '',
                'time_point_format': value.get('time_point_format') or 'day',
                'time_point_formats': TIME_POINT_FORMATS,
            },
            'label': self.edit_label_render(field, field_name),
        }

    def search_field_parameter_build(self, field, params=None, profile=None, now=None):
        """
        Search parameter structure for an absolute or relative date range.

        Relative ranges ('Last 3 day', 'Before 2 week', 'Next 1 month') are
        resolved against now.
        """
        value = self.search_field_value_get(field, params=params, profile=profile) or {}

        start = value.get('start')
        stop = value.get('stop')
        if start or stop:
            parameter = {}
            if start:
                parameter['GreaterThanEquals'] = self.value_to_storage(start)
            if stop:
                parameter['SmallerThanEquals'] = self.value_to_storage(stop)
            display = f"{self._readable(start) or '*'} - {self._readable(stop) or '*'}"
            return {'parameter': parameter, 'display': display}

        time_point_value = value.get('time_point_value')
        time_point_format = value.get('time_point_format')
        if time_point_value and time_point_format in TIME_POINT_FORMATS:
            delta = relativedelta(**{f'{time_point_format}s': int(time_point_value)})
            now = now or timezone.now()
            time_point_start = value.get('time_point_start') or 'Last'

            if time_point_start == 'Before':
                parameter = {'SmallerThanEquals': now - delta}
            elif time_point_start == 'Next':
                parameter = {'GreaterThanEquals': now, 'SmallerThanEquals': now + delta}
            else:
                parameter = {'GreaterThanEquals': now - delta, 'SmallerThanEquals': now}

            display = f'{time_point_start} {time_point_value} {time_point_format}(s)'
            return {'parameter': parameter, 'display': display}

        return {'parameter': {}, 'display': ''}

    def stats_search_field_parameter_build(self, field, value):
        if isinstance(value, dict):
            return self.search_field_parameter_build(field, profile={
                f'{field.search_param_name}_{key}': item
                for key, item in (
                    ('Start', value.get('start')),
                    ('Stop', value.get('stop')),
                    ('TimePointStart', value.get('time_point_start')),
                    ('TimePointValue', value.get('time_point_value')),
                    ('TimePointFormat', value.get('time_point_format')),
                )
            })['parameter']
        return {'Equals': self.value_to_storage(value)}

    def stats_field_parameter_build(self, field):
        return {
            'name': field.label,
            'element': field.param_name,
            'block': 'Time',
        }

    def _edit_field_entry(self, field, template_name, field_id, field_name,
                          field_class, value, read_only):
        return super()._edit_field_entry(
            field, template_name, field_id, field_name, field_class,
            self._readable(value), read_only,
        )

    def value_readable(self, field, item):
        return self._readable(item)

    def value_lookup(self, field, key):
        return self._readable(key)

    def _readable(self, item):
        raise NotImplementedError


class DateDriver(BaseDateTimeDriver):

    field_type = 'Date'
    field_css_class = 'DynamicFieldDate'
    edit_template = 'dynamic_field/agent/date'
    customer_edit_template = 'dynamic_field/customer/date'

    def parse(self, item):
        value = super().parse(item)
        if value is None:
            return None
        # keep the calendar date, drop the time of day
        return datetime.combine(value.date(), time.min, tzinfo=dt_timezone.utc)

    def value_from_storage(self, item):
        if item is None:
            return None
        if timezone.is_aware(item):
            item = item.astimezone(dt_timezone.utc)
        return item.date()

    def _readable(self, item):
        try:
            value = self.parse(item)
        except (TypeError, ValueError):
            return '' if item is None else str(item)
        return '' if value is None else value.date().isoformat()

    def random_value(self, field, rng):
        return timezone.now().date() + relativedelta(days=rng.randint(-365, 365))


class DateTimeDriver(BaseDateTimeDriver):

    field_type = 'DateTime'
    field_css_class = 'DynamicFieldDateTime'
    edit_template = 'dynamic_field/agent/datetime'
    customer_edit_template = 'dynamic_field/customer/datetime'

    def _readable(self, item):
        try:
            value = self.parse(item)
        except (TypeError, ValueError):
            return '' if item is None else str(item)
        if value is None:
            return ''
        return timezone.localtime(value).strftime('%Y-%m-%d %H:%M:%S')

    def random_value(self, field, rng):
        value = timezone.now() + relativedelta(seconds=rng.randint(-86400 * 365, 86400 * 365))
        return value.replace(microsecond=0)
