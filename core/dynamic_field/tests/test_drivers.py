import random
from datetime import date, datetime, timedelta, timezone as dt_timezone

from dateutil.relativedelta import relativedelta
from django.test import TestCase
from django.utils import timezone

from core.base.test_utils import create_dynamic_field, query_dict
from core.dynamic_field.drivers import (
    CheckboxDriver,
    DateDriver,
    DateTimeDriver,
    DropdownDriver,
    MultiselectDriver,
    TextAreaDriver,
    TextDriver,
)
from core.dynamic_field.search import SearchPredicateBuilder

PROJECT_CODE_REGEX = {'value': r'^[A-Z]{3}-\d+$', 'error_message': 'Use ABC-123'}


class TextDriverTests(TestCase):
    """Tests for the Text driver (BaseText functions)"""

    def setUp(self):
        self.driver = TextDriver(search_builder=SearchPredicateBuilder(vendor='mysql'))
        self.field = create_dynamic_field(
            name='ProjectCode',
            config={
                'regex_list': [PROJECT_CODE_REGEX],
                'default_value': 'ABC-0',
                'link': 'https://tracker.example.com/?q=ABC',
            },
        )
        self.tags = create_dynamic_field(name='Tags', config={'multi_value': True})

    def test_value_set_and_get(self):
        self.assertTrue(self.driver.value_set(self.field, 1, 'ABC-1', user_id=1))
        self.assertEqual(self.driver.value_get(self.field, 1), 'ABC-1')

        self.assertTrue(self.driver.value_set(self.tags, 1, ['x', '', 'y']))
        self.assertEqual(self.driver.value_get(self.tags, 1), ['x', '', 'y'])

    def test_value_get_without_value(self):
        self.assertIsNone(self.driver.value_get(self.field, 404))

    def test_value_is_different(self):
        """None and an empty list are the same, in both orders"""
        self.assertFalse(self.driver.value_is_different(None, []))
        self.assertFalse(self.driver.value_is_different([], None))
        self.assertFalse(self.driver.value_is_different(['a', 'b'], ['a', 'b']))
        self.assertTrue(self.driver.value_is_different(['a', 'b'], ['b', 'a']))
        self.assertTrue(self.driver.value_is_different(None, ''))
        self.assertTrue(self.driver.value_is_different('a', 'b'))

    def test_value_validate_regex(self):
        self.assertTrue(self.driver.value_validate(self.field, 'ABC-12'))
        with self.assertLogs('core.dynamic_field.drivers.base_text', level='ERROR') as logs:
            self.assertFalse(self.driver.value_validate(self.field, 'abc'))
        self.assertIn('Use ABC-123', logs.output[0])

    def test_value_validate_skips_regex_when_asked(self):
        self.assertTrue(self.driver.value_validate(self.field, 'abc', no_validate_regex=True))

    def test_value_validate_stops_at_first_invalid_item(self):
        field = create_dynamic_field(
            name='Codes', config={'multi_value': True, 'regex_list': [PROJECT_CODE_REGEX]}
        )
        with self.assertLogs('core.dynamic_field.drivers.base_text', level='ERROR') as logs:
            self.assertFalse(self.driver.value_validate(field, ['ABC-1', 'bad', 'worse']))
        self.assertEqual(len(logs.output), 1)
        self.assertTrue(self.driver.value_validate(field, ['ABC-1', '', None]))

    def test_value_validate_type(self):
        with self.assertLogs('core.dynamic_field.services', level='ERROR'):
            self.assertFalse(self.driver.value_validate(self.field, 5))

    def test_edit_field_render_value_precedence(self):
        """Request value > explicit value > default value"""
        data = self.driver.edit_field_render(self.field, use_default_value=True)
        self.assertEqual(data['field']['value_escaped'], 'ABC-0')

        data = self.driver.edit_field_render(self.field, value='ABC-1', use_default_value=True)
        self.assertEqual(data['field']['value_escaped'], 'ABC-1')

        params = query_dict({'DynamicField_ProjectCode': 'ABC-2'})
        data = self.driver.edit_field_render(self.field, value='ABC-1', params=params)
        self.assertEqual(data['field']['value_escaped'], 'ABC-2')

    def test_edit_field_render_classes(self):
        data = self.driver.edit_field_render(
            self.field, mandatory=True, server_error=True, css_class='Wide',
        )
        self.assertEqual(
            data['field']['field_class'],
            'DynamicFieldText W50pc Wide Validate_Required ServerError'
        )
        self.assertEqual(data['field']['template'], 'dynamic_field/agent/base_text')
        self.assertTrue(data['label']['mandatory'])

        data = self.driver.edit_field_render(self.field, customer_interface=True)
        self.assertEqual(data['field']['template'], 'dynamic_field/customer/base_text')

    def test_edit_field_render_multi_value(self):
        data = self.driver.edit_field_render(self.tags, value=['a', '<b>'])
        entries = data['multi_value']
        self.assertEqual([entry['field_id'] for entry in entries], ['DynamicField_Tags_0', 'DynamicField_Tags_1'])
        self.assertEqual(entries[1]['value_escaped'], '&lt;b&gt;')
        self.assertEqual(data['multi_value_template']['field_id'], 'DynamicField_Tags_Template')

        data = self.driver.edit_field_render(self.tags, value=['a'], read_only=True)
        self.assertIsNone(data['multi_value_template'])

    def test_edit_field_value_get_drops_template_entry(self):
        params = query_dict({'DynamicField_Tags': ['a', 'b', '']})
        self.assertEqual(self.driver.edit_field_value_get(self.tags, params=params), ['a', 'b'])
        self.assertEqual(
            self.driver.edit_field_value_get(self.tags, params=params, return_template_structure=True),
            {'DynamicField_Tags': ['a', 'b']}
        )

    def test_edit_field_value_get_from_template(self):
        template = {'DynamicField_ProjectCode': 'ABC-9'}
        self.assertEqual(self.driver.edit_field_value_get(self.field, template=template), 'ABC-9')

    def test_edit_field_value_validate(self):
        result = self.driver.edit_field_value_validate(
            self.field, params=query_dict({'DynamicField_ProjectCode': ''}), mandatory=True,
        )
        self.assertTrue(result['server_error'])
        self.assertEqual(result['error_message'], 'This field is required.')

        result = self.driver.edit_field_value_validate(
            self.field, params=query_dict({'DynamicField_ProjectCode': 'nope'}),
        )
        self.assertTrue(result['server_error'])
        self.assertEqual(result['error_message'], 'Use ABC-123')

        result = self.driver.edit_field_value_validate(
            self.field, params=query_dict({'DynamicField_ProjectCode': 'ABC-3'}), mandatory=True,
        )
        self.assertFalse(result['server_error'])
        self.assertIsNone(result['error_message'])

    def test_edit_field_value_validate_per_item(self):
        field = create_dynamic_field(
            name='Codes', config={'multi_value': True, 'regex_list': [PROJECT_CODE_REGEX]}
        )
        params = query_dict({'DynamicField_Codes': ['ABC-1', 'bad', '']})
        result = self.driver.edit_field_value_validate(field, params=params)
        self.assertEqual([item['server_error'] for item in result['items']], [False, True])

    def test_display_value_render(self):
        data = self.driver.display_value_render(self.field, 'ABC-1')
        self.assertEqual(data['value'], 'ABC-1')
        self.assertEqual(data['link'], 'https://tracker.example.com/?q=ABC')
        self.assertEqual(data['link_preview'], '')

        data = self.driver.display_value_render(self.tags, ['abcde', 'fghij'], value_max_chars=7)
        self.assertEqual(data['value'], 'abcde<br>fg...')

    def test_readable_value_render(self):
        data = self.driver.readable_value_render(self.tags, ['a', 'b'])
        self.assertEqual(data['value'], 'a, b')

    def test_search_field(self):
        params = query_dict({'Search_DynamicField_ProjectCode': 'AB*'})
        self.assertEqual(self.driver.search_field_value_get(self.field, params=params), 'AB*')
        self.assertEqual(
            self.driver.search_field_parameter_build(self.field, params=params),
            {'parameter': {'Like': 'AB*'}, 'display': 'AB*'}
        )

        profile = {'Search_DynamicField_ProjectCode': 'ABC-1'}
        self.assertEqual(
            self.driver.search_field_parameter_build(self.field, profile=profile)['parameter'],
            {'Equals': 'ABC-1'}
        )
        self.assertEqual(
            self.driver.search_field_parameter_build(
                self.field, profile={'Search_DynamicField_ProjectCode': 'a||b'}
            )['parameter'],
            {'Like': 'a||b'}
        )

    def test_search_field_render(self):
        data = self.driver.search_field_render(
            self.field, profile={'Search_DynamicField_ProjectCode': ['ABC*']}, use_label_hints=True,
        )
        self.assertEqual(data['field']['field_name'], 'Search_DynamicField_ProjectCode')
        self.assertEqual(data['field']['value_escaped'], 'ABC*')
        self.assertEqual(data['label']['label_escaped'], 'ProjectCode (e.g. Text or Te*t)')

    def test_search_predicate(self):
        predicate = self.driver.search_predicate_get(self.field, 'dfv', 'Equals', 'ABC-1')
        self.assertEqual(predicate.sql, 'dfv.value_text = %s')
        self.assertEqual(
            self.driver.search_sql_order_field_get(self.field, 'dfv'),
            'dfv.value_text'
        )

    def test_stats_and_template_types(self):
        self.assertEqual(
            self.driver.stats_field_parameter_build(self.field),
            {'name': 'ProjectCode', 'element': 'DynamicField_ProjectCode', 'block': 'InputField'}
        )
        self.assertEqual(self.driver.stats_search_field_parameter_build(self.field, 'A*'), {'Like': 'A*'})
        self.assertEqual(self.driver.stats_search_field_parameter_build(self.field, 'A'), {'Equals': 'A'})
        self.assertEqual(
            self.driver.template_value_type_get(self.field),
            {'DynamicField_ProjectCode': 'SCALAR', 'Search_DynamicField_ProjectCode': 'SCALAR'}
        )
        self.assertEqual(
            self.driver.template_value_type_get(self.field, field_type='Edit'),
            {'DynamicField_ProjectCode': 'SCALAR'}
        )

    def test_random_value_set(self):
        result = self.driver.random_value_set(self.tags, 7, user_id=1, rng=random.Random(3))
        self.assertTrue(result['success'])
        self.assertEqual(self.driver.value_get(self.tags, 7), result['value'])
        self.assertTrue(all(0 <= int(item) < 500 for item in result['value']))

    def test_random_value_set_with_sets(self):
        result = self.driver.random_value_set(self.tags, 8, set_count=2, rng=random.Random(3))
        self.assertEqual(len(result['value']), 2)
        self.assertEqual(self.driver.value_get(self.tags, 8, is_set=True), result['value'])

    def test_object_match(self):
        attributes = {'DynamicField_ProjectCode': 'ABC-1'}
        self.assertTrue(self.driver.object_match(self.field, 'ABC-1', attributes))
        self.assertFalse(self.driver.object_match(self.field, 'ABC-2', attributes))
        self.assertFalse(self.driver.object_match(self.field, 'ABC-1', {}))

    def test_historical_values_and_lookup(self):
        self.driver.value_set(self.field, 1, 'ABC-1')
        self.driver.value_set(self.field, 2, 'ABC-2')
        self.assertEqual(
            self.driver.historical_values_get(self.field),
            {'ABC-1': 'ABC-1', 'ABC-2': 'ABC-2'}
        )
        self.assertEqual(self.driver.value_lookup(self.field, 'ABC-1'), 'ABC-1')
        self.assertEqual(self.driver.value_lookup(self.field, None), '')

    def test_behaviors(self):
        self.assertTrue(self.driver.has_behavior('IsLikeOperatorCapable'))
        self.assertTrue(self.driver.has_behavior('IsSetCapable'))
        self.assertFalse(self.driver.has_behavior('IsACLReducible'))
        self.assertFalse(self.driver.has_behavior('IsSomethingElse'))


class TextAreaDriverTests(TestCase):
    """Tests for the TextArea driver"""

    def test_edit_field_render_has_size_hints(self):
        field = create_dynamic_field(name='Notes', field_type='TextArea', config={'rows': 3})
        data = TextAreaDriver().edit_field_render(field, value='line 1\nline 2')
        self.assertEqual(data['field']['rows'], 3)
        self.assertEqual(data['field']['cols'], 42)
        self.assertTrue(data['field']['field_class'].startswith('DynamicFieldTextArea'))


class CheckboxDriverTests(TestCase):
    """Tests for the Checkbox driver"""

    def setUp(self):
        self.driver = CheckboxDriver(search_builder=SearchPredicateBuilder(vendor='mysql'))
        self.field = create_dynamic_field(name='Agree', field_type='Checkbox')

    def test_value_set_and_get(self):
        self.assertTrue(self.driver.value_set(self.field, 1, True))
        self.assertEqual(self.driver.value_get(self.field, 1), 1)
        self.assertTrue(self.driver.value_set(self.field, 1, '0'))
        self.assertEqual(self.driver.value_get(self.field, 1), 0)

    def test_value_validate(self):
        self.assertTrue(self.driver.value_validate(self.field, 1))
        self.assertTrue(self.driver.value_validate(self.field, None))
        with self.assertLogs('core.dynamic_field.drivers', level='ERROR'):
            self.assertFalse(self.driver.value_validate(self.field, 2))
        with self.assertLogs('core.dynamic_field.drivers', level='ERROR'):
            self.assertFalse(self.driver.value_validate(self.field, 'maybe'))

    def test_edit_field_value_get(self):
        self.assertEqual(
            self.driver.edit_field_value_get(self.field, params=query_dict({'DynamicField_Agree': '1'})),
            1
        )
        self.assertEqual(
            self.driver.edit_field_value_get(self.field, params=query_dict({'DynamicField_AgreeUsed': '1'})),
            0
        )
        self.assertIsNone(self.driver.edit_field_value_get(self.field, params=query_dict({})))

    def test_edit_field_render(self):
        data = self.driver.edit_field_render(self.field, value=1)
        self.assertTrue(data['field']['checked'])
        self.assertEqual(data['field']['used_name'], 'DynamicField_AgreeUsed')

    def test_display(self):
        self.assertEqual(self.driver.display_value_render(self.field, 1)['value'], 'Checked')
        self.assertEqual(self.driver.display_value_render(self.field, 0)['value'], 'Unchecked')
        self.assertEqual(self.driver.value_lookup(self.field, 1), 'Checked')

    def test_search(self):
        predicate = self.driver.search_predicate_get(self.field, 'dfv', 'Equals', '-1')
        self.assertEqual(predicate.sql, 'dfv.value_int = %s')
        self.assertEqual(predicate.params, (0,))

        with self.assertLogs('core.dynamic_field.drivers', level='ERROR'):
            self.assertIsNone(self.driver.search_predicate_get(self.field, 'dfv', 'Like', '1'))

        self.assertEqual(
            self.driver.search_field_parameter_build(
                self.field, params=query_dict({'Search_DynamicField_Agree': '-1'})
            ),
            {'parameter': {'Equals': 0}, 'display': 'Unchecked'}
        )

    def test_behaviors(self):
        self.assertFalse(self.driver.has_behavior('IsLikeOperatorCapable'))
        self.assertTrue(self.driver.has_behavior('IsFiltrable'))


class DateDriverTests(TestCase):
    """Tests for the Date and DateTime drivers"""

    def setUp(self):
        self.date_driver = DateDriver()
        self.datetime_driver = DateTimeDriver()
        self.due = create_dynamic_field(name='Due', field_type='Date')
        self.seen = create_dynamic_field(name='Seen', field_type='DateTime')

    def test_date_value(self):
        self.assertTrue(self.date_driver.value_set(self.due, 1, '2024-05-01'))
        self.assertEqual(self.date_driver.value_get(self.due, 1), date(2024, 5, 1))

        self.assertTrue(self.date_driver.value_set(self.due, 2, date(2024, 6, 2)))
        self.assertEqual(self.date_driver.value_get(self.due, 2), date(2024, 6, 2))

    def test_datetime_value(self):
        self.assertTrue(self.datetime_driver.value_set(self.seen, 1, '2024-05-01T10:30:00Z'))
        self.assertEqual(
            self.datetime_driver.value_get(self.seen, 1),
            datetime(2024, 5, 1, 10, 30, tzinfo=dt_timezone.utc)
        )

    def test_invalid_date(self):
        with self.assertLogs('core.dynamic_field.drivers.base_text', level='ERROR'):
            self.assertFalse(self.date_driver.value_validate(self.due, 'not a date'))
        with self.assertLogs('core.dynamic_field.drivers.base_text', level='ERROR'):
            self.assertFalse(self.date_driver.value_set(self.due, 1, 12))

    def test_date_restriction(self):
        field = create_dynamic_field(
            name='Born', field_type='Date', config={'date_restriction': 'DisableFutureDates'}
        )
        future = (timezone.now() + timedelta(days=2)).date()
        past = (timezone.now() - timedelta(days=2)).date()

        self.assertTrue(self.date_driver.value_validate(field, past))
        with self.assertLogs('core.dynamic_field.drivers.date', level='ERROR'):
            self.assertFalse(self.date_driver.value_validate(field, future))

        result = self.date_driver.edit_field_value_validate(
            field, params=query_dict({'DynamicField_Born': future.isoformat()}),
        )
        self.assertTrue(result['server_error'])
        self.assertEqual(result['error_message'], 'Date invalid, it can not be in the future!')

    def test_display(self):
        self.assertEqual(
            self.date_driver.display_value_render(self.due, date(2024, 5, 1))['value'],
            '2024-05-01'
        )
        moment = datetime(2024, 5, 1, 10, 30, tzinfo=dt_timezone.utc)
        self.assertEqual(
            self.datetime_driver.readable_value_render(self.seen, moment)['value'],
            '2024-05-01 10:30:00'
        )
        data = self.date_driver.edit_field_render(self.due, value=date(2024, 5, 1))
        self.assertEqual(data['field']['value_escaped'], '2024-05-01')

    def test_search_range(self):
        params = query_dict({
            'Search_DynamicField_Due_Start': '2024-01-01',
            'Search_DynamicField_Due_Stop': '2024-01-31',
        })
        result = self.date_driver.search_field_parameter_build(self.due, params=params)
        self.assertEqual(result['parameter'], {
            'GreaterThanEquals': datetime(2024, 1, 1, tzinfo=dt_timezone.utc),
            'SmallerThanEquals': datetime(2024, 1, 31, tzinfo=dt_timezone.utc),
        })
        self.assertEqual(result['display'], '2024-01-01 - 2024-01-31')

    def test_search_time_point(self):
        now = datetime(2024, 3, 10, 12, 0, tzinfo=dt_timezone.utc)
        params = query_dict({
            'Search_DynamicField_Seen_TimePointStart': 'Last',
            'Search_DynamicField_Seen_TimePointValue': '2',
            'Search_DynamicField_Seen_TimePointFormat': 'month',
        })
        result = self.datetime_driver.search_field_parameter_build(self.seen, params=params, now=now)
        self.assertEqual(result['parameter'], {
            'GreaterThanEquals': now - relativedelta(months=2),
            'SmallerThanEquals': now,
        })

    def test_search_without_values(self):
        result = self.date_driver.search_field_parameter_build(self.due, params=query_dict({}))
        self.assertEqual(result, {'parameter': {}, 'display': ''})

    def test_like_is_not_supported(self):
        with self.assertLogs('core.dynamic_field.drivers.date', level='ERROR'):
            self.assertIsNone(self.date_driver.search_predicate_get(self.due, 'dfv', 'Like', '2024*'))

    def test_random_value_set(self):
        result = self.date_driver.random_value_set(self.due, 3, rng=random.Random(1))
        self.assertTrue(result['success'])
        self.assertEqual(self.date_driver.value_get(self.due, 3), result['value'])


class SelectDriverTests(TestCase):
    """Tests for the Dropdown and Multiselect drivers"""

    def setUp(self):
        self.builder = SearchPredicateBuilder(vendor='mysql')
        self.dropdown = DropdownDriver(search_builder=self.builder)
        self.multiselect = MultiselectDriver(search_builder=self.builder)
        config = {
            'possible_values': {'a': 'Alpha', 'b': 'Beta'},
            'possible_none': True,
        }
        self.stage = create_dynamic_field(name='Stage', field_type='Dropdown', config=config)
        self.labels = create_dynamic_field(name='Labels', field_type='Multiselect', config=config)

    def test_value_validate(self):
        self.assertTrue(self.dropdown.value_validate(self.stage, 'a'))
        self.assertTrue(self.dropdown.value_validate(self.stage, ''))
        with self.assertLogs('core.dynamic_field.drivers.select', level='ERROR'):
            self.assertFalse(self.dropdown.value_validate(self.stage, 'c'))

    def test_display_uses_labels(self):
        self.assertEqual(self.dropdown.display_value_render(self.stage, 'a')['value'], 'Alpha')
        self.assertEqual(
            self.multiselect.readable_value_render(self.labels, ['a', 'b'])['value'],
            'Alpha, Beta'
        )
        self.assertEqual(self.dropdown.value_lookup(self.stage, 'b'), 'Beta')
        self.assertEqual(self.dropdown.value_lookup(self.stage, 'zzz'), 'zzz')

    def test_edit_field_render_options(self):
        data = self.dropdown.edit_field_render(self.stage, value='b')
        options = data['field']['options']
        self.assertEqual([option['key'] for option in options], ['', 'a', 'b'])
        self.assertEqual([option['selected'] for option in options], [False, False, True])
        self.assertFalse(data['field']['multiple'])

        data = self.multiselect.edit_field_render(
            self.labels, params=query_dict({'DynamicField_Labels': ['a', 'b']})
        )
        self.assertTrue(data['field']['multiple'])
        self.assertEqual(
            [option['key'] for option in data['field']['options'] if option['selected']],
            ['a', 'b']
        )

    def test_multiselect_values_are_lists(self):
        self.assertTrue(self.multiselect.value_set(self.labels, 1, ['a', 'b']))
        self.assertEqual(self.multiselect.value_get(self.labels, 1), ['a', 'b'])
        self.assertEqual(
            self.multiselect.edit_field_value_get(
                self.labels, params=query_dict({'DynamicField_Labels': ['b']})
            ),
            ['b']
        )

    def test_search_with_list_of_keys(self):
        predicate = self.dropdown.search_predicate_get(self.stage, 'dfv', 'Equals', ['a', 'b'])
        self.assertEqual(predicate.sql, '(dfv.value_text = %s) OR (dfv.value_text = %s)')
        self.assertEqual(predicate.params, ('a', 'b'))

        result = self.dropdown.search_field_parameter_build(
            self.stage, params=query_dict({'Search_DynamicField_Stage': ['a', 'b']})
        )
        self.assertEqual(result, {'parameter': {'Equals': ['a', 'b']}, 'display': 'Alpha, Beta'})

    def test_template_value_types(self):
        self.assertEqual(
            self.dropdown.template_value_type_get(self.stage),
            {'DynamicField_Stage': 'SCALAR', 'Search_DynamicField_Stage': 'ARRAY'}
        )
        self.assertEqual(
            self.multiselect.template_value_type_get(self.labels, field_type='Edit'),
            {'DynamicField_Labels': 'ARRAY'}
        )

    def test_object_match_with_list_attribute(self):
        attributes = {'DynamicField_Labels': ['a', 'b']}
        self.assertTrue(self.multiselect.object_match(self.labels, 'a', attributes))
        self.assertFalse(self.multiselect.object_match(self.labels, 'c', attributes))

    def test_stats_and_behaviors(self):
        stats = self.dropdown.stats_field_parameter_build(self.stage)
        self.assertEqual(stats['block'], 'MultiSelectField')
        self.assertEqual(stats['values'], {'a': 'Alpha', 'b': 'Beta'})
        self.assertTrue(self.dropdown.has_behavior('IsACLReducible'))
        self.assertFalse(self.dropdown.has_behavior('IsLikeOperatorCapable'))

    def test_random_value_is_possible_value(self):
        result = self.dropdown.random_value_set(self.stage, 1, rng=random.Random(5))
        self.assertIn(result['value'], ('a', 'b'))
