"""
Seed Dynamic Field Values

Stores random values of one dynamic field for the objects 1..N, for demo and
load test data.

Usage:
    python manage.py seed_dynamic_field_values ProjectCode --objects 100
    python manage.py seed_dynamic_field_values Tags --objects 10 --set-count 3 --seed 42

Existing values of those objects are replaced.
"""

import random

from django.core.management.base import BaseCommand, CommandError

from core.dynamic_field.backend import DynamicFieldBackend
from core.dynamic_field.models import DynamicField


class Command(BaseCommand):
    help = 'Store random values of a dynamic field for the objects 1..N'

    def add_arguments(self, parser):
        parser.add_argument('field_name', help='Name of the dynamic field')
        parser.add_argument(
            '--objects',
            type=int,
            default=10,
            help='Number of objects (IDs 1..N) to seed'
        )
        parser.add_argument(
            '--set-count',
            type=int,
            default=0,
            help='Store sets of this many groups (set capable fields only)'
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=None,
            help='Random seed for reproducible data'
        )

    def handle(self, *args, **options):
        field_name = options['field_name']
        try:
            field = DynamicField.objects.active().get(name=field_name)
        except DynamicField.DoesNotExist:
            raise CommandError(f"No active dynamic field named '{field_name}'")

        backend = DynamicFieldBackend()
        set_count = options['set_count']
        if set_count and not backend.has_behavior(field, 'IsSetCapable'):
            raise CommandError(f"Dynamic field '{field_name}' ({field.field_type}) is not set capable")

        rng = random.Random(options['seed'])

        self.stdout.write(f'Seeding {field.name} ({field.field_type}) for {options["objects"]} object(s)...')

        failed = 0
        for object_id in range(1, options['objects'] + 1):
            result = backend.random_value_set(field, object_id, set_count=set_count, rng=rng)
            if result['success']:
                self.stdout.write(f"  ✓ Object {object_id}: {result['value']!r}")
            else:
                failed += 1
                self.stdout.write(self.style.ERROR(f"  ✗ Object {object_id}: could not store value"))

        if failed:
            raise CommandError(f'{failed} value(s) could not be stored')

        self.stdout.write(self.style.SUCCESS(f'\n✓ Seeded {options["objects"]} object(s)'))
