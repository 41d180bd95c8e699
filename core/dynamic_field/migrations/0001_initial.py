from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DynamicField',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Creation time')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Time of the last change')),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], default='active', help_text='Inactive records are hidden from forms but keep their values', max_length=10)),
                ('name', models.CharField(help_text="Internal name, used in request parameters (e.g. 'ProjectCode')", max_length=200, unique=True)),
                ('label', models.CharField(help_text="Display label (e.g. 'Project Code')", max_length=200)),
                ('field_order', models.IntegerField(default=0, help_text='Display order')),
                ('field_type', models.CharField(help_text="Driver name (e.g. 'Text', 'Date', 'Multiselect')", max_length=200)),
                ('object_type', models.CharField(help_text="Kind of object the field is attached to (e.g. 'Ticket')", max_length=100)),
                ('config', models.JSONField(blank=True, default=dict, help_text='Driver specific configuration')),
                ('created_by', models.ForeignKey(blank=True, help_text='User that created the record', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dynamic_field_dynamicfield_created', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, help_text='User that changed the record last', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='dynamic_field_dynamicfield_updated', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'dynamic_field',
                'ordering': ['field_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='DynamicFieldValue',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('object_id', models.BigIntegerField(help_text='ID of the object the value belongs to')),
                ('value_text', models.TextField(blank=True, null=True)),
                ('value_date', models.DateTimeField(blank=True, null=True)),
                ('value_int', models.BigIntegerField(blank=True, null=True)),
                ('index_value', models.SmallIntegerField(blank=True, help_text='Position within a multi-value field', null=True)),
                ('index_set', models.SmallIntegerField(blank=True, help_text='Group index for set-capable fields', null=True)),
                ('field', models.ForeignKey(db_column='field_id', on_delete=django.db.models.deletion.CASCADE, related_name='values', to='dynamic_field.dynamicfield')),
            ],
            options={
                'db_table': 'dynamic_field_value',
                'ordering': ['index_set', 'index_value', 'id'],
                'indexes': [models.Index(fields=['field', 'object_id'], name='dfv_field_object_idx')],
            },
        ),
    ]
