from django.contrib import admin
from .models import DynamicField, DynamicFieldValue


@admin.register(DynamicField)
class DynamicFieldAdmin(admin.ModelAdmin):
    """Admin for dynamic field configurations."""
    list_display = [
        'name', 'label', 'field_type', 'object_type',
        'field_order', 'status', 'updated_at'
    ]
    list_filter = ['field_type', 'object_type', 'status']
    search_fields = ['name', 'label']
    readonly_fields = ['created_at', 'updated_at', 'created_by', 'updated_by']
    ordering = ['field_order', 'name']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'label', 'field_type', 'object_type', 'field_order')
        }),
        ('Configuration', {
            'fields': ('config',),
            'description': 'Driver specific settings (multi_value, regex_list, possible_values, ...)'
        }),
        ('Status', {
            'fields': ('status',)
        }),
        ('Audit', {
            'fields': ('created_at', 'updated_at', 'created_by', 'updated_by'),
            'classes': ('collapse',)
        }),
    )

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        obj.updated_by = request.user
        super().save_model(request, obj, form, change)


@admin.register(DynamicFieldValue)
class DynamicFieldValueAdmin(admin.ModelAdmin):
    """Read-only view of stored value rows."""
    list_display = [
        'field', 'object_id', 'index_set', 'index_value',
        'value_text', 'value_date', 'value_int'
    ]
    list_filter = ['field']
    search_fields = ['value_text', 'field__name']
    ordering = ['field', 'object_id', 'index_set', 'index_value']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
