from django.db import models
from django.conf import settings


class StatusChoices(models.TextChoices):
    """
    Lifecycle of configuration records.

    Dynamic field configurations are never hard deleted while values may
    still reference them; they are switched to INACTIVE instead.
    """
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'


class AuditMixin(models.Model):
    """
    Who changed a configuration record, and when.

    created_by / updated_by are filled by the API serializers from
    request.user; records created by management commands leave them empty.
    """
    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="Creation time"
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Time of the last change"
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(app_label)s_%(class)s_created',
        help_text="User that created the record"
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(app_label)s_%(class)s_updated',
        help_text="User that changed the record last"
    )

    class Meta:
        abstract = True


class SoftDeleteMixin(models.Model):
    """
    Status flag replacing deletion.

    Stored dynamic field values keep pointing at their configuration after
    the field is deactivated, so they can still be read and reported.

    Methods:
        - deactivate(): status -> INACTIVE
        - reactivate(): status -> ACTIVE
        - hard_delete(): remove the row (and, through the cascade, its values)
    """
    status = models.CharField(
        max_length=10,
        choices=StatusChoices.choices,
        default=StatusChoices.ACTIVE,
        help_text="Inactive records are hidden from forms but keep their values"
    )

    class Meta:
        abstract = True

    @property
    def is_active(self):
        return self.status == StatusChoices.ACTIVE

    def deactivate(self):
        self.status = StatusChoices.INACTIVE
        self.save(update_fields=['status', 'updated_at'])

    def reactivate(self):
        """
        Example:
            field = DynamicField.objects.get(name='ProjectCode')
            field.reactivate()
        """
        self.status = StatusChoices.ACTIVE
        self.save(update_fields=['status', 'updated_at'])

    def hard_delete(self):
        super().delete()
