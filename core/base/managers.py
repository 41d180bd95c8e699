"""
Core Base Managers Module

Provides custom managers and querysets for base models.

**Architecture:**
- BaseQuerySet: Generic filtering (name/label/search)
- SoftDeleteQuerySet: For models with status field

Exports:
    QuerySets:
        - BaseQuerySet: filter_by_search_params
        - SoftDeleteQuerySet: active(), inactive()

    Managers:
        - SoftDeleteManager: For SoftDeleteMixin models

Usage:
    from core.base import SoftDeleteMixin
    from core.base.managers import SoftDeleteManager

    class DynamicField(SoftDeleteMixin, models.Model):
        objects = SoftDeleteManager()

    DynamicField.objects.active().filter_by_search_params({'search': 'code'})
"""

from django.db import models
from django.db.models import Q
from core.base.models import StatusChoices


class BaseQuerySet(models.QuerySet):
    """
    Base QuerySet with common filtering methods.

    Methods:
        - filter_by_search_params: Filter by name/label/search
    """

    def filter_by_search_params(self, query_params):
        """
        Apply standard name/label/search filters from query parameters.

        Args:
            query_params: QueryDict or dict with optional keys:
                - name: Exact match (case-insensitive)
                - label: Contains match (case-insensitive)
                - search: Contains match across name and label

        Returns:
            Filtered QuerySet
        """
        queryset = self

        name = query_params.get('name')
        if name:
            queryset = queryset.filter(name__iexact=name)

        label = query_params.get('label')
        if label:
            queryset = queryset.filter(label__icontains=label)

        search = query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(label__icontains=search)
            )

        return queryset


class SoftDeleteQuerySet(BaseQuerySet):
    """
    QuerySet for SoftDeleteMixin models (models with status field).

    Methods:
        - active(): Return status=ACTIVE records
        - inactive(): Return status=INACTIVE records
    """

    def active(self):
        """Return only active records (status=ACTIVE)."""
        return self.filter(status=StatusChoices.ACTIVE)

    def inactive(self):
        """Return only inactive records (status=INACTIVE)."""
        return self.filter(status=StatusChoices.INACTIVE)


class SoftDeleteManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    """
    Manager for SoftDeleteMixin models.

    Usage:
        class DynamicField(SoftDeleteMixin, models.Model):
            objects = SoftDeleteManager()

        DynamicField.objects.active()
        DynamicField.objects.inactive()
    """
    pass
