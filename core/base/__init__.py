"""
Core Base Module

Provides shared base classes, mixins, and utilities for the core apps.

**Architecture:**
Each feature is a separate mixin that can be composed together.

Exports:
    Basic Utilities:
        - StatusChoices: Standard ACTIVE/INACTIVE status choices

    Individual Feature Mixins:
        - AuditMixin: Adds created_at, updated_at, created_by, updated_by
        - SoftDeleteMixin: Adds status + soft delete behavior

    Managers & QuerySets:
        - BaseQuerySet: Base queryset with filter_by_search_params
        - SoftDeleteQuerySet: QuerySet with active()/inactive() filters
        - SoftDeleteManager: Manager for SoftDeleteMixin models

Usage Examples:

    from core.base import AuditMixin, SoftDeleteMixin
    from core.base.managers import SoftDeleteManager

    class DynamicField(AuditMixin, SoftDeleteMixin, models.Model):
        name = models.CharField(max_length=200)
        objects = SoftDeleteManager()
"""

# Import from local modules
from core.base.models import (
    StatusChoices,
    AuditMixin,
    SoftDeleteMixin,
)

from core.base.managers import (
    BaseQuerySet,
    SoftDeleteQuerySet,
    SoftDeleteManager,
)

__all__ = [
    # Basic Utilities
    'StatusChoices',

    # Individual Feature Mixins
    'AuditMixin',
    'SoftDeleteMixin',

    # Managers & QuerySets
    'BaseQuerySet',
    'SoftDeleteQuerySet',
    'SoftDeleteManager',
]
