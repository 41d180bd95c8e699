"""
Template filter for untrusted HTML.

Usage:
    {% load html_safety %}
    {{ article.body|safety }}
"""
from django import template
from django.utils.safestring import mark_safe

from core.html_safety.safety import safety as safety_filter

register = template.Library()


@register.filter(name='safety')
def safety(value):
    """Filter the value with the default policy and mark it safe for output."""
    if value is None or value == '':
        return ''
    return mark_safe(safety_filter(str(value)).string)
