"""
Render Adapter

Pure functions turning dynamic field values and configuration into view
models (plain dicts) for edit forms, display and search forms. Markup is
left to the templating layer; the only HTML concern handled here is escaping
of user supplied text.
"""

from django.utils.html import escape

ELLIPSIS = '...'


def escape_text(text):
    """HTML-escape a value for output; None renders as an empty string."""
    if text is None:
        return ''
    return escape(str(text))


def edit_label_render(field, field_name, mandatory=False, additional_text=None):
    """Label view model shared by edit and search fields."""
    label = field.label
    if additional_text:
        label = f'{label} ({additional_text})'

    return {
        'for': field_name,
        'label_escaped': escape_text(label),
        'mandatory': bool(mandatory),
        'css_class': 'Mandatory' if mandatory else '',
    }


def field_css_class(base_class, css_class=None, mandatory=False, server_error=False):
    """Compose the CSS classes of an edit input."""
    classes = [base_class]
    if css_class:
        classes.append(css_class)
    if mandatory:
        classes.append('Validate_Required')
    if server_error:
        classes.append('ServerError')
    return ' '.join(classes)


def edit_field_entry(template, field_id, field_name, field_class, label, value,
                     multi_value=False, read_only=False, **extra):
    """View model of one edit input."""
    entry = {
        'template': template,
        'field_id': field_id,
        'field_name': field_name,
        'field_class': field_class,
        'field_label_escaped': escape_text(label),
        'value_escaped': escape_text(value),
        'multi_value': bool(multi_value),
        'read_only': bool(read_only),
    }
    entry.update(extra)
    return entry


def search_field_entry(field_id, field_name, field_class, label, value, **extra):
    """View model of one search input."""
    entry = {
        'field_id': field_id,
        'field_name': field_name,
        'field_class': field_class,
        'title_escaped': escape_text(label),
        'value_escaped': escape_text(value),
    }
    entry.update(extra)
    return entry


def _budget(max_chars):
    if max_chars in (None, ''):
        return None
    return max(int(max_chars), 0)


def display_values(values, value_max_chars=None, title_max_chars=None, html_output=True):
    """
    Join values for display, truncating against a shared character budget.

    The budget is a pool across all items: each item may use what the
    previous items left over, so the Nth item gets the budget minus the
    length of items 0..N-1. An ellipsis is appended once when any item was
    cut.

    Returns:
        dict: {'value': str, 'title': str}
    """
    value_budget = _budget(value_max_chars)
    title_budget = _budget(title_max_chars)

    readable_values = []
    readable_titles = []
    show_value_ellipsis = False
    show_title_ellipsis = False

    for item in values:
        readable_value = '' if item is None else str(item)
        readable_title = readable_value
        readable_length = len(readable_value)

        if value_budget is not None:
            if readable_length > value_budget:
                show_value_ellipsis = True
            readable_value = readable_value[:value_budget]
            value_budget = max(value_budget - readable_length, 0)

        if title_budget is not None:
            if readable_length > title_budget:
                show_title_ellipsis = True
            readable_title = readable_title[:title_budget]
            title_budget = max(title_budget - readable_length, 0)

        if html_output:
            readable_value = escape_text(readable_value)
            readable_title = escape_text(readable_title)

        readable_values.append(readable_value)
        if readable_title:
            readable_titles.append(readable_title)

    separator = '<br>' if html_output else '\n'

    value = separator.join(readable_values)
    title = separator.join(readable_titles)
    if show_value_ellipsis:
        value += ELLIPSIS
    if show_title_ellipsis:
        title += ELLIPSIS

    return {'value': value, 'title': title}


def readable_values(values, value_max_chars=None, title_max_chars=None, separator=', '):
    """Plain text rendering: join first, then truncate the joined string."""
    value = separator.join('' if item is None else str(item) for item in values)
    title = value

    if value_max_chars and len(value) > int(value_max_chars):
        value = value[:int(value_max_chars)] + ELLIPSIS
    if title_max_chars and len(title) > int(title_max_chars):
        title = title[:int(title_max_chars)] + ELLIPSIS

    return {'value': value, 'title': title}
