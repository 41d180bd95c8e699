"""Text and TextArea dynamic field drivers."""

from core.dynamic_field.drivers.base_text import BaseTextDriver
from core.dynamic_field.render import edit_field_entry


class TextDriver(BaseTextDriver):
    """Single line text input."""

    field_type = 'Text'


class TextAreaDriver(BaseTextDriver):
    """Multi line text input, rendered as a textarea."""

    field_type = 'TextArea'
    field_css_class = 'DynamicFieldTextArea'
    edit_template = 'dynamic_field/agent/textarea'
    customer_edit_template = 'dynamic_field/customer/textarea'

    default_rows = 7
    default_cols = 42

    def _edit_field_entry(self, field, template_name, field_id, field_name,
                          field_class, value, read_only):
        config = field.config or {}
        return edit_field_entry(
            template=template_name,
            field_id=field_id,
            field_name=field_name,
            field_class=field_class,
            label=field.label,
            value=value,
            multi_value=field.multi_value,
            read_only=read_only,
            rows=config.get('rows') or self.default_rows,
            cols=config.get('cols') or self.default_cols,
        )
