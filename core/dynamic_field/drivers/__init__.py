"""Built-in dynamic field drivers."""

from .base import BEHAVIORS, DynamicFieldDriver, build_driver_class
from .base_text import BaseTextDriver
from .checkbox import CheckboxDriver
from .date import BaseDateTimeDriver, DateDriver, DateTimeDriver
from .select import BaseSelectDriver, DropdownDriver, MultiselectDriver
from .text import TextAreaDriver, TextDriver

__all__ = [
    'BEHAVIORS',
    'DynamicFieldDriver',
    'build_driver_class',
    'BaseTextDriver',
    'TextDriver',
    'TextAreaDriver',
    'CheckboxDriver',
    'BaseDateTimeDriver',
    'DateDriver',
    'DateTimeDriver',
    'BaseSelectDriver',
    'DropdownDriver',
    'MultiselectDriver',
]
