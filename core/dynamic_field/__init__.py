"""
Dynamic Fields

Configurable, typed attributes for any kind of object, stored in one narrow
value table and handled by pluggable field type drivers.
"""
