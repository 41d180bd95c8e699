"""
HTML Safety

Filter for untrusted HTML (rendered field values, mail bodies, rich text
input) removing script vectors.

Exports:
    - safety: Filter a fragment, returns SafetyResult(string, replaced)
    - SafetyPolicy: Filter flags
    - HTMLSafetyFilter: Filter bound to one policy
"""

from .safety import HTMLSafetyFilter, SafetyPolicy, SafetyResult, safety

__all__ = [
    'HTMLSafetyFilter',
    'SafetyPolicy',
    'SafetyResult',
    'safety',
]
