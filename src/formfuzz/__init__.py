"""
formfuzz: Automated fuzzing of record-editing forms.

Fills every editable, visible field of a form with schema-valid random
values, one field at a time, tracks the fields each write changes through
the form's own reactivity, and tries to save the resulting record.
"""

__version__ = "0.1.0"
