"""Form collaborators the engine can drive without a live server."""

from formfuzz.forms.domain import DomainError, filter_records, matches, parse_domain
from formfuzz.forms.static_form import FormDefinition, StaticFormBackend, StaticRecord

__all__ = [
    "DomainError",
    "FormDefinition",
    "StaticFormBackend",
    "StaticRecord",
    "filter_records",
    "matches",
    "parse_domain",
]
