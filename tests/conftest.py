# tests/conftest.py
"""Shared test fixtures and helpers.

Scripted Collaborator:
- ScriptedCollaborator implements FormCollaborator from plain dicts and
  records every call, so engine tests can assert on the exact sequence of
  writes without a form backend.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings
from structlog.stdlib import ProcessorFormatter

from formfuzz.contracts import (
    ApplyAck,
    ApplyRejected,
    CandidateSearchFailed,
    DomainExpr,
    FieldDescriptor,
    OpenedForm,
    RecordId,
    SaveFailed,
    ViewNode,
    descriptors_from_metadata,
)

EXAMPLES_DIR = Path(__file__).parent.parent / "examples" / "forms"


class ScriptedCollaborator:
    """FormCollaborator whose answers are scripted up front.

    Args:
        arch: View tree (XML string or ViewNode)
        fields: ``fields_get``-style metadata or ready descriptors
        candidates: Candidate ids per relation model
        affected: Per written field, the other fields its write recomputes
        modifiers: Live modifiers per field (None entries mean "unknown")
        reject: Fields whose writes are refused
        search_errors: Per relation model, the reason its searches fail
        save_error: When set, save_record raises SaveFailed with it
        close_error: When set, close_form_dialog raises RuntimeError with it
    """

    def __init__(
        self,
        arch: str | ViewNode,
        fields: Mapping[str, Any],
        *,
        candidates: Mapping[str, Sequence[RecordId]] | None = None,
        affected: Mapping[str, set[str]] | None = None,
        modifiers: Mapping[str, Mapping[str, Any]] | None = None,
        reject: set[str] | None = None,
        search_errors: Mapping[str, str] | None = None,
        save_error: str | None = None,
        close_error: str | None = None,
    ) -> None:
        self.view = arch if isinstance(arch, ViewNode) else ViewNode.from_xml(arch)
        if all(isinstance(value, FieldDescriptor) for value in fields.values()):
            self.fields: dict[str, FieldDescriptor] = dict(fields)
        else:
            self.fields = descriptors_from_metadata(fields)
        self.candidates = dict(candidates or {})
        self.affected = dict(affected or {})
        self.modifiers = dict(modifiers or {})
        self.reject = set(reject or ())
        self.search_errors = dict(search_errors or {})
        self.save_error = save_error
        self.close_error = close_error

        self.calls: list[tuple[str, Any]] = []
        self.writes: list[tuple[str, Any]] = []
        self.searches: list[tuple[str, DomainExpr, dict[str, Any]]] = []
        self.closed = False

    @property
    def written_fields(self) -> list[str]:
        return [name for name, _ in self.writes]

    async def open_form_record(self, model: str, view_ref: str | None = None) -> OpenedForm:
        self.calls.append(("open_form_record", model))
        return OpenedForm(record={"model": model}, view=self.view, fields=self.fields)

    async def search_candidate_ids(
        self,
        relation_model: str,
        domain: DomainExpr,
        context_bindings: Mapping[str, Any],
    ) -> Sequence[RecordId]:
        self.calls.append(("search_candidate_ids", relation_model))
        self.searches.append((relation_model, domain, dict(context_bindings)))
        if relation_model in self.search_errors:
            raise CandidateSearchFailed(relation_model, self.search_errors[relation_model])
        return list(self.candidates.get(relation_model, ()))

    def field_modifiers(self, record: Any, field_name: str) -> Mapping[str, Any] | None:
        return self.modifiers.get(field_name)

    async def apply_field_change(self, record: Any, field_name: str, value: Any) -> ApplyAck:
        self.calls.append(("apply_field_change", field_name))
        if field_name in self.reject:
            raise ApplyRejected(field_name, "scripted rejection")
        self.writes.append((field_name, value))
        return ApplyAck(affected_field_names=frozenset({field_name, *self.affected.get(field_name, ())}))

    async def save_record(self, record: Any) -> RecordId:
        self.calls.append(("save_record", None))
        if self.save_error is not None:
            raise SaveFailed(self.save_error)
        return 42

    def close_form_dialog(self, record: Any) -> None:
        self.calls.append(("close_form_dialog", None))
        if self.close_error is not None:
            raise RuntimeError(self.close_error)
        self.closed = True


@pytest.fixture
def scripted() -> Callable[..., ScriptedCollaborator]:
    """Factory for ScriptedCollaborator instances."""
    return ScriptedCollaborator


@pytest.fixture
def partner_form_path() -> Path:
    """Path of the bundled contact form definition."""
    return EXAMPLES_DIR / "res_partner.yaml"


@pytest.fixture(autouse=True)
def _isolate_logging() -> Iterator[None]:
    """Undo logging configuration done by a test (the CLI configures it)."""
    root = logging.getLogger()
    level = root.level
    structlog.contextvars.clear_contextvars()
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
