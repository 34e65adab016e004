# src/formfuzz/engine/session.py
"""One end-to-end fuzz run against a form collaborator.

State machine:
    OPEN_FORM -> WALK_FIELDS -> (GENERATE -> APPLY -> RECONCILE)* -> SAVE -> REPORT

Every round trip to the collaborator is awaited strictly in sequence and in
field declaration order. A write's side effects can change the domain or
availability of fields not visited yet, and one2many de-duplication needs
the previous rows' values before generating the next one, so nothing here
runs concurrently.

Usage:
    session = FuzzSession(backend, load_config(preset="gentle"))
    result = await session.run("res.partner")
    if result.succeeded:
        print(result.record_id)
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

import structlog

from formfuzz.contracts import (
    ApplyRejected,
    CandidateSearchFailed,
    DomainExpr,
    FieldDescriptor,
    FieldType,
    FormCollaborator,
    FuzzResult,
    GeneratedValue,
    NestedCreate,
    OpenedForm,
    RunOutcome,
    SaveFailed,
    SessionPhase,
    Unavailable,
    ViewNode,
    error_info,
    plain_value,
)
from formfuzz.core.config import FuzzSettings
from formfuzz.core.logging import get_logger
from formfuzz.engine.form_walker import field_leaves, nested_fields
from formfuzz.engine.modifiers import resolve_modifiers
from formfuzz.engine.reconciler import Reconciler
from formfuzz.engine.state import RunState
from formfuzz.engine.value_generator import NestedRowBuilder, ValueGenerator

logger = get_logger(__name__)


class FuzzSession:
    """Drives the form walker, value generator and reconciler for one form.

    A session may run several times; each run gets a fresh RunState and
    opens a fresh record.
    """

    def __init__(
        self,
        collaborator: FormCollaborator,
        settings: FuzzSettings | None = None,
        *,
        generator: ValueGenerator | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            collaborator: Form machinery to drive.
            settings: Generator bounds and row counts (defaults to FuzzSettings()).
            generator: Value generator override (tests inject a seeded one).
        """
        self._collaborator = collaborator
        self._settings = settings if settings is not None else FuzzSettings()
        self._generator = generator if generator is not None else ValueGenerator(self._settings)
        self._reconciler = Reconciler(collaborator)
        self._phase = SessionPhase.IDLE

    @property
    def phase(self) -> SessionPhase:
        """Current state machine phase (REPORT once a run has finished)."""
        return self._phase

    async def run(self, model: str, view_ref: str | None = None) -> FuzzResult:
        """Fuzz one new record of ``model`` and try to save it.

        Returns:
            SUCCESS with the saved record id, or FAILURE carrying the save
            error. Per-field problems never fail the run.
        """
        state = RunState()
        with structlog.contextvars.bound_contextvars(model=model, run_id=uuid.uuid4().hex[:12]):
            self._phase = SessionPhase.OPEN_FORM
            opened = await self._collaborator.open_form_record(model, view_ref)
            logger.info("form_opened", view_ref=view_ref, fields=len(opened.fields))

            self._phase = SessionPhase.WALK_FIELDS
            for leaf in field_leaves(opened.view):
                await self._visit(opened, leaf, state)

            logger.info(
                "fields_processed",
                processed=len(state.processed),
                required=len(state.required_processed),
                ignored=len(state.ignored_occurrences),
            )

            self._phase = SessionPhase.SAVE
            logger.info("saving")
            try:
                record_id = await self._collaborator.save_record(opened.record)
            except SaveFailed as exc:
                self._phase = SessionPhase.REPORT
                logger.error("fuzz_failed", error=str(exc))
                return self._report(model, state, RunOutcome.FAILURE, error=error_info(exc))

            self._close_dialog(opened.record)
            self._phase = SessionPhase.REPORT
            logger.info("fuzz_succeeded", record_id=record_id)
            return self._report(model, state, RunOutcome.SUCCESS, record_id=record_id)

    # === Per-field processing ===

    async def _visit(self, opened: OpenedForm, leaf: ViewNode, state: RunState) -> None:
        name = leaf.name
        if name is None:
            logger.warning("field_skipped", reason="field node without a name")
            return
        if state.is_ignored(name):
            logger.info("field_ignored_by_onchange", field=name)
            state.skip_ignored(name)
            return
        if name in state.processed:
            logger.debug("field_skipped", field=name, reason="already written")
            return

        descriptor = opened.fields.get(name)
        if descriptor is None:
            logger.warning("field_skipped", field=name, reason="no field metadata")
            return

        live = self._collaborator.field_modifiers(opened.record, name)
        modifiers = resolve_modifiers(live, leaf.attrs, descriptor)
        if not modifiers.editable:
            logger.debug("field_skipped", field=name, reason="invisible" if modifiers.invisible else "readonly")
            return

        descriptor = descriptor.with_occurrence(leaf.attrs, modifiers.required)
        logger.info("field_started", field=name, type=str(descriptor.type))
        if descriptor.type == FieldType.ONE2MANY:
            await self._fill_one2many(opened.record, descriptor, state)
        else:
            await self._fill_field(opened.record, descriptor, leaf.attrs, state)

    async def _fill_field(
        self,
        record: Any,
        descriptor: FieldDescriptor,
        attrs: Mapping[str, str],
        state: RunState,
    ) -> None:
        self._phase = SessionPhase.GENERATE
        try:
            descriptor = await self._with_candidates(
                descriptor,
                attrs.get("domain") or descriptor.domain,
                state.committed_bindings(),
            )
        except CandidateSearchFailed as exc:
            logger.info("field_skipped", field=descriptor.name, reason=exc.reason)
            return
        value = self._generator.generate(descriptor)
        if isinstance(value, Unavailable):
            logger.info("field_skipped", field=descriptor.name, reason=value.reason)
            return
        await self._apply(record, descriptor, value, state)

    async def _fill_one2many(self, record: Any, descriptor: FieldDescriptor, state: RunState) -> None:
        one2many = self._settings.one2many
        rows = self._generator.params.generate_int(one2many.min_rows, one2many.max_rows)
        logger.debug("one2many_rows_planned", field=descriptor.name, rows=rows)
        try:
            for index in range(rows):
                self._phase = SessionPhase.GENERATE
                row = await self._generate_row(descriptor, state)
                value = row.build()
                if isinstance(value, Unavailable):
                    logger.info(
                        "one2many_rows_exhausted",
                        field=descriptor.name,
                        rows_written=index,
                        reason=value.reason,
                    )
                    break
                self._remember_required(descriptor.name, row, value, state)
                if not await self._apply(record, descriptor, value, state):
                    break
        finally:
            state.forget_required(descriptor.name)

    async def _generate_row(self, descriptor: FieldDescriptor, state: RunState) -> NestedRowBuilder:
        """Generate one nested row, fetching each sub-field's candidates in turn."""
        row = self._generator.new_row(descriptor.name)
        parent_bindings = state.committed_bindings()
        for attrs, sub_descriptor in nested_fields(descriptor):
            try:
                sub_descriptor = await self._with_candidates(
                    sub_descriptor,
                    attrs.get("domain") or sub_descriptor.domain,
                    {"parent": parent_bindings, **row.bindings()},
                )
            except CandidateSearchFailed as exc:
                logger.info("sub_field_skipped", field=descriptor.name, sub_field=sub_descriptor.name, reason=exc.reason)
                row.skip(sub_descriptor, exc.reason)
                if row.dead:
                    break
                continue
            excluded = state.excluded_for(descriptor.name, sub_descriptor.name) if sub_descriptor.required else ()
            row.add(sub_descriptor, excluded)
            if row.dead:
                break
        return row

    @staticmethod
    def _remember_required(parent_name: str, row: NestedRowBuilder, value: NestedCreate, state: RunState) -> None:
        for sub_name in sorted(row.required_names):
            state.remember_required(parent_name, sub_name, value.data[sub_name])

    async def _with_candidates(
        self,
        descriptor: FieldDescriptor,
        domain: DomainExpr,
        bindings: Mapping[str, Any],
    ) -> FieldDescriptor:
        if descriptor.relation_model is None:
            return descriptor
        ids = await self._collaborator.search_candidate_ids(descriptor.relation_model, domain, bindings)
        return descriptor.with_candidates(ids)

    async def _apply(self, record: Any, descriptor: FieldDescriptor, value: GeneratedValue, state: RunState) -> bool:
        """Write one value and fold its side effects into the run state.

        Returns:
            False when the write was rejected.
        """
        name = descriptor.name
        self._phase = SessionPhase.APPLY
        logger.info("field_value_generated", field=name, value=plain_value(value))
        try:
            affected = await self._reconciler.apply(record, name, value)
        except ApplyRejected as exc:
            logger.info("field_skipped", field=name, reason=str(exc))
            return False

        self._phase = SessionPhase.RECONCILE
        state.record_processed(name, value, required=descriptor.required)
        newly_ignored = state.absorb(name, affected)
        logger.info("field_written", field=name)
        if newly_ignored:
            logger.info("onchange_fields_detected", field=name, affected=sorted(newly_ignored))
        return True

    def _close_dialog(self, record: Any) -> None:
        """Close the form after a successful save; a failure here only warns."""
        try:
            self._collaborator.close_form_dialog(record)
        except Exception as exc:
            logger.warning("form_dialog_close_failed", error=str(exc), error_type=type(exc).__name__)

    @staticmethod
    def _report(
        model: str,
        state: RunState,
        outcome: RunOutcome,
        *,
        record_id: int | None = None,
        error: Any = None,
    ) -> FuzzResult:
        return FuzzResult(
            outcome=outcome,
            model=model,
            record_id=record_id,
            processed_count=len(state.processed),
            required_processed_count=len(state.required_processed),
            ignored_count=len(state.ignored_occurrences),
            processed=dict(state.processed),
            ignored_fields=tuple(state.ignored_occurrences),
            error=error,
        )

