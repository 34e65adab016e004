# tests/unit/engine/test_reconciler.py
"""Tests for applying values through the collaborator."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from formfuzz.contracts import ApplyRejected, Scalar, SingleRelation, Unavailable
from formfuzz.engine.reconciler import Reconciler
from tests.conftest import ScriptedCollaborator

FIELDS = {
    "is_company": {"type": "boolean"},
    "company_type": {"type": "char"},
    "country_id": {"type": "many2one", "relation": "res.country"},
}
ARCH = '<form><field name="is_company"/><field name="company_type"/><field name="country_id"/></form>'


class TestReconciler:
    @pytest.mark.asyncio
    async def test_returns_affected_without_written_field(
        self, scripted: Callable[..., ScriptedCollaborator]
    ) -> None:
        collaborator = scripted(ARCH, FIELDS, affected={"is_company": {"company_type"}})

        affected = await Reconciler(collaborator).apply({}, "is_company", Scalar(True))

        assert affected == frozenset({"company_type"})

    @pytest.mark.asyncio
    async def test_writes_collaborator_shape(self, scripted: Callable[..., ScriptedCollaborator]) -> None:
        collaborator = scripted(ARCH, FIELDS)

        await Reconciler(collaborator).apply({}, "country_id", SingleRelation(id=2))

        assert collaborator.writes == [("country_id", {"operation": "ADD", "id": 2})]

    @pytest.mark.asyncio
    async def test_rejection_propagates(self, scripted: Callable[..., ScriptedCollaborator]) -> None:
        collaborator = scripted(ARCH, FIELDS, reject={"company_type"})

        with pytest.raises(ApplyRejected, match="company_type"):
            await Reconciler(collaborator).apply({}, "company_type", Scalar("x"))

    @pytest.mark.asyncio
    async def test_refuses_unavailable(self, scripted: Callable[..., ScriptedCollaborator]) -> None:
        collaborator = scripted(ARCH, FIELDS)

        with pytest.raises(ValueError, match="Unavailable"):
            await Reconciler(collaborator).apply({}, "country_id", Unavailable("country_id", "none"))

        assert collaborator.writes == []
