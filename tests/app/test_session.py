from __future__ import annotations

import asyncio
import logging

import pytest

from piosync.app import EditorSession, open_session
from piosync.domain.dispatch import FindingDispatchTable, implant_handler
from piosync.domain.model.enums import ResourceTag
from piosync.domain.model.forms import ImplantFinding
from piosync.domain.model.primitives import MarkdownValue
from tests.helpers.backend import FakeBackend
from tests.helpers.trees import make_node

IMPLANT = ResourceTag.DEVICE_IMPLANT
PATIENT_ID = "patient-1"


@pytest.fixture
def stocked_backend() -> FakeBackend:
    backend = FakeBackend(
        uuids={
            PATIENT_ID: ResourceTag.PATIENT,
            "i1": IMPLANT,
            "i2": IMPLANT,
        }
    )
    for entity_id in ("i1", "i2"):
        node = make_node(entity_id, IMPLANT, {"note.text": MarkdownValue(f"note {entity_id}")})
        backend.sub_trees[node.absolute_path] = node
    return backend


def test_open_session_rehydrates_registry(stocked_backend: FakeBackend) -> None:
    session = asyncio.run(open_session(backend=stocked_backend))

    assert session.registry.resolve("i1") == IMPLANT
    assert session.registry.get_or_create(ResourceTag.PATIENT) == PATIENT_ID


def test_open_session_survives_unreachable_backend(
    stocked_backend: FakeBackend, caplog: pytest.LogCaptureFixture
) -> None:
    stocked_backend.fail.add("uuids")

    session = asyncio.run(open_session(backend=stocked_backend))

    assert len(session.registry) == 0
    assert "empty identity table" in caplog.text


def test_load_decodes_findings_and_remembers_snapshot(stocked_backend: FakeBackend) -> None:
    async def run() -> EditorSession:
        session = await open_session(backend=stocked_backend)
        loaded = await session.load(IMPLANT)
        assert loaded.findings == [
            ImplantFinding(id="i1", comment="note i1"),
            ImplantFinding(id="i2", comment="note i2"),
        ]
        return session

    session = asyncio.run(run())

    assert set(session.snapshots[IMPLANT]) == {"i1", "i2"}
    assert stocked_backend.calls[-1] == ("get", [f"i1.{IMPLANT}", f"i2.{IMPLANT}"])


def test_load_without_registered_ids_skips_backend() -> None:
    backend = FakeBackend()
    session = EditorSession(backend=backend)

    loaded = asyncio.run(session.load(IMPLANT))

    assert loaded.findings == []
    assert backend.calls == []


def test_load_failure_yields_empty_list(stocked_backend: FakeBackend) -> None:
    async def run() -> list[object]:
        session = await open_session(backend=stocked_backend)
        stocked_backend.reject.add("get")
        return list((await session.load(IMPLANT)).findings)

    assert asyncio.run(run()) == []


def test_submit_reconciles_against_loaded_snapshot(stocked_backend: FakeBackend) -> None:
    async def run() -> EditorSession:
        session = await open_session(backend=stocked_backend)
        await session.load(IMPLANT)
        outcome = await session.submit(
            IMPLANT,
            [{"id": "i2", "comment": "geändert"}, {"id": "i3", "implantType": "14106009"}],
        )
        assert outcome.ok
        return session

    session = asyncio.run(run())

    assert stocked_backend.call_names()[-2:] == ["delete", "save"]
    assert set(stocked_backend.sub_trees) == {f"i2.{IMPLANT}", f"i3.{IMPLANT}"}
    assert set(session.snapshots[IMPLANT]) == {"i2", "i3"}
    assert session.registry.get_all(IMPLANT) == ["i2", "i3"]
    saved = stocked_backend.sub_trees[f"i3.{IMPLANT}"]
    reference = saved.get_subtree_by_path("patient.reference").get_value_as_string()
    assert reference == f"urn:uuid:{PATIENT_ID}"


def test_submit_logs_backend_drift(
    stocked_backend: FakeBackend, caplog: pytest.LogCaptureFixture
) -> None:
    stocked_backend.fail.add("save")

    async def run() -> bool:
        session = await open_session(backend=stocked_backend)
        outcome = await session.submit(IMPLANT, [{"id": "i9"}])
        return outcome.ok

    with caplog.at_level(logging.WARNING):
        assert asyncio.run(run()) is False

    assert "out of step" in caplog.text


def test_custom_dispatch_table_is_used() -> None:
    table = FindingDispatchTable([implant_handler("someone-else")])
    session = EditorSession(backend=FakeBackend(), dispatch=table)

    assert session.handlers is table
    assert len(session.registry) == 0


def test_close_forgets_session_state(stocked_backend: FakeBackend) -> None:
    async def run() -> EditorSession:
        session = await open_session(backend=stocked_backend)
        await session.load(IMPLANT)
        await session.close()
        return session

    session = asyncio.run(run())

    assert len(session.registry) == 0
    assert session.snapshots == {}
