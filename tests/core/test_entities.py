# tests/core/test_entities.py
import datetime

import pytest

from conftest import BAMBU_UID, TRAY_UID_BYTES

from spool_rfid.core import entities, identity
from spool_rfid.core.authenticator import authenticate
from spool_rfid.core.dispatcher import interpret


@pytest.fixture
def bambu_decrypted(bambu_scan, fixed_clock):
    return authenticate(bambu_scan, clock=fixed_clock)


def test_full_plan_for_interpreted_spool(bambu_decrypted, catalog):
    result = interpret(bambu_decrypted, catalog)
    plan = entities.build_scan_entities(result, bambu_decrypted)

    kinds = sorted(e.kind for e in plan.entities)
    assert kinds == sorted([
        "tag", "identifier", "scan", "tray", "identifier", "filament", "core", "spool", "inventory",
    ])
    assert len(set(plan.ids())) == len(plan.entities)

    tray_uid = TRAY_UID_BYTES.hex().upper()
    tag = plan.first(entities.KIND_TAG)
    tray = plan.first(entities.KIND_TRAY)
    filament = plan.first(entities.KIND_FILAMENT)
    assert tag.id == identity.tag_id(BAMBU_UID.hex().upper())
    assert tray.id == identity.tray_id(tray_uid)
    assert filament.id == identity.filament_id(tray_uid, "GFA00")
    assert filament.properties["sku"] == "10101"
    assert plan.first(entities.KIND_INVENTORY).id == identity.inventory_id(filament.id)


def test_edges_link_the_plan(bambu_decrypted, catalog):
    plan = entities.build_scan_entities(interpret(bambu_decrypted, catalog), bambu_decrypted)
    tag = plan.first(entities.KIND_TAG).id
    tray = plan.first(entities.KIND_TRAY).id
    filament = plan.first(entities.KIND_FILAMENT).id
    core = plan.first(entities.KIND_CORE).id
    spool = plan.first(entities.KIND_SPOOL).id
    inventory = plan.first(entities.KIND_INVENTORY).id
    edges = {(e.kind, e.source, e.target) for e in plan.edges}

    assert (entities.EDGE_ATTACHED_TO, tag, tray) in edges
    assert {(entities.EDGE_CONTAINS, tray, t) for t in (filament, core, spool)} <= edges
    assert (entities.EDGE_TRACKS, inventory, filament) in edges
    assert (entities.EDGE_SCANNED, plan.first(entities.KIND_SCAN).id, tag) in edges
    undirected = [e for e in plan.edges if not e.directional]
    assert [(e.source, e.target) for e in undirected] == [(filament, core)]


def test_tag_only_plan_without_result(bambu_decrypted):
    plan = entities.build_scan_entities(None, bambu_decrypted)
    assert sorted(e.kind for e in plan.entities) == ["identifier", "scan", "tag"]
    assert plan.first(entities.KIND_TRAY) is None
    assert len(plan.edges) == 2


def test_rescan_reuses_ids_except_scan(bambu_scan, catalog):
    first = authenticate(bambu_scan, clock=lambda: datetime.datetime(2025, 1, 1, tzinfo=datetime.timezone.utc))
    second = authenticate(bambu_scan, clock=lambda: datetime.datetime(2025, 2, 1, tzinfo=datetime.timezone.utc))
    plan_a = entities.build_scan_entities(interpret(first, catalog), first)
    plan_b = entities.build_scan_entities(interpret(second, catalog), second)

    stable_a = {e.id for e in plan_a.entities if e.kind != entities.KIND_SCAN}
    stable_b = {e.id for e in plan_b.entities if e.kind != entities.KIND_SCAN}
    assert stable_a == stable_b
    assert plan_a.first(entities.KIND_SCAN).id != plan_b.first(entities.KIND_SCAN).id


def test_properties_are_read_only(bambu_decrypted):
    plan = entities.build_scan_entities(None, bambu_decrypted)
    with pytest.raises(TypeError):
        plan.first(entities.KIND_TAG).properties["uid"] = "other"
