from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from aquanav.apps.audit import models as audit_models
from aquanav.apps.audit import services as audit_services
from aquanav.apps.error_logs import models as error_models


def test_log_event_writes_record(db_session):
    event = audit_services.log_event(
        db_session,
        actor_user_id=None,
        entity_type="SalesInvoice",
        entity_id="42",
        action="approve",
        after={"status": "unpaid"},
        metadata={"module": "sales"},
    )

    db_session.commit()
    assert event is not None
    assert event.entity_type == "SalesInvoice"
    assert event.after == {"status": "unpaid"}
    assert event.metadata_json == {"module": "sales"}


def test_list_audit_events_filters_by_entity(db_session):
    for entity_id in ("1", "2", "1"):
        audit_services.log_event(
            db_session,
            actor_user_id=None,
            entity_type="AssetInstance",
            entity_id=entity_id,
            action="assign",
        )
    db_session.commit()

    events = audit_services.list_audit_events(db_session, entity_type="AssetInstance", entity_id="1")
    assert len(events) == 2
    assert all(e.entity_id == "1" for e in events)

    future = datetime.now(timezone.utc) + timedelta(days=1)
    assert audit_services.list_audit_events(db_session, start=future) == []


def _write_invalid_event(db, *, data):
    db.add(audit_models.AuditEvent(entity_type=data.entity_type, entity_id=None, action=data.action))
    db.flush()


def test_failed_non_critical_event_keeps_session_usable(db_session, monkeypatch):
    report = error_models.ErrorLog(message="kept")
    db_session.add(report)
    db_session.flush()
    monkeypatch.setattr(audit_services, "create_audit_event", _write_invalid_event)

    event = audit_services.log_event(
        db_session,
        actor_user_id=None,
        entity_type="Employee",
        entity_id="7",
        action="deactivate",
    )
    db_session.commit()

    assert event is None
    assert db_session.query(error_models.ErrorLog).count() == 1
    assert db_session.query(audit_models.AuditEvent).count() == 0


def test_failed_critical_event_raises(db_session, monkeypatch):
    monkeypatch.setattr(audit_services, "create_audit_event", _write_invalid_event)

    with pytest.raises(IntegrityError):
        audit_services.log_event(
            db_session,
            actor_user_id=None,
            entity_type="AssetInstance",
            entity_id="3",
            action="assign",
            critical=True,
        )
