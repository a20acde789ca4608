import json
import logging
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from expiring_store.audit import NOTICE, AuditLog, _JsonFormatter
from expiring_store.cache import ExpiringStore
from expiring_store.schemas import LogLevel
from expiring_store.settings import StoreSettings


def test_audit_log_is_a_snapshot(store):
    before = store.get_audit_log()
    store.set("k", "v", 60)
    after = store.get_audit_log()

    assert isinstance(before, tuple)
    assert len(before) == 1
    assert len(after) == 2


def test_audit_entries_are_frozen(store):
    entry = store.get_audit_log()[0]
    with pytest.raises(ValidationError):
        entry.message = "rewritten"
    assert store.get_audit_log()[0].message == "System initialized with max items: 10"


def test_entry_timestamp_comes_from_clock(store, clock):
    entry = store.get_audit_log()[0]
    assert entry.timestamp == datetime.fromtimestamp(clock.now, tz=timezone.utc)


def test_audit_log_without_logger(clock):
    audit = AuditLog(clock)
    audit.append("one")
    audit.append("two", LogLevel.ERROR)
    assert len(audit) == 2
    assert [e.level for e in audit.snapshot()] == [LogLevel.INFO, LogLevel.ERROR]


def test_json_formatter_payload():
    record = logging.LogRecord("expiring_store", NOTICE, __file__, 1, "Cache miss for key: %s", ("k",), None)
    record.created = 1_700_000_000.0
    payload = json.loads(_JsonFormatter().format(record))
    assert payload == {
        "ts": "2023-11-14T22:13:20+00:00",
        "level": "NOTICE",
        "logger": "expiring_store",
        "msg": "Cache miss for key: k",
    }


def test_notice_level_is_registered():
    assert logging.getLevelName(NOTICE) == "NOTICE"


def test_entries_are_mirrored_to_stdlib(caplog, clock):
    with caplog.at_level(logging.DEBUG, logger="expiring_store"):
        store = ExpiringStore(clock=clock)
        store.get("missing")

    records = [r for r in caplog.records if r.name == "expiring_store"]
    assert [r.getMessage() for r in records] == [
        "System initialized with max items: 500",
        "Cache miss for key: missing",
    ]
    assert records[1].levelno == NOTICE
    assert records[1].levelname == "NOTICE"


def test_mirroring_can_be_disabled(caplog, clock):
    with caplog.at_level(logging.DEBUG, logger="expiring_store"):
        store = ExpiringStore(settings=StoreSettings(mirror_to_logging=False), clock=clock)
        store.get("missing")

    assert [r for r in caplog.records if r.name == "expiring_store"] == []
    assert len(store.get_audit_log()) == 2


def test_explicit_logger_is_used(caplog, clock):
    with caplog.at_level(logging.WARNING, logger="custom.store"):
        store = ExpiringStore(clock=clock, logger=logging.getLogger("custom.store"))
        store.set("k", "v", -1)
        store.get("k")

    warnings = [r.getMessage() for r in caplog.records if r.name == "custom.store"]
    assert warnings == ["Cache expired for key: k. Deleting."]


def test_invalid_capacity_warns_on_module_logger(caplog, clock):
    with caplog.at_level(logging.WARNING, logger="expiring_store.cache"):
        ExpiringStore(-1, clock=clock)

    assert any(
        r.name == "expiring_store.cache" and "Invalid max_items -1" in r.getMessage()
        for r in caplog.records
    )


def test_invalid_capacity_without_mirroring(caplog, clock):
    with caplog.at_level(logging.WARNING, logger="expiring_store.cache"):
        store = ExpiringStore(0, settings=StoreSettings(mirror_to_logging=False), clock=clock)

    assert store.max_items == 500
    assert store.get_audit_log()[0].message == "System initialized with max items: 500"
    assert any(r.name == "expiring_store.cache" for r in caplog.records)
