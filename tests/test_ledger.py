from datetime import datetime, timezone

import pytest

from app.core import ledger
from app.core.errors import LedgerInconsistency
from app.core.report import ActionType, HistoryEntry, Report, ReportStatus, Role

T0 = datetime(2025, 10, 1, 9, 0, tzinfo=timezone.utc)


def _entry(action, role, signature=None, reason=None, actor="x"):
    return HistoryEntry(action_type=action, actor=actor, actor_role=role, timestamp=T0, signature=signature, reason=reason)


def _report(status, history):
    return Report(
        id="r1",
        container_no="TCLU8239466",
        bl_no="CHL20251001",
        report_date="2025-10-01",
        vehicle_no="89하1234",
        driver_name="박영호",
        driver_phone="010-9942-1118",
        status=status,
        created_at=T0,
        action_history=tuple(history),
    )


def test_append_returns_new_ledger_and_keeps_the_old_one():
    first = (_entry(ActionType.SUBMIT, Role.DRIVER, "S1"),)
    second = ledger.append(first, _entry(ActionType.REJECT, Role.FIELD, reason="사진 필요"))
    assert len(first) == 1
    assert second[0] is first[0]
    assert second[-1].action_type == ActionType.REJECT


def test_last_signature_skips_unsigned_entries():
    history = (
        _entry(ActionType.SUBMIT, Role.DRIVER, "D1"),
        _entry(ActionType.REJECT, Role.FIELD, reason="사진 필요"),
        _entry(ActionType.RESUBMIT, Role.DRIVER, "D2"),
        _entry(ActionType.APPROVE, Role.FIELD, "F1"),
    )
    assert ledger.last_signature_by_role(history, Role.DRIVER) == "D2"
    assert ledger.last_signature_by_role(history, Role.FIELD) == "F1"
    assert ledger.last_signature_by_role(history, Role.OFFICE) is None
    assert ledger.last_signatures(history) == {Role.DRIVER: "D2", Role.FIELD: "F1", Role.OFFICE: None}


def test_replay_status_follows_last_entry():
    assert ledger.replay_status(()) is None
    history = (_entry(ActionType.SUBMIT, Role.DRIVER, "D1"), _entry(ActionType.REJECT, Role.FIELD, reason="r"))
    assert ledger.replay_status(history) == ReportStatus.REJECTED
    office_back = history + (_entry(ActionType.OFFICE_REJECT, Role.OFFICE, reason="r"),)
    assert ledger.replay_status(office_back) == ReportStatus.DRIVER_SUBMITTED


def test_entries_by_role():
    history = (
        _entry(ActionType.SUBMIT, Role.DRIVER, "D1"),
        _entry(ActionType.APPROVE, Role.FIELD, "F1"),
        _entry(ActionType.OFFICE_REJECT, Role.OFFICE, reason="r"),
    )
    assert [e.action_type for e in ledger.entries_by_role(history, Role.OFFICE)] == [ActionType.OFFICE_REJECT]


def test_check_consistency_accepts_matching_status():
    ledger.check_consistency(_report(ReportStatus.DRIVER_SUBMITTED, [_entry(ActionType.SUBMIT, Role.DRIVER, "D1")]))
    ledger.check_consistency(_report(ReportStatus.DRAFT, []))


def test_check_consistency_rejects_status_drift():
    r = _report(ReportStatus.COMPLETED, [_entry(ActionType.SUBMIT, Role.DRIVER, "D1")])
    with pytest.raises(LedgerInconsistency):
        ledger.check_consistency(r)


def test_check_consistency_rejects_empty_history_outside_draft():
    with pytest.raises(LedgerInconsistency):
        ledger.check_consistency(_report(ReportStatus.DRIVER_SUBMITTED, []))


def test_check_consistency_rejects_wrong_role_for_action():
    r = _report(ReportStatus.DRIVER_SUBMITTED, [_entry(ActionType.SUBMIT, Role.FIELD, "F1")])
    with pytest.raises(LedgerInconsistency):
        ledger.check_consistency(r)


def test_history_entry_survives_json_form():
    e = _entry(ActionType.OFFICE_REJECT, Role.OFFICE, reason="재확인", actor="이수진")
    back = HistoryEntry.from_dict(e.to_dict())
    assert back == e


def test_every_action_has_a_status_and_role():
    for action in ActionType:
        assert action in ledger.STATUS_AFTER
        assert action in ledger.ROLE_FOR_ACTION
