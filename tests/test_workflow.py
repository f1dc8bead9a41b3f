from datetime import datetime, timedelta, timezone

import pytest

from app.core import ledger, workflow
from app.core.errors import IllegalTransition, RoleNotPermitted, ValidationError
from app.core.report import ActionType, Actor, ReportStatus, Role
from app.core.workflow import (
    CreateReportPayload,
    FieldReviewPayload,
    OfficeApprovePayload,
    OfficeRejectPayload,
    Operation,
    ResubmitPayload,
    ReviewAction,
)

T0 = datetime(2025, 10, 1, 9, 0, tzinfo=timezone.utc)

DRIVER = Actor(name="박영호", role=Role.DRIVER, phone="010-9942-1118")
FIELD = Actor(name="김도훈", role=Role.FIELD)
OFFICE = Actor(name="이수진", role=Role.OFFICE)


def _create(**overrides):
    data = dict(
        report_date="2025-10-01",
        container_no="TCLU8239466",
        bl_no="CHL20251001",
        vehicle_no="89하1234",
        driver_name="박영호",
        driver_phone="010-9942-1118",
        driver_damage="우측 도어 찌그러짐",
        driver_signature="SIG_D1",
        damage_photos=["/uploads/damage_a.jpg"],
    )
    data.update(overrides)
    return workflow.create_report(DRIVER, CreateReportPayload(**data), now=T0, report_id="r1")


def _submitted():
    return _create().unwrap()


def _field_approved():
    return workflow.field_review(
        _submitted(),
        FIELD,
        FieldReviewPayload(
            action=ReviewAction.APPROVE,
            field_staff="김도훈",
            field_phone="010-2384-1156",
            field_damage="도어 하단 찌그러짐 확인",
            field_signature="SIG_F1",
        ),
        now=T0 + timedelta(hours=1),
    ).unwrap()


def test_create_report_enters_field_queue_with_one_submit_entry():
    r = _submitted()
    assert r.status == ReportStatus.DRIVER_SUBMITTED
    assert r.id == "r1"
    assert r.driver_section.damage == "우측 도어 찌그러짐"
    assert r.driver_section.submitted_at == T0
    assert r.damage_photos == ("/uploads/damage_a.jpg",)
    assert len(r.action_history) == 1
    entry = r.action_history[0]
    assert entry.action_type == ActionType.SUBMIT
    assert entry.actor == "박영호"
    assert entry.actor_role == Role.DRIVER
    assert entry.signature == "SIG_D1"


def test_create_report_reports_every_missing_field_at_once():
    result = _create(container_no="  ", driver_signature=None, driver_damage="")
    assert not result.ok
    assert result.report is None
    assert isinstance(result.error, ValidationError)
    assert set(result.error.errors) == {"container_no", "driver_signature", "driver_damage"}


def test_only_drivers_create_reports():
    result = workflow.create_report(FIELD, CreateReportPayload(), now=T0)
    assert isinstance(result.error, RoleNotPermitted)
    assert result.error.http_status == 403


def test_full_happy_path_to_completed():
    approved = _field_approved()
    assert approved.status == ReportStatus.FIELD_SUBMITTED
    assert approved.field_section.staff == "김도훈"

    done = workflow.office_approve(
        approved,
        OFFICE,
        OfficeApprovePayload(
            office_staff="이수진",
            office_damage="보험 처리 예정",
            office_signature="SIG_O1",
        ),
        now=T0 + timedelta(hours=2),
    ).unwrap()

    assert done.status == ReportStatus.COMPLETED
    assert [e.action_type for e in done.action_history] == [
        ActionType.SUBMIT,
        ActionType.APPROVE,
        ActionType.OFFICE_APPROVE,
    ]
    assert workflow.last_signature_by_role(done, Role.DRIVER) == "SIG_D1"
    assert workflow.last_signature_by_role(done, Role.FIELD) == "SIG_F1"
    assert workflow.last_signature_by_role(done, Role.OFFICE) == "SIG_O1"
    assert workflow.allowed_operations(Role.OFFICE, done) == []


def test_reject_and_resubmit_cycle_keeps_whole_history():
    submitted = _submitted()
    rejected = workflow.field_review(
        submitted,
        FIELD,
        FieldReviewPayload(action=ReviewAction.REJECT, field_staff="김도훈", rejection_reason="사진 필요"),
        now=T0 + timedelta(minutes=30),
    ).unwrap()
    assert rejected.status == ReportStatus.REJECTED
    assert rejected.rejection_reason == "사진 필요"
    assert rejected.rejected_at == T0 + timedelta(minutes=30)
    assert rejected.action_history[-1].reason == "사진 필요"

    again = workflow.resubmit_report(
        rejected,
        DRIVER,
        ResubmitPayload(driver_damage="사진 추가함", driver_signature="SIG_D2"),
        now=T0 + timedelta(hours=1),
    ).unwrap()
    assert again.status == ReportStatus.DRIVER_SUBMITTED
    assert again.rejection_reason is None
    assert again.rejected_at is None
    assert again.driver_section.damage == "사진 추가함"
    # photos carry over when the resubmission does not send new ones
    assert again.damage_photos == ("/uploads/damage_a.jpg",)
    assert [e.action_type for e in again.action_history] == [
        ActionType.SUBMIT,
        ActionType.REJECT,
        ActionType.RESUBMIT,
    ]
    # prefix of the old ledger is untouched
    assert again.action_history[:2] == rejected.action_history
    assert workflow.last_signature_by_role(again, Role.DRIVER) == "SIG_D2"


def test_resubmit_replaces_photos_when_given():
    rejected = workflow.field_review(
        _submitted(),
        FIELD,
        FieldReviewPayload(action=ReviewAction.REJECT, field_staff="김도훈", rejection_reason="사진 필요"),
        now=T0,
    ).unwrap()
    again = workflow.resubmit_report(
        rejected,
        DRIVER,
        ResubmitPayload(driver_damage="사진 추가함", driver_signature="SIG_D2", damage_photos=[]),
        now=T0,
    ).unwrap()
    assert again.damage_photos == ()


def test_office_reject_returns_report_to_field_queue():
    approved = _field_approved()
    back = workflow.office_reject(
        approved,
        OFFICE,
        OfficeRejectPayload(rejection_reason="현장 사진 재확인", office_staff="이수진"),
        now=T0 + timedelta(hours=3),
    ).unwrap()

    assert back.status == ReportStatus.DRIVER_SUBMITTED
    assert back.rejection_reason == "현장 사진 재확인"
    assert back.rejected_at == T0 + timedelta(hours=3)
    assert back.action_history[-1].action_type == ActionType.OFFICE_REJECT
    assert back.action_history[-1].actor == "이수진"
    assert Operation.FIELD_APPROVE in workflow.allowed_operations(Role.FIELD, back)
    # the driver has nothing to do here
    assert workflow.allowed_operations(Role.DRIVER, back) == []


def test_field_approve_after_office_reject_keeps_rejection_fields():
    back = workflow.office_reject(
        _field_approved(),
        OFFICE,
        OfficeRejectPayload(rejection_reason="현장 사진 재확인", office_staff="이수진"),
        now=T0,
    ).unwrap()
    again = workflow.field_review(
        back,
        FIELD,
        FieldReviewPayload(
            action=ReviewAction.APPROVE,
            field_staff="장지윤",
            field_damage="재확인 완료",
            field_signature="SIG_F2",
        ),
        now=T0,
    ).unwrap()
    assert again.status == ReportStatus.FIELD_SUBMITTED
    assert again.rejection_reason == "현장 사진 재확인"
    assert again.field_section.staff == "장지윤"
    assert workflow.last_signature_by_role(again, Role.FIELD) == "SIG_F2"


@pytest.mark.parametrize(
    "call",
    [
        lambda r: workflow.resubmit_report(r, DRIVER, ResubmitPayload("x", "s"), now=T0),
        lambda r: workflow.office_approve(r, OFFICE, OfficeApprovePayload("o", None, "d", "s"), now=T0),
        lambda r: workflow.office_reject(r, OFFICE, OfficeRejectPayload("why", "o"), now=T0),
    ],
)
def test_operations_from_wrong_status_are_illegal(call):
    r = _submitted()
    result = call(r)
    assert isinstance(result.error, IllegalTransition)
    assert result.error.current_status == ReportStatus.DRIVER_SUBMITTED
    # the report handed back is the unchanged input
    assert result.report is r


def test_role_is_checked_before_status():
    r = _submitted()
    result = workflow.office_approve(r, FIELD, OfficeApprovePayload(), now=T0)
    assert isinstance(result.error, RoleNotPermitted)
    assert result.report is r


def test_status_is_checked_before_payload():
    completed_like = _field_approved()
    result = workflow.field_review(
        completed_like, FIELD, FieldReviewPayload(action=ReviewAction.APPROVE), now=T0
    )
    assert isinstance(result.error, IllegalTransition)


def test_field_reject_requires_reason():
    result = workflow.field_review(
        _submitted(), FIELD, FieldReviewPayload(action=ReviewAction.REJECT, field_staff="김도훈"), now=T0
    )
    assert isinstance(result.error, ValidationError)
    assert set(result.error.errors) == {"rejection_reason"}


def test_field_review_rejects_unknown_action():
    result = workflow.field_review(_submitted(), FIELD, FieldReviewPayload(action="hold"), now=T0)
    assert isinstance(result.error, ValidationError)
    assert "action" in result.error.errors


def test_failed_operations_leave_report_untouched():
    r = _submitted()
    result = workflow.field_review(r, FIELD, FieldReviewPayload(action=ReviewAction.APPROVE), now=T0)
    assert not result.ok
    assert result.report is r
    assert len(r.action_history) == 1


def test_status_always_matches_ledger_along_a_long_path():
    r = _submitted()
    steps = [
        lambda r: workflow.field_review(
            r, FIELD, FieldReviewPayload(ReviewAction.REJECT, "김도훈", rejection_reason="사진 필요"), now=T0
        ),
        lambda r: workflow.resubmit_report(r, DRIVER, ResubmitPayload("사진 추가함", "SIG_D2"), now=T0),
        lambda r: workflow.field_review(
            r, FIELD, FieldReviewPayload(ReviewAction.APPROVE, "김도훈", None, "ok", "SIG_F1"), now=T0
        ),
        lambda r: workflow.office_reject(r, OFFICE, OfficeRejectPayload("재확인", "이수진"), now=T0),
        lambda r: workflow.field_review(
            r, FIELD, FieldReviewPayload(ReviewAction.APPROVE, "김도훈", None, "ok2", "SIG_F2"), now=T0
        ),
        lambda r: workflow.office_approve(r, OFFICE, OfficeApprovePayload("이수진", None, "끝", "SIG_O1"), now=T0),
    ]
    for step in steps:
        before = len(r.action_history)
        r = step(r).unwrap()
        assert len(r.action_history) == before + 1
        assert ledger.replay_status(r.action_history) == r.status
        ledger.check_consistency(r)

    assert r.status == ReportStatus.COMPLETED
    assert workflow.last_signature_by_role(r, Role.DRIVER) == "SIG_D2"
    assert workflow.last_signature_by_role(r, Role.FIELD) == "SIG_F2"


def test_queue_statuses_per_role():
    assert workflow.queue_statuses(Role.DRIVER) == (ReportStatus.REJECTED,)
    assert workflow.queue_statuses(Role.FIELD) == (ReportStatus.DRIVER_SUBMITTED,)
    assert workflow.queue_statuses(Role.OFFICE) == (ReportStatus.FIELD_SUBMITTED,)


def test_completed_has_no_outgoing_operations():
    assert workflow.allowed_operations_for_status(ReportStatus.COMPLETED) == ()


def test_end_to_end_with_only_required_fields():
    hong = Actor(name="홍길동", role=Role.DRIVER)
    r = workflow.create_report(
        hong,
        CreateReportPayload(
            container_no="TCLU8239466",
            bl_no="CHL20251001",
            driver_damage="좌측 패널 파손",
            driver_signature="홍길동",
        ),
    ).unwrap()
    assert r.status == ReportStatus.DRIVER_SUBMITTED
    assert [e.action_type for e in r.action_history] == [ActionType.SUBMIT]
    assert r.driver_name == "홍길동"
    assert r.report_date == ""

    r = workflow.field_review(
        r,
        Actor(name="김도훈", role=Role.FIELD),
        FieldReviewPayload(
            action=ReviewAction.APPROVE,
            field_staff="김도훈",
            field_damage="확인함",
            field_signature="김도훈",
        ),
    ).unwrap()
    assert r.status == ReportStatus.FIELD_SUBMITTED
    assert len(r.action_history) == 2
    assert r.action_history[-1].action_type == ActionType.APPROVE

    r = workflow.office_approve(
        r,
        Actor(name="이수진", role=Role.OFFICE),
        OfficeApprovePayload(office_staff="이수진", office_damage="최종확인", office_signature="이수진"),
    ).unwrap()
    assert r.status == ReportStatus.COMPLETED
    assert len(r.action_history) == 3
    assert r.action_history[-1].action_type == ActionType.OFFICE_APPROVE
    assert [e.actor for e in r.action_history] == ["홍길동", "김도훈", "이수진"]
    assert workflow.last_signature_by_role(r, Role.OFFICE) == "이수진"


def test_create_without_report_date_or_vehicle_is_accepted():
    result = _create(report_date=None, vehicle_no="  ", driver_name=None, driver_phone=None)
    assert result.ok
    assert result.report.driver_name == "박영호"
    assert result.report.driver_phone == "010-9942-1118"
    assert result.report.vehicle_no == ""
