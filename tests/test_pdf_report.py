from datetime import datetime, timedelta, timezone

from conftest import SIG

from app.core import workflow
from app.core.report import Actor, Role
from app.core.workflow import (
    CreateReportPayload,
    FieldReviewPayload,
    OfficeApprovePayload,
    ResubmitPayload,
    ReviewAction,
)
from app.utils.pdf_report import build_certificate_pdf

T0 = datetime(2025, 10, 1, 9, 0, tzinfo=timezone.utc)


def _completed(driver_sig=SIG, field_sig="김도훈", office_sig="data:image/png;base64,!!!not-base64!!!"):
    r = workflow.create_report(
        Actor("박영호", Role.DRIVER),
        CreateReportPayload(
            report_date="2025-10-01",
            container_no="TCLU8239466",
            bl_no="CHL20251001",
            vehicle_no="89하1234",
            driver_name="박영호",
            driver_phone="010-9942-1118",
            driver_damage="우측 도어 찌그러짐\n하단 긁힘",
            driver_signature="old",
        ),
        now=T0,
    ).unwrap()
    r = workflow.field_review(
        r, Actor("김도훈", Role.FIELD), FieldReviewPayload(ReviewAction.REJECT, "김도훈", rejection_reason="사진 필요"), now=T0
    ).unwrap()
    r = workflow.resubmit_report(r, Actor("박영호", Role.DRIVER), ResubmitPayload("사진 추가함", driver_sig), now=T0).unwrap()
    r = workflow.field_review(
        r, Actor("김도훈", Role.FIELD), FieldReviewPayload(ReviewAction.APPROVE, "김도훈", None, "확인 <완료> & 이상 없음", field_sig), now=T0
    ).unwrap()
    return workflow.office_approve(
        r, Actor("이수진", Role.OFFICE), OfficeApprovePayload("이수진", None, "보험 처리 예정", office_sig), now=T0
    ).unwrap()


def test_certificate_is_a_pdf():
    pdf = build_certificate_pdf(_completed(), printed_at=T0 + timedelta(days=1))
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_certificate_accepts_naive_print_time_and_text_signatures():
    pdf = build_certificate_pdf(
        _completed(driver_sig="박영호", field_sig="김도훈", office_sig="이수진"),
        printed_at=datetime(2025, 10, 2, 10, 30),
    )
    assert pdf.startswith(b"%PDF")


def test_certificate_defaults_print_time():
    assert build_certificate_pdf(_completed()).startswith(b"%PDF")
