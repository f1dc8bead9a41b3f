from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.auth.deps import Principal, get_current_actor, get_current_principal
from app.core import workflow
from app.core.errors import WorkflowError
from app.core.ledger import last_signatures
from app.core.rbac import SessionRole, can_view_report, require, workflow_role
from app.core.report import Actor, Report, ReportStatus, report_to_dict
from app.core.workflow import Operation, TransitionResult
from app.db.session import get_db
from app.db.storage import ReportStorage, SqlReportStorage, get_or_404
from app.modules.reports.schemas import (
    CreateReportRequest,
    FieldReviewRequest,
    OfficeApproveRequest,
    OfficeRejectRequest,
    ResubmitRequest,
)
from app.utils.badges import invalidate_badge
from app.utils.notify import notify_transition
from app.utils.pdf_report import build_certificate_pdf

logger = logging.getLogger("damage_report.reports")

router = APIRouter(prefix="/reports", tags=["reports"])


def get_report_storage(db: Session = Depends(get_db)) -> ReportStorage:
    return SqlReportStorage(db)


def _load_visible(storage: ReportStorage, principal: Principal, report_id: str) -> Report:
    r = get_or_404(storage, report_id)
    require(can_view_report(principal.role, principal.vehicle_no, r), "이 보고서에 접근할 수 없습니다")
    return r


def _detail(report: Report, principal: Principal) -> dict:
    out = report_to_dict(report)
    role = workflow_role(principal.role)
    out["allowed_actions"] = [op.value for op in workflow.allowed_operations(role, report)] if role else []
    return out


def _commit(
    db: Session,
    storage: ReportStorage,
    operation: Operation,
    before: Report | None,
    result: TransitionResult,
    actor: Actor,
) -> Report:
    """Persist a transition result, or raise its error.

    The report write and its notifications are committed together; badge
    caches are dropped only once the commit has succeeded.
    """
    from_status = before.status.value if before is not None else "-"
    report_id = before.id if before is not None else "(new)"
    try:
        new = result.unwrap()
        stored = storage.put(new, expected_version=before.version if before is not None else None)
        audiences = notify_transition(db, stored, operation)
        db.commit()
    except WorkflowError as exc:
        db.rollback()
        logger.warning(
            "Rejected %s on report %s by %s (%s): %s",
            operation.value, report_id, actor.role.value, exc.code, exc.message,
        )
        raise

    for role, vehicle_no in audiences:
        invalidate_badge(role, vehicle_no)
    logger.info(
        "Report %s: %s %s -> %s by %s",
        stored.id, operation.value, from_status, stored.status.value, actor.role.value,
    )
    return stored


@router.get("")
def list_reports(
    status: ReportStatus | None = Query(None),
    queue: bool = Query(False, description="only reports waiting on the caller's role"),
    storage: ReportStorage = Depends(get_report_storage),
    principal: Principal = Depends(get_current_principal),
):
    reports = [r for r in storage.list_all() if can_view_report(principal.role, principal.vehicle_no, r)]
    if status is not None:
        reports = [r for r in reports if r.status == status]
    if queue:
        role = workflow_role(principal.role)
        waiting = workflow.queue_statuses(role) if role else ()
        reports = [r for r in reports if r.status in waiting]
    return {"items": [report_to_dict(r, include_history=False) for r in reports], "total": len(reports)}


@router.post("", status_code=201)
def create_report(
    body: CreateReportRequest,
    db: Session = Depends(get_db),
    storage: ReportStorage = Depends(get_report_storage),
    principal: Principal = Depends(get_current_principal),
    actor: Actor = Depends(get_current_actor),
):
    if principal.role == SessionRole.DRIVER and principal.vehicle_no:
        require(
            body.vehicle_no in (None, "", principal.vehicle_no),
            "본인 차량의 보고서만 작성할 수 있습니다",
        )
        body = body.model_copy(
            update={
                "vehicle_no": principal.vehicle_no,
                "driver_name": principal.name,
                "driver_phone": body.driver_phone or principal.phone,
            }
        )
    result = workflow.create_report(actor, body.to_payload())
    return _detail(_commit(db, storage, Operation.CREATE, None, result, actor), principal)


@router.get("/{report_id}")
def get_report(
    report_id: str,
    storage: ReportStorage = Depends(get_report_storage),
    principal: Principal = Depends(get_current_principal),
):
    return _detail(_load_visible(storage, principal, report_id), principal)


@router.get("/{report_id}/history")
def get_history(
    report_id: str,
    storage: ReportStorage = Depends(get_report_storage),
    principal: Principal = Depends(get_current_principal),
):
    r = _load_visible(storage, principal, report_id)
    return {"report_id": r.id, "status": r.status.value, "items": [e.to_dict() for e in r.action_history]}


@router.get("/{report_id}/signatures")
def get_signatures(
    report_id: str,
    storage: ReportStorage = Depends(get_report_storage),
    principal: Principal = Depends(get_current_principal),
):
    r = _load_visible(storage, principal, report_id)
    return {role.value: sig for role, sig in last_signatures(r.action_history).items()}


@router.put("/{report_id}/resubmit")
def resubmit(
    report_id: str,
    body: ResubmitRequest,
    db: Session = Depends(get_db),
    storage: ReportStorage = Depends(get_report_storage),
    principal: Principal = Depends(get_current_principal),
    actor: Actor = Depends(get_current_actor),
):
    r = _load_visible(storage, principal, report_id)
    result = workflow.resubmit_report(r, actor, body.to_payload())
    return _detail(_commit(db, storage, Operation.RESUBMIT, r, result, actor), principal)


@router.put("/{report_id}/field-review")
def field_review(
    report_id: str,
    body: FieldReviewRequest,
    db: Session = Depends(get_db),
    storage: ReportStorage = Depends(get_report_storage),
    principal: Principal = Depends(get_current_principal),
    actor: Actor = Depends(get_current_actor),
):
    r = _load_visible(storage, principal, report_id)
    operation = Operation.FIELD_APPROVE if body.action == "approve" else Operation.FIELD_REJECT
    result = workflow.field_review(r, actor, body.to_payload())
    return _detail(_commit(db, storage, operation, r, result, actor), principal)


@router.put("/{report_id}/office-approve")
def office_approve(
    report_id: str,
    body: OfficeApproveRequest,
    db: Session = Depends(get_db),
    storage: ReportStorage = Depends(get_report_storage),
    principal: Principal = Depends(get_current_principal),
    actor: Actor = Depends(get_current_actor),
):
    r = _load_visible(storage, principal, report_id)
    result = workflow.office_approve(r, actor, body.to_payload())
    return _detail(_commit(db, storage, Operation.OFFICE_APPROVE, r, result, actor), principal)


@router.put("/{report_id}/office-reject")
def office_reject(
    report_id: str,
    body: OfficeRejectRequest,
    db: Session = Depends(get_db),
    storage: ReportStorage = Depends(get_report_storage),
    principal: Principal = Depends(get_current_principal),
    actor: Actor = Depends(get_current_actor),
):
    r = _load_visible(storage, principal, report_id)
    result = workflow.office_reject(r, actor, body.to_payload())
    return _detail(_commit(db, storage, Operation.OFFICE_REJECT, r, result, actor), principal)


@router.get("/{report_id}/pdf")
def download_pdf(
    report_id: str,
    storage: ReportStorage = Depends(get_report_storage),
    principal: Principal = Depends(get_current_principal),
):
    r = _load_visible(storage, principal, report_id)
    require(r.status == ReportStatus.COMPLETED, "완료된 보고서만 다운로드할 수 있습니다", 400)

    pdf_bytes = build_certificate_pdf(r, printed_at=datetime.now(timezone.utc))

    filename = f"DAMAGE_{r.container_no}.pdf"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)
