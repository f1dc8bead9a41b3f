from __future__ import annotations

from typing import Any


class WorkflowError(Exception):
    """Base for every error the report workflow can surface to a caller."""

    code = "WORKFLOW_ERROR"
    http_status = 400
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "retryable": self.retryable}


class NotFound(WorkflowError):
    code = "REPORT_NOT_FOUND"
    http_status = 404

    def __init__(self, report_id: str) -> None:
        super().__init__(f"보고서를 찾을 수 없습니다: {report_id}")
        self.report_id = report_id


class ValidationError(WorkflowError):
    """One or more required payload fields are missing or blank."""

    code = "VALIDATION_FAILED"
    http_status = 422

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = dict(errors)

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["fields"] = self.errors
        return out


class IllegalTransition(WorkflowError):
    code = "ILLEGAL_TRANSITION"
    http_status = 409

    def __init__(self, operation: str, current_status: Any, message: str = "") -> None:
        status_value = getattr(current_status, "value", current_status)
        super().__init__(message or f"'{operation}' is not allowed while status is '{status_value}'")
        self.operation = operation
        self.current_status = current_status

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["operation"] = self.operation
        out["current_status"] = getattr(self.current_status, "value", self.current_status)
        return out


class RoleNotPermitted(WorkflowError):
    code = "ROLE_NOT_PERMITTED"
    http_status = 403

    def __init__(self, operation: str, role: Any) -> None:
        role_value = getattr(role, "value", role)
        super().__init__(f"role '{role_value}' may not perform '{operation}'")
        self.operation = operation
        self.role = role


class ConflictOnWrite(WorkflowError):
    """The stored report changed between read and write; re-read and retry."""

    code = "WRITE_CONFLICT"
    http_status = 409
    retryable = True

    def __init__(self, report_id: str, expected_version: int | None) -> None:
        super().__init__(f"report {report_id} was modified concurrently (expected version {expected_version})")
        self.report_id = report_id
        self.expected_version = expected_version


class LedgerInconsistency(WorkflowError):
    code = "LEDGER_INCONSISTENT"
    http_status = 500
