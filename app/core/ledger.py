"""Action history ledger.

Every workflow action on a report appends exactly one ``HistoryEntry``. The
ledger is never edited or reordered, so it doubles as the source for two
questions the rest of the system asks:

1) what status should the report be in (the last entry decides), and
2) which signature should appear on the certificate for each role
   (the most recent signed entry by that role, across all rejection cycles).
"""

from __future__ import annotations

from typing import Iterable

from app.core.errors import LedgerInconsistency
from app.core.report import ActionType, HistoryEntry, Report, ReportStatus, Role


# Status a report is left in after each kind of action.
# OFFICE_REJECT returns the report to the field queue, not to REJECTED.
STATUS_AFTER: dict[ActionType, ReportStatus] = {
    ActionType.SUBMIT: ReportStatus.DRIVER_SUBMITTED,
    ActionType.RESUBMIT: ReportStatus.DRIVER_SUBMITTED,
    ActionType.APPROVE: ReportStatus.FIELD_SUBMITTED,
    ActionType.REJECT: ReportStatus.REJECTED,
    ActionType.OFFICE_APPROVE: ReportStatus.COMPLETED,
    ActionType.OFFICE_REJECT: ReportStatus.DRIVER_SUBMITTED,
}

ROLE_FOR_ACTION: dict[ActionType, Role] = {
    ActionType.SUBMIT: Role.DRIVER,
    ActionType.RESUBMIT: Role.DRIVER,
    ActionType.APPROVE: Role.FIELD,
    ActionType.REJECT: Role.FIELD,
    ActionType.OFFICE_APPROVE: Role.OFFICE,
    ActionType.OFFICE_REJECT: Role.OFFICE,
}

SIGNED_ACTIONS = frozenset(
    {ActionType.SUBMIT, ActionType.RESUBMIT, ActionType.APPROVE, ActionType.OFFICE_APPROVE}
)
REASON_ACTIONS = frozenset({ActionType.REJECT, ActionType.OFFICE_REJECT})


def _check_exhaustive() -> None:
    for name, table in (("STATUS_AFTER", STATUS_AFTER), ("ROLE_FOR_ACTION", ROLE_FOR_ACTION)):
        missing = set(ActionType) - set(table)
        if missing:
            raise RuntimeError(f"{name} has no entry for: {sorted(a.value for a in missing)}")
    if SIGNED_ACTIONS | REASON_ACTIONS != set(ActionType):
        raise RuntimeError("every action must either carry a signature or a reason")


_check_exhaustive()


def status_after(action_type: ActionType) -> ReportStatus:
    return STATUS_AFTER[action_type]


def append(history: Iterable[HistoryEntry], entry: HistoryEntry) -> tuple[HistoryEntry, ...]:
    """Return a new ledger with ``entry`` at the end. The input is not touched."""
    return (*history, entry)


def last_entry(history: tuple[HistoryEntry, ...]) -> HistoryEntry | None:
    return history[-1] if history else None


def replay_status(history: tuple[HistoryEntry, ...]) -> ReportStatus | None:
    """Status implied by the ledger alone (``None`` for an empty ledger)."""
    entry = last_entry(history)
    return status_after(entry.action_type) if entry is not None else None


def last_signature_by_role(history: Iterable[HistoryEntry], role: Role) -> str | None:
    for entry in reversed(tuple(history)):
        if entry.actor_role == role and entry.signature:
            return entry.signature
    return None


def last_signatures(history: Iterable[HistoryEntry]) -> dict[Role, str | None]:
    entries = tuple(history)
    return {role: last_signature_by_role(entries, role) for role in Role}


def entries_by_role(history: Iterable[HistoryEntry], role: Role) -> list[HistoryEntry]:
    return [e for e in history if e.actor_role == role]


def check_consistency(report: Report) -> None:
    """Raise if the stored status disagrees with the ledger.

    A report with an empty ledger is only acceptable in the reserved DRAFT
    state.
    """
    implied = replay_status(report.action_history)
    if implied is None:
        if report.status != ReportStatus.DRAFT:
            raise LedgerInconsistency(f"report {report.id} has status '{report.status.value}' but no history")
        return
    if implied != report.status:
        raise LedgerInconsistency(
            f"report {report.id} has status '{report.status.value}' "
            f"but its last action implies '{implied.value}'"
        )
    for entry in report.action_history:
        if ROLE_FOR_ACTION[entry.action_type] != entry.actor_role:
            raise LedgerInconsistency(
                f"report {report.id}: '{entry.action_type.value}' recorded for role '{entry.actor_role.value}'"
            )
