"""Customer decision on a cost estimate (KVA), submitted through the tracking endpoint.

Preconditions are checked in a fixed order so that a replayed decision is always
rejected instead of being applied twice:

  1. the ticket needs a KVA, or has a current estimate
  2. the current estimate is not already decided (terminal status)
  3. legacy tickets without an estimate row have kva_approved still unset

All writes of a decision commit in one transaction. Staff notification happens
afterwards and never affects the outcome.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from repairtrack import get_db
from repairtrack.errors import DecisionConflict, StoreFailure
from repairtrack.models.history import StatusHistory
from repairtrack.models.kva import KvaEstimate, KvaHistory
from repairtrack.models.notification import NotificationLog
from repairtrack.models.repair_ticket import RepairTicket, utcnow
from repairtrack.services.notifications import notify_staff_safely
from repairtrack.utils.fsm import TransitionValidator

logger = logging.getLogger(__name__)

_DECISIONS = set(KvaEstimate.TERMINAL_STATUSES)

KVA_FSM = TransitionValidator(
    {
        **{status: set(_DECISIONS) for status in KvaEstimate.PROPOSED_STATUSES},
        **{status: set() for status in KvaEstimate.TERMINAL_STATUSES},
    },
    field_name='KVA status',
)

MSG_NOT_REQUIRED = 'Kein KVA für diesen Auftrag erforderlich.'
MSG_ALREADY_DECIDED = 'KVA wurde bereits entschieden.'
MSG_SAVE_FAILED = 'Fehler beim Speichern der Entscheidung.'


@dataclass
class DecisionResult:
    kva_approved: bool
    kva_approved_at: datetime
    estimate_status: str
    notified: int = 0


def decision_status(approved: bool, disposal_option: Optional[str]) -> str:
    if approved:
        return KvaEstimate.STATUS_FREIGEGEBEN
    if disposal_option == RepairTicket.DISPOSAL_FREE:
        return KvaEstimate.STATUS_ENTSORGEN
    return KvaEstimate.STATUS_ABGELEHNT


def _lock_ticket(session, ticket_id: int) -> RepairTicket:
    return session.execute(
        select(RepairTicket)
        .where(RepairTicket.id == ticket_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one()


def _current_estimate(session, ticket_id: int) -> Optional[KvaEstimate]:
    return session.execute(
        select(KvaEstimate)
        .where(KvaEstimate.repair_ticket_id == ticket_id, KvaEstimate.is_current.is_(True))
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def check_preconditions(ticket: RepairTicket, current: Optional[KvaEstimate]):
    if not ticket.kva_required and current is None:
        raise DecisionConflict(description=MSG_NOT_REQUIRED)
    if current is not None and KVA_FSM.is_terminal(current.status):
        raise DecisionConflict(description=MSG_ALREADY_DECIDED)
    if current is None and ticket.kva_approved is not None:
        raise DecisionConflict(description=MSG_ALREADY_DECIDED)


def _status_note(approved: bool, disposal_option: Optional[str]) -> str:
    if approved:
        return 'KVA vom Kunden angenommen - Reparatur startet'
    if disposal_option == RepairTicket.DISPOSAL_FREE:
        return 'KVA vom Kunden abgelehnt - Kostenlose Entsorgung gewählt'
    return 'KVA vom Kunden abgelehnt'


def _history_note(approved: bool, disposal_option: Optional[str]) -> str:
    if approved:
        return 'KVA online vom Kunden freigegeben'
    if disposal_option == RepairTicket.DISPOSAL_FREE:
        return 'KVA online vom Kunden abgelehnt (Entsorgung)'
    return 'KVA online vom Kunden abgelehnt'


def apply_customer_decision(ticket: RepairTicket, approved: bool, disposal_option: Optional[str] = None, now: Optional[datetime] = None) -> DecisionResult:
    """Record the customer's approval or rejection of the current estimate.

    Raises DecisionConflict when a precondition fails (no writes happen) and
    StoreFailure when the transaction cannot be committed (rolled back).
    """
    session = get_db()
    decided_at = now or utcnow()
    if approved:
        disposal_option = None
    number = ticket.ticket_number
    try:
        ticket = _lock_ticket(session, ticket.id)
        current = _current_estimate(session, ticket.id)
    except SQLAlchemyError:
        session.rollback()
        logger.exception('Error locking ticket %s for KVA decision', number)
        raise StoreFailure(description=MSG_SAVE_FAILED)
    new_status = decision_status(approved, disposal_option)
    try:
        check_preconditions(ticket, current)
        if current is not None:
            KVA_FSM.assert_can_transition(current.status, new_status)
    except DecisionConflict:
        # release the row locks taken above
        session.rollback()
        raise

    try:
        if current is not None:
            current.status = new_status
            current.decision = new_status
            current.decision_at = decided_at
            current.decision_by_customer = True
            current.decision_channel = KvaEstimate.CHANNEL_ONLINE
            current.disposal_option = disposal_option
            session.add(KvaHistory(
                kva_estimate_id=current.id,
                action=KvaHistory.ACTION_CUSTOMER_APPROVED if approved else KvaHistory.ACTION_CUSTOMER_REJECTED,
                new_values={'decision': new_status, 'disposal_option': disposal_option},
                note=_history_note(approved, disposal_option),
            ))

        old_status = ticket.status
        ticket.kva_approved = approved
        ticket.kva_approved_at = decided_at
        if disposal_option:
            ticket.disposal_option = disposal_option
        if approved:
            ticket.status = RepairTicket.STATUS_IN_REPARATUR
        session.add(StatusHistory(
            repair_ticket_id=ticket.id,
            old_status=old_status,
            new_status=ticket.status,
            note=_status_note(approved, disposal_option),
        ))
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception('Error saving KVA decision for ticket %s', ticket.ticket_number)
        raise StoreFailure(description=MSG_SAVE_FAILED)

    logger.info('KVA decision recorded: ticket=%s approved=%s status=%s', ticket.ticket_number, approved, new_status)
    notified = notify_staff_safely(
        ticket,
        trigger=NotificationLog.TRIGGER_KVA_APPROVED if approved else NotificationLog.TRIGGER_KVA_REJECTED,
        type=NotificationLog.TYPE_KVA_DECISION,
        title='KVA angenommen' if approved else 'KVA abgelehnt',
        message=f"Kunde hat KVA für {ticket.ticket_number} {'angenommen' if approved else 'abgelehnt'}.",
    )
    return DecisionResult(kva_approved=approved, kva_approved_at=decided_at, estimate_status=new_status, notified=notified)


__all__ = ['KVA_FSM', 'DecisionResult', 'decision_status', 'check_preconditions', 'apply_customer_decision']
