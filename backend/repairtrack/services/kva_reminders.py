"""Queue reminder emails for estimates about to expire without a customer decision.

The job only writes outbox rows (notification_logs, status QUEUED); delivering
them is the mailer's business. Each estimate is reminded at most once.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional
from urllib.parse import quote

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from repairtrack import get_db
from repairtrack.config.tracking import REMINDER_HORIZON_DAYS
from repairtrack.models.kva import KvaEstimate
from repairtrack.models.notification import NotificationLog
from repairtrack.models.repair_ticket import utcnow
from repairtrack.utils.timestamps import canonicalize_timestamp, isoformat

logger = logging.getLogger(__name__)


@dataclass
class ReminderRun:
    sent: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def as_dict(self):
        out = {'success': True, 'sent': self.sent, 'skipped': self.skipped}
        if self.errors:
            out['errors'] = self.errors
        return out


def build_tracking_url(base_url: str, ticket_number: str, token: str) -> str:
    base = (base_url or '').rstrip('/')
    return f"{base}/track?ticket={quote(ticket_number, safe='')}&token={quote(token, safe='')}"


def find_due_estimates(now: datetime, horizon_days: int) -> List[KvaEstimate]:
    """Current estimates awaiting the customer whose validity ends within the horizon."""
    session = get_db()
    rows = session.execute(
        select(KvaEstimate)
        .where(
            KvaEstimate.status.in_(KvaEstimate.AWAITING_CUSTOMER),
            KvaEstimate.is_current.is_(True),
            KvaEstimate.reminder_sent_at.is_(None),
            KvaEstimate.valid_until.is_not(None),
        )
        .order_by(KvaEstimate.valid_until.asc())
    ).scalars().all()
    # compared in Python: SQLite stores naive timestamps
    until = now + timedelta(days=horizon_days)
    return [k for k in rows if now < canonicalize_timestamp(k.valid_until) <= until]


def _queue_reminder(kva: KvaEstimate, now: datetime, base_url: str) -> bool:
    ticket = kva.ticket
    customer = ticket.customer
    if customer is None or not customer.email or not ticket.email_opt_in:
        logger.info('Skipping KVA %s: no email or opted out', kva.id)
        return False
    session = get_db()
    session.add(NotificationLog(
        channel=NotificationLog.CHANNEL_EMAIL,
        trigger=NotificationLog.TRIGGER_KVA_REMINDER,
        type=NotificationLog.TYPE_KVA_REMINDER,
        status=NotificationLog.STATUS_QUEUED,
        repair_ticket_id=ticket.id,
        customer_id=customer.id,
        title=f'Erinnerung: Kostenvoranschlag {ticket.ticket_number}',
        payload={
            'to': customer.email,
            'customer_name': f'{customer.first_name} {customer.last_name}'.strip(),
            'tracking_url': build_tracking_url(base_url, ticket.ticket_number, ticket.tracking_token or ''),
            'kva_id': kva.id,
            'total_cost': kva.total_cost,
            'valid_until': isoformat(kva.valid_until),
        },
    ))
    kva.reminder_sent_at = now
    return True


def run_kva_reminders(now: Optional[datetime] = None, dry_run: bool = False) -> ReminderRun:
    now = canonicalize_timestamp(now or utcnow())
    horizon = current_app.config.get('KVA_REMINDER_HORIZON_DAYS', REMINDER_HORIZON_DAYS)
    base_url = current_app.config.get('PUBLIC_APP_URL', '')
    session = get_db()
    run = ReminderRun()
    due = find_due_estimates(now, horizon)
    logger.info('KVA reminder job: %d estimates due', len(due))
    for kva in due:
        try:
            if not _queue_reminder(kva, now, base_url):
                run.skipped += 1
                continue
            if dry_run:
                session.rollback()
            else:
                session.commit()
            run.sent += 1
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception('Error queueing reminder for KVA %s', kva.id)
            run.errors.append(f'KVA {kva.id}: {e.__class__.__name__}')
    logger.info('KVA reminder job completed: sent=%d skipped=%d errors=%d', run.sent, run.skipped, len(run.errors))
    return run


__all__ = ['ReminderRun', 'build_tracking_url', 'find_due_estimates', 'run_kva_reminders']
