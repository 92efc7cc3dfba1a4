from __future__ import annotations
import logging
from typing import Iterable, List
from flask import current_app
from sqlalchemy import select
from repairtrack import get_db
from repairtrack.config.tracking import NOTIFY_ROLES
from repairtrack.models.authz import UserRole
from repairtrack.models.notification import NotificationLog
from repairtrack.models.repair_ticket import RepairTicket

logger = logging.getLogger(__name__)


def staff_recipient_ids(roles: Iterable[str]) -> List[int]:
    """Distinct user ids holding any of roles, in first-seen order."""
    session = get_db()
    rows = session.execute(
        select(UserRole.user_id).where(UserRole.role.in_(list(roles))).order_by(UserRole.user_id)
    ).scalars()
    return list(dict.fromkeys(rows))


def notify_staff(ticket: RepairTicket, *, trigger: str, type: str, title: str, message: str) -> int:
    """Insert one notification per operational staff member and commit.

    Raises on store failure; callers treat fan-out as best effort (see notify_staff_safely).
    """
    roles = current_app.config.get('TRACKING_NOTIFY_ROLES', NOTIFY_ROLES)
    user_ids = staff_recipient_ids(roles)
    if not user_ids:
        return 0
    session = get_db()
    session.add_all([
        NotificationLog(
            channel=NotificationLog.CHANNEL_EMAIL,
            trigger=trigger,
            type=type,
            status=NotificationLog.STATUS_NEW,
            repair_ticket_id=ticket.id,
            user_id=uid,
            title=title,
            message=message,
            is_read=False,
        )
        for uid in user_ids
    ])
    session.commit()
    return len(user_ids)


def notify_staff_safely(ticket: RepairTicket, **kwargs) -> int:
    """Degrade, don't fail: fan-out errors are logged and reported as zero notifications."""
    try:
        return notify_staff(ticket, **kwargs)
    except Exception:
        logger.exception('Staff notification fan-out failed for ticket %s', ticket.ticket_number)
        get_db().rollback()
        return 0


__all__ = ['staff_recipient_ids', 'notify_staff', 'notify_staff_safely']
