from __future__ import annotations
import hmac
import logging
from typing import Tuple
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from repairtrack import get_db
from repairtrack.errors import TicketNotFound, AccessDenied, StoreFailure
from repairtrack.models.repair_ticket import RepairTicket

logger = logging.getLogger(__name__)


def normalize_credentials(ticket_number: str, token: str) -> Tuple[str, str]:
    return ticket_number.strip().upper(), token.strip()


def verify_ticket_access(ticket_number: str, token: str, client_key: str = 'unknown') -> RepairTicket:
    """Resolve a ticket by its public number and check the caller's tracking token.

    Unknown numbers raise TicketNotFound (404), token mismatches AccessDenied (403);
    both carry the same message so the endpoint cannot be used to probe for valid numbers.
    """
    number, token = normalize_credentials(ticket_number, token)
    session = get_db()
    try:
        ticket = session.execute(
            select(RepairTicket)
            .where(RepairTicket.ticket_number == number)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
    except SQLAlchemyError:
        session.rollback()
        logger.exception('Database error looking up ticket %s', number)
        raise StoreFailure()
    if ticket is None:
        logger.info('Ticket not found: %s (client %s)', number, client_key)
        raise TicketNotFound()
    stored = ticket.tracking_token or ''
    if not stored or not hmac.compare_digest(stored.encode(), token.encode()):
        logger.info('Invalid tracking token for ticket %s (client %s)', number, client_key)
        raise AccessDenied()
    return ticket


__all__ = ['normalize_credentials', 'verify_ticket_access']
