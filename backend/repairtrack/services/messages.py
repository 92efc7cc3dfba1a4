from __future__ import annotations
import logging
from typing import Any
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from repairtrack import get_db
from repairtrack.config.tracking import MESSAGE_MAX_LENGTH, MESSAGE_PREVIEW_LENGTH
from repairtrack.errors import InvalidRequest, StoreFailure
from repairtrack.models.history import StatusHistory, TicketMessage, CUSTOMER_MESSAGE_PREFIX
from repairtrack.models.notification import NotificationLog
from repairtrack.models.repair_ticket import RepairTicket
from repairtrack.services.notifications import notify_staff_safely

logger = logging.getLogger(__name__)

MSG_EMPTY = 'Nachricht darf nicht leer sein.'
MSG_SAVE_FAILED = 'Nachricht konnte nicht gespeichert werden.'


def clean_message(raw: Any, max_length: int = MESSAGE_MAX_LENGTH) -> str:
    """Trim and hard-truncate; blank or non-text input is rejected."""
    if not isinstance(raw, str):
        raise InvalidRequest(description=MSG_EMPTY)
    text = raw.strip()[:max_length]
    if not text:
        raise InvalidRequest(description=MSG_EMPTY)
    return text


def message_preview(text: str, length: int = MESSAGE_PREVIEW_LENGTH) -> str:
    return text[:length] + ('...' if len(text) > length else '')


def _store_in_status_history(ticket: RepairTicket, text: str):
    session = get_db()
    session.add(StatusHistory(
        repair_ticket_id=ticket.id,
        old_status=ticket.status,
        new_status=ticket.status,
        note=f'{CUSTOMER_MESSAGE_PREFIX} {text}',
    ))
    session.commit()


def post_customer_message(ticket: RepairTicket, raw: Any) -> str:
    """Store a customer message for the ticket and notify staff. Returns the stored text.

    If the message table rejects the insert, the text goes to the status history
    under the customer-message prefix instead so it is not lost.
    """
    text = clean_message(raw, current_app.config.get('TRACKING_MESSAGE_MAX_LENGTH', MESSAGE_MAX_LENGTH))
    session = get_db()
    try:
        session.add(TicketMessage(
            repair_ticket_id=ticket.id,
            sender_type=TicketMessage.SENDER_CUSTOMER,
            message_text=text,
        ))
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.warning('Customer message insert failed for ticket %s; storing in status history', ticket.ticket_number, exc_info=True)
        try:
            _store_in_status_history(ticket, text)
        except SQLAlchemyError:
            session.rollback()
            logger.exception('Status history fallback failed for ticket %s', ticket.ticket_number)
            raise StoreFailure(description=MSG_SAVE_FAILED)

    logger.info('Customer message stored: ticket=%s length=%d', ticket.ticket_number, len(text))
    notify_staff_safely(
        ticket,
        trigger=NotificationLog.TRIGGER_CUSTOMER_MESSAGE,
        type=NotificationLog.TYPE_NEW_CUSTOMER_MESSAGE,
        title='Neue Kundennachricht',
        message=f'Neue Nachricht vom Kunden für {ticket.ticket_number}: {message_preview(text)}',
    )
    return text


__all__ = ['clean_message', 'message_preview', 'post_customer_message']
