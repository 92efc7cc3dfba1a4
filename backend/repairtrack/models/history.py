from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, DateTime, ForeignKey
from repairtrack.models.authz import Base
from repairtrack.models.repair_ticket import utcnow

# Prefix marking a status-history note as a message written by the customer
CUSTOMER_MESSAGE_PREFIX = '[Kundennachricht]'


class StatusHistory(Base):
    """Append-only log of ticket status transitions, also used as a fallback message channel."""
    __tablename__ = 'status_history'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    repair_ticket_id: Mapped[int] = mapped_column(ForeignKey('repair_tickets.id', ondelete='CASCADE'), nullable=False, index=True)
    old_status: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    new_status: Mapped[str] = mapped_column(String(40), nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)


class TicketMessage(Base):
    __tablename__ = 'ticket_messages'
    SENDER_CUSTOMER = 'customer'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    repair_ticket_id: Mapped[int] = mapped_column(ForeignKey('repair_tickets.id', ondelete='CASCADE'), nullable=False, index=True)
    sender_type: Mapped[str] = mapped_column(String(16), nullable=False)
    sender_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True)
    message_text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
