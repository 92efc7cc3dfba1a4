from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey, JSON
from repairtrack.models.authz import Base
from repairtrack.models.repair_ticket import utcnow


class NotificationLog(Base):
    """One row per (event, recipient). Staff rows carry user_id, customer rows customer_id."""
    __tablename__ = 'notification_logs'
    CHANNEL_EMAIL = 'EMAIL'

    TRIGGER_KVA_APPROVED = 'KVA_APPROVED'
    TRIGGER_KVA_REJECTED = 'KVA_REJECTED'
    TRIGGER_CUSTOMER_MESSAGE = 'CUSTOMER_MESSAGE'
    TRIGGER_KVA_REMINDER = 'KVA_REMINDER'

    TYPE_KVA_DECISION = 'KVA_DECISION'
    TYPE_NEW_CUSTOMER_MESSAGE = 'NEW_CUSTOMER_MESSAGE'
    TYPE_KVA_REMINDER = 'KVA_REMINDER'

    STATUS_NEW = 'NEW'
    STATUS_QUEUED = 'QUEUED'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    channel: Mapped[str] = mapped_column(String(16), nullable=False, default=CHANNEL_EMAIL)
    trigger: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_NEW)
    repair_ticket_id: Mapped[Optional[int]] = mapped_column(ForeignKey('repair_tickets.id', ondelete='CASCADE'), nullable=True, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), nullable=True, index=True)
    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey('customers.id'), nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    payload: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
