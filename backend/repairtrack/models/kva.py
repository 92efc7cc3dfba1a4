from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey, JSON
from repairtrack.models.authz import Base
from repairtrack.models.repair_ticket import Money, utcnow


class KvaEstimate(Base):
    """Versioned cost estimate ("Kostenvoranschlag"); one row per ticket has is_current=True."""
    __tablename__ = 'kva_estimates'
    # Proposed states: still awaiting a decision
    STATUS_ENTWURF = 'ENTWURF'
    STATUS_ERSTELLT = 'ERSTELLT'
    STATUS_GESENDET = 'GESENDET'
    STATUS_WARTET_AUF_ANTWORT = 'WARTET_AUF_ANTWORT'
    STATUS_RUECKFRAGE = 'RUECKFRAGE'
    STATUS_ABGELAUFEN = 'ABGELAUFEN'
    # Terminal decisions
    STATUS_FREIGEGEBEN = 'FREIGEGEBEN'
    STATUS_ABGELEHNT = 'ABGELEHNT'
    STATUS_ENTSORGEN = 'ENTSORGEN'
    PROPOSED_STATUSES = (
        STATUS_ENTWURF,
        STATUS_ERSTELLT,
        STATUS_GESENDET,
        STATUS_WARTET_AUF_ANTWORT,
        STATUS_RUECKFRAGE,
        STATUS_ABGELAUFEN,
    )
    TERMINAL_STATUSES = (STATUS_FREIGEGEBEN, STATUS_ABGELEHNT, STATUS_ENTSORGEN)
    # Statuses the reminder job considers "waiting on the customer"
    AWAITING_CUSTOMER = (STATUS_GESENDET, STATUS_WARTET_AUF_ANTWORT)

    TYPE_FIXPREIS = 'FIXPREIS'
    TYPE_VARIABEL = 'VARIABEL'
    TYPE_BIS_ZU = 'BIS_ZU'

    CHANNEL_ONLINE = 'ONLINE'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    repair_ticket_id: Mapped[int] = mapped_column(ForeignKey('repair_tickets.id', ondelete='CASCADE'), nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    kva_type: Mapped[str] = mapped_column(String(16), nullable=False, default=TYPE_FIXPREIS)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_ERSTELLT, index=True)
    repair_cost: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    parts_cost: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    total_cost: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    min_cost: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    max_cost: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    kva_fee_amount: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    kva_fee_waived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    valid_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    diagnosis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    repair_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    decision: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    decision_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    decision_by_customer: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    decision_channel: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    disposal_option: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    endcustomer_price: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    endcustomer_price_released: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reminder_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    ticket = relationship('RepairTicket')


class KvaHistory(Base):
    """Append-only log of decision events on an estimate."""
    __tablename__ = 'kva_history'
    ACTION_CUSTOMER_APPROVED = 'KUNDE_FREIGEGEBEN'
    ACTION_CUSTOMER_REJECTED = 'KUNDE_ABGELEHNT'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kva_estimate_id: Mapped[int] = mapped_column(ForeignKey('kva_estimates.id', ondelete='CASCADE'), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    new_values: Mapped[dict] = mapped_column(JSON, default=dict)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
