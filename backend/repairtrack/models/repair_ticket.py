from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, Numeric, DateTime, ForeignKey
from repairtrack.models.authz import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Monetary amounts are EUR with cent precision, handed out as floats in JSON
Money = Numeric(10, 2, asdecimal=False)


class Customer(Base):
    __tablename__ = 'customers'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    first_name: Mapped[str] = mapped_column(String(80), nullable=False)
    last_name: Mapped[str] = mapped_column(String(80), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)


class Device(Base):
    __tablename__ = 'devices'
    # Device type constants
    TYPE_HANDY = 'HANDY'
    TYPE_TABLET = 'TABLET'
    TYPE_LAPTOP = 'LAPTOP'
    TYPE_SMARTWATCH = 'SMARTWATCH'
    TYPE_OTHER = 'OTHER'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    brand: Mapped[str] = mapped_column(String(80), nullable=False)
    model: Mapped[str] = mapped_column(String(120), nullable=False)
    device_type: Mapped[str] = mapped_column(String(32), nullable=False, default=TYPE_HANDY)
    serial_number: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    imei: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)


class Location(Base):
    __tablename__ = 'locations'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)


class RepairTicket(Base):
    __tablename__ = 'repair_tickets'
    # Status constants (workshop order, terminal states last)
    STATUS_NEU_EINGEGANGEN = 'NEU_EINGEGANGEN'
    STATUS_IN_DIAGNOSE = 'IN_DIAGNOSE'
    STATUS_WARTET_AUF_TEIL_ODER_FREIGABE = 'WARTET_AUF_TEIL_ODER_FREIGABE'
    STATUS_IN_REPARATUR = 'IN_REPARATUR'
    STATUS_FERTIG_ZUR_ABHOLUNG = 'FERTIG_ZUR_ABHOLUNG'
    STATUS_EINGESENDET = 'EINGESENDET'
    STATUS_RUECKVERSAND_AN_B2B = 'RUECKVERSAND_AN_B2B'
    STATUS_RUECKVERSAND_AN_ENDKUNDE = 'RUECKVERSAND_AN_ENDKUNDE'
    STATUS_ABGEHOLT = 'ABGEHOLT'
    STATUS_STORNIERT = 'STORNIERT'
    # Disposal options chosen on KVA rejection
    DISPOSAL_RETURN = 'ZURUECKSENDEN'
    DISPOSAL_FREE = 'KOSTENLOS_ENTSORGEN'
    DISPOSAL_OPTIONS = (DISPOSAL_RETURN, DISPOSAL_FREE)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ticket_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(40), nullable=False, default=STATUS_NEU_EINGEGANGEN, index=True)
    # Opaque secret issued at intake; the public endpoint's only credential
    tracking_token: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    error_description_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    kva_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    kva_approved: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    kva_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    disposal_option: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    is_b2b: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    estimated_price: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    endcustomer_price: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    endcustomer_price_released: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_opt_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey('customers.id'), nullable=True)
    device_id: Mapped[Optional[int]] = mapped_column(ForeignKey('devices.id'), nullable=True)
    location_id: Mapped[Optional[int]] = mapped_column(ForeignKey('locations.id'), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    customer = relationship('Customer')
    device = relationship('Device')
    location = relationship('Location')

# Status flow is driven by staff tooling; the only customer-triggered edge is
# * -> IN_REPARATUR when a KVA is approved online.
