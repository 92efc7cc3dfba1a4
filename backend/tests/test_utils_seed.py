"""Test seeding utilities to reduce duplication.

These helpers create staff users, tickets and estimates with unique identifiers so
tests can share the session-scoped in-memory database without colliding.
"""
import secrets
from itertools import count
from typing import Iterable, Optional
from flask_jwt_extended import create_access_token
from repairtrack import get_db
from repairtrack.constants.permissions import permissions_for_roles
from repairtrack.models.authz import User, UserRole
from repairtrack.models.repair_ticket import RepairTicket, Device, Location, Customer
from repairtrack.models.kva import KvaEstimate

_seq = count(1)


def ensure_staff(email: str, roles: Iterable[str] = ('THEKE',)) -> User:
    """Idempotently ensure a staff user holding (at least) the given roles."""
    session = get_db()
    u = session.query(User).filter_by(email=email).one_or_none()
    if not u:
        u = User(name=email.split('@')[0], email=email)
        session.add(u); session.flush()
    existing = {r.role for r in session.query(UserRole).filter_by(user_id=u.id)}
    for role in roles:
        if role not in existing:
            session.add(UserRole(user_id=u.id, role=role))
    session.commit()
    return u


def staff_headers(user: User, roles: Iterable[str]):
    token = create_access_token(identity=str(user.id), additional_claims={
        'perms': permissions_for_roles(list(roles)),
        'roles': list(roles),
    })
    return {'Authorization': f'Bearer {token}'}


def create_ticket(customer: Optional[Customer] = None, **overrides) -> RepairTicket:
    """Create a ticket with a device and location. Not idempotent: each call yields a new number."""
    session = get_db()
    device = Device(brand='Apple', model='iPhone 13', device_type=Device.TYPE_HANDY, serial_number='SN-SECRET', imei='356938035643809')
    location = Location(name='Filiale Mitte', address='Hauptstr. 1', phone='030 123456')
    session.add_all([device, location]); session.flush()
    fields = dict(
        ticket_number=f'TE{next(_seq):06d}',
        tracking_token=secrets.token_urlsafe(16),
        status=RepairTicket.STATUS_IN_DIAGNOSE,
        error_description_text='Display gebrochen',
        kva_required=True,
        device_id=device.id,
        location_id=location.id,
        customer_id=customer.id if customer else None,
    )
    fields.update(overrides)
    ticket = RepairTicket(**fields)
    session.add(ticket); session.commit(); session.refresh(ticket)
    return ticket


def create_estimate(ticket: RepairTicket, **overrides) -> KvaEstimate:
    session = get_db()
    fields = dict(
        repair_ticket_id=ticket.id,
        version=1,
        is_current=True,
        status=KvaEstimate.STATUS_GESENDET,
        repair_cost=80.0,
        parts_cost=70.0,
        total_cost=150.0,
        min_cost=120.0,
        max_cost=180.0,
    )
    fields.update(overrides)
    kva = KvaEstimate(**fields)
    session.add(kva); session.commit(); session.refresh(kva)
    return kva


def create_customer(email: Optional[str] = 'kunde@example.com') -> Customer:
    session = get_db()
    c = Customer(first_name='Erika', last_name='Mustermann', email=email)
    session.add(c); session.commit(); session.refresh(c)
    return c


def track(client, action: str, ticket: RepairTicket, token: Optional[str] = None, headers=None, **extra):
    body = {
        'action': action,
        'ticket_number': ticket.ticket_number,
        'tracking_token': ticket.tracking_token if token is None else token,
    }
    body.update(extra)
    return client.post('/tracking/track-ticket', json=body, headers=headers or {})


__all__ = [
    'ensure_staff', 'staff_headers', 'create_ticket', 'create_estimate', 'create_customer', 'track'
]
