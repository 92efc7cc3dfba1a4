from __future__ import annotations
from typing import Any, Dict
from sqlalchemy import select
from repairtrack import get_db
from repairtrack.models.history import StatusHistory
from repairtrack.models.kva import KvaEstimate
from repairtrack.models.repair_ticket import RepairTicket, Device, Location
from repairtrack.services.projection import project_ticket


def lookup_ticket(ticket: RepairTicket) -> Dict[str, Any]:
    """Read-only: load what the customer may see and hand it to the masking projection.

    Every read refreshes from the database; staff may have changed prices or release
    flags since this session last saw the rows.
    """
    session = get_db()
    device = session.get(Device, ticket.device_id, populate_existing=True) if ticket.device_id else None
    location = session.get(Location, ticket.location_id, populate_existing=True) if ticket.location_id else None
    history = session.execute(
        select(StatusHistory)
        .where(StatusHistory.repair_ticket_id == ticket.id)
        .order_by(StatusHistory.created_at.asc(), StatusHistory.id.asc())
        .execution_options(populate_existing=True)
    ).scalars().all()
    kva = session.execute(
        select(KvaEstimate)
        .where(KvaEstimate.repair_ticket_id == ticket.id, KvaEstimate.is_current.is_(True))
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    return project_ticket(ticket, device=device, location=location, history=history, kva=kva)
