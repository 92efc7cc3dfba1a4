from __future__ import annotations
"""Customer-safe projections of ticket data for the public lookup.

All functions here are pure: they take plain values or mappings and never touch
the session, so the masking rules can be tested in isolation.

Masking rule for reseller (B2B) tickets: the end customer never sees internal or
wholesale costs, and sees the reseller's retail price only after the reseller
released it. Direct tickets show internal costs and have no retail price.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional
from repairtrack.models.history import CUSTOMER_MESSAGE_PREFIX
from repairtrack.utils.timestamps import isoformat

INTERNAL_COST_FIELDS = ('estimated_price', 'repair_cost', 'parts_cost', 'min_cost', 'max_cost')

KVA_FIELDS = (
    'id', 'version', 'kva_type', 'status',
    'repair_cost', 'parts_cost', 'total_cost', 'min_cost', 'max_cost',
    'kva_fee_amount', 'kva_fee_waived',
    'valid_until', 'diagnosis', 'repair_description',
    'decision_at', 'disposal_option',
    'endcustomer_price', 'endcustomer_price_released',
)


def mask_prices(raw: Mapping[str, Any], is_b2b: bool, endcustomer_price_released: bool) -> Dict[str, Any]:
    """Return a copy of raw with price fields masked for the given flags.

    Only keys present in raw are emitted; non-price keys pass through unchanged.
    """
    out = dict(raw)
    for key in INTERNAL_COST_FIELDS:
        if key in out and is_b2b:
            out[key] = None
    if 'endcustomer_price' in out and not (is_b2b and endcustomer_price_released):
        out['endcustomer_price'] = None
    if 'total_cost' in out and is_b2b and not endcustomer_price_released:
        out['total_cost'] = None
    return out


def customer_note(note: Optional[str]) -> Optional[str]:
    """Keep customer messages and KVA notes, drop internal workshop notes."""
    if not note:
        return None
    if note.startswith(CUSTOMER_MESSAGE_PREFIX) or 'KVA' in note:
        return note
    return None


def project_status_history(entries: Iterable[Any]) -> List[Dict[str, Any]]:
    return [
        {
            'id': e.id,
            'new_status': e.new_status,
            'created_at': isoformat(e.created_at),
            'note': customer_note(e.note),
        }
        for e in entries
    ]


def project_kva(kva: Any, is_b2b: bool) -> Optional[Dict[str, Any]]:
    if kva is None:
        return None
    raw = {f: getattr(kva, f) for f in KVA_FIELDS}
    raw['valid_until'] = isoformat(raw['valid_until'])
    raw['decision_at'] = isoformat(raw['decision_at'])
    out = mask_prices(raw, is_b2b, bool(kva.endcustomer_price_released))
    if kva.kva_fee_waived:
        out['kva_fee_amount'] = None
    return out


def project_ticket(ticket: Any, device: Any = None, location: Any = None, history: Iterable[Any] = (), kva: Any = None) -> Dict[str, Any]:
    """Build the lookup response. Device and location are reduced to non-identifying fields."""
    is_b2b = bool(ticket.is_b2b)
    released = bool(ticket.endcustomer_price_released)
    prices = mask_prices(
        {'estimated_price': ticket.estimated_price, 'endcustomer_price': ticket.endcustomer_price},
        is_b2b,
        released,
    )
    return {
        'ticket_number': ticket.ticket_number,
        'status': ticket.status,
        'created_at': isoformat(ticket.created_at),
        'updated_at': isoformat(ticket.updated_at),
        'error_description_text': ticket.error_description_text,
        'kva_required': ticket.kva_required,
        'kva_approved': ticket.kva_approved,
        'kva_approved_at': isoformat(ticket.kva_approved_at),
        'estimated_price': prices['estimated_price'],
        'endcustomer_price': prices['endcustomer_price'],
        'endcustomer_price_released': released,
        'is_b2b': is_b2b,
        'device': {'brand': device.brand, 'model': device.model, 'device_type': device.device_type} if device else None,
        'location': {'name': location.name} if location else None,
        'status_history': project_status_history(history),
        'kva': project_kva(kva, is_b2b),
    }


__all__ = ['INTERNAL_COST_FIELDS', 'mask_prices', 'customer_note', 'project_status_history', 'project_kva', 'project_ticket']
