from repairtrack import get_db
from repairtrack.models.history import StatusHistory
from tests.test_utils_seed import create_ticket, create_estimate, track


def test_lookup_direct_ticket_shows_internal_prices(app_context, client):
    t = create_ticket(estimated_price=129.0)
    create_estimate(t, kva_fee_amount=19.9)
    resp = track(client, 'lookup', t)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['ticket_number'] == t.ticket_number
    assert body['status'] == 'IN_DIAGNOSE'
    assert body['estimated_price'] == 129.0
    assert body['endcustomer_price'] is None
    assert body['is_b2b'] is False
    assert body['kva']['repair_cost'] == 80.0
    assert body['kva']['total_cost'] == 150.0
    assert body['kva']['kva_fee_amount'] == 19.9
    assert resp.headers['Access-Control-Allow-Origin'] == '*'


def test_lookup_omits_device_identifiers_and_location_contact(app_context, client):
    t = create_ticket()
    body = track(client, 'lookup', t).get_json()
    assert body['device'] == {'brand': 'Apple', 'model': 'iPhone 13', 'device_type': 'HANDY'}
    assert body['location'] == {'name': 'Filiale Mitte'}
    raw = track(client, 'lookup', t).get_data(as_text=True)
    assert '356938035643809' not in raw
    assert 'SN-SECRET' not in raw
    assert 'Hauptstr' not in raw
    assert t.tracking_token not in raw


def test_lookup_reseller_ticket_before_release(app_context, client):
    t = create_ticket(is_b2b=True, estimated_price=60.0, endcustomer_price=199.0, endcustomer_price_released=False)
    create_estimate(t, endcustomer_price=199.0, endcustomer_price_released=False)
    body = track(client, 'lookup', t).get_json()
    assert body['estimated_price'] is None
    assert body['endcustomer_price'] is None
    kva = body['kva']
    for key in ('repair_cost', 'parts_cost', 'min_cost', 'max_cost', 'total_cost', 'endcustomer_price'):
        assert kva[key] is None, key


def test_lookup_reseller_ticket_after_release(app_context, client):
    t = create_ticket(is_b2b=True, estimated_price=60.0, endcustomer_price=199.0, endcustomer_price_released=True)
    create_estimate(t, endcustomer_price=199.0, endcustomer_price_released=True)
    body = track(client, 'lookup', t).get_json()
    assert body['estimated_price'] is None
    assert body['endcustomer_price'] == 199.0
    assert body['kva']['endcustomer_price'] == 199.0
    assert body['kva']['repair_cost'] is None


def test_lookup_filters_internal_history_notes(app_context, client):
    t = create_ticket()
    session = get_db()
    session.add_all([
        StatusHistory(repair_ticket_id=t.id, old_status=None, new_status='NEU_EINGEGANGEN', note=None),
        StatusHistory(repair_ticket_id=t.id, old_status='NEU_EINGEGANGEN', new_status='IN_DIAGNOSE', note='Techniker: Platine prüfen, EK 35 EUR'),
        StatusHistory(repair_ticket_id=t.id, old_status='IN_DIAGNOSE', new_status='IN_DIAGNOSE', note='KVA per E-Mail versendet'),
        StatusHistory(repair_ticket_id=t.id, old_status='IN_DIAGNOSE', new_status='IN_DIAGNOSE', note='[Kundennachricht] Bitte anrufen'),
    ])
    session.commit()
    history = track(client, 'lookup', t).get_json()['status_history']
    assert [h['new_status'] for h in history] == ['NEU_EINGEGANGEN', 'IN_DIAGNOSE', 'IN_DIAGNOSE', 'IN_DIAGNOSE']
    assert [h['note'] for h in history] == [None, None, 'KVA per E-Mail versendet', '[Kundennachricht] Bitte anrufen']


def test_lookup_without_estimate(app_context, client):
    t = create_ticket(kva_required=False)
    body = track(client, 'lookup', t).get_json()
    assert body['kva'] is None
    assert body['kva_required'] is False
    assert body['kva_approved'] is None


def test_lookup_reflects_changes_committed_elsewhere(app_context, client):
    from sqlalchemy import update
    from sqlalchemy.orm import Session
    from repairtrack.models.kva import KvaEstimate
    t = create_ticket(is_b2b=True, endcustomer_price=199.0, endcustomer_price_released=True)
    kva = create_estimate(t, endcustomer_price=199.0, endcustomer_price_released=True)
    first = track(client, 'lookup', t).get_json()
    assert first['kva']['endcustomer_price'] == 199.0

    # staff withdraw the release from another session
    other = Session(bind=get_db().get_bind())
    try:
        other.execute(
            update(KvaEstimate)
            .where(KvaEstimate.id == kva.id)
            .values(endcustomer_price_released=False, status='GESENDET')
        )
        other.commit()
    finally:
        other.close()

    second = track(client, 'lookup', t).get_json()
    assert second['kva']['endcustomer_price_released'] is False
    assert second['kva']['endcustomer_price'] is None
    assert second['kva']['total_cost'] is None


def test_request_session_is_removed_after_response(app_instance, client):
    import repairtrack
    with app_instance.app_context():
        t = create_ticket()
        number, token = t.ticket_number, t.tracking_token
    resp = client.post('/tracking/track-ticket', json={
        'action': 'lookup', 'ticket_number': number, 'tracking_token': token,
    })
    assert resp.status_code == 200
    assert not repairtrack.SessionLocal.registry.has()
