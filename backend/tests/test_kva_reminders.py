from datetime import datetime, timedelta, timezone
from repairtrack import get_db
from repairtrack.models.notification import NotificationLog
from repairtrack.models.repair_ticket import utcnow
from repairtrack.services.kva_reminders import build_tracking_url, run_kva_reminders
from tests.test_utils_seed import create_customer, create_estimate, create_ticket, ensure_staff, staff_headers


def _queued(ticket):
    return get_db().query(NotificationLog).filter_by(
        repair_ticket_id=ticket.id, trigger=NotificationLog.TRIGGER_KVA_REMINDER
    ).all()


def test_build_tracking_url_quotes_parts():
    url = build_tracking_url('https://track.example.com/', 'TE 1', 'a/b+c')
    assert url == 'https://track.example.com/track?ticket=TE%201&token=a%2Fb%2Bc'


def test_due_estimate_is_reminded_once(app_context):
    now = datetime(2030, 3, 1, 8, 0, tzinfo=timezone.utc)
    t = create_ticket(customer=create_customer())
    kva = create_estimate(t, valid_until=now + timedelta(days=2), total_cost=149.0)
    run = run_kva_reminders(now=now)
    assert run.sent == 1
    assert run.errors == []
    rows = _queued(t)
    assert len(rows) == 1
    row = rows[0]
    assert row.status == NotificationLog.STATUS_QUEUED
    assert row.payload['to'] == 'kunde@example.com'
    assert row.payload['customer_name'] == 'Erika Mustermann'
    assert row.payload['kva_id'] == kva.id
    assert row.payload['total_cost'] == 149.0
    assert row.payload['tracking_url'].startswith(f'https://track.example.com/track?ticket={t.ticket_number}&token=')
    get_db().refresh(kva)
    assert kva.reminder_sent_at is not None

    again = run_kva_reminders(now=now + timedelta(hours=1))
    assert again.sent == 0
    assert len(_queued(t)) == 1


def test_estimates_outside_window_or_decided_are_ignored(app_context):
    now = datetime(2031, 6, 1, 8, 0, tzinfo=timezone.utc)
    customer = create_customer()
    later = create_ticket(customer=customer)
    create_estimate(later, valid_until=now + timedelta(days=10))
    expired = create_ticket(customer=customer)
    create_estimate(expired, valid_until=now - timedelta(hours=1))
    decided = create_ticket(customer=customer)
    create_estimate(decided, status='FREIGEGEBEN', valid_until=now + timedelta(days=1))
    draft = create_ticket(customer=customer)
    create_estimate(draft, status='ENTWURF', valid_until=now + timedelta(days=1))
    run = run_kva_reminders(now=now)
    assert run.sent == 0
    for t in (later, expired, decided, draft):
        assert _queued(t) == []


def test_customers_without_email_or_opt_in_are_skipped(app_context):
    now = datetime(2032, 1, 10, 8, 0, tzinfo=timezone.utc)
    no_mail = create_ticket(customer=create_customer(email=None))
    create_estimate(no_mail, valid_until=now + timedelta(days=1))
    opted_out = create_ticket(customer=create_customer(), email_opt_in=False)
    create_estimate(opted_out, valid_until=now + timedelta(days=1))
    run = run_kva_reminders(now=now)
    assert run.sent == 0
    assert run.skipped == 2
    assert _queued(no_mail) == [] and _queued(opted_out) == []


def test_dry_run_writes_nothing(app_context):
    now = datetime(2033, 2, 2, 8, 0, tzinfo=timezone.utc)
    t = create_ticket(customer=create_customer())
    kva = create_estimate(t, valid_until=now + timedelta(days=1))
    run = run_kva_reminders(now=now, dry_run=True)
    assert run.sent == 1
    assert _queued(t) == []
    get_db().refresh(kva)
    assert kva.reminder_sent_at is None


def test_reminder_route_requires_token(app_context, client):
    resp = client.post('/tracking/admin/kva-reminders', json={})
    assert resp.status_code == 401


def test_reminder_route_requires_permission(app_context, client):
    tech = ensure_staff('tech-reminders@example.com', roles=['TECHNIKER'])
    resp = client.post('/tracking/admin/kva-reminders', json={}, headers=staff_headers(tech, ['TECHNIKER']))
    assert resp.status_code == 403


def test_reminder_route_runs_job(app_context, client):
    desk = ensure_staff('desk-reminders@example.com', roles=['THEKE'])
    t = create_ticket(customer=create_customer())
    create_estimate(t, valid_until=utcnow() + timedelta(days=1))
    resp = client.post('/tracking/admin/kva-reminders', json={'dry_run': False}, headers=staff_headers(desk, ['THEKE']))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['success'] is True
    assert body['sent'] >= 1
    assert len(_queued(t)) == 1
