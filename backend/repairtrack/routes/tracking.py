from __future__ import annotations
from flask import Blueprint, request, current_app, jsonify, make_response, abort
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from repairtrack.config.tracking import RETRY_AFTER_SECONDS
from repairtrack.errors import InvalidRequest, RateLimited, StoreFailure, TrackingError
from repairtrack.models.repair_ticket import RepairTicket
from repairtrack.services.access import verify_ticket_access
from repairtrack.services.kva_decision import apply_customer_decision
from repairtrack.services.lookup import lookup_ticket
from repairtrack.services.messages import post_customer_message
from repairtrack.utils.timestamps import isoformat
from repairtrack.utils.validation import validate_choice, optional_choice, require_bool

tracking_bp = Blueprint('tracking', __name__)

ACTION_LOOKUP = 'lookup'
ACTION_KVA_DECISION = 'kva_decision'
ACTION_SEND_MESSAGE = 'send_message'
ACTIONS = (ACTION_LOOKUP, ACTION_KVA_DECISION, ACTION_SEND_MESSAGE)

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type',
    'Access-Control-Allow-Methods': 'POST, OPTIONS',
}


def client_key() -> str:
    forwarded = request.headers.get('X-Forwarded-For', '')
    first = forwarded.split(',')[0].strip()
    return first or request.headers.get('X-Real-IP') or request.remote_addr or 'unknown'


@tracking_bp.after_request
def add_cors_headers(resp):
    resp.headers.update(CORS_HEADERS)
    return resp


@tracking_bp.errorhandler(HTTPException)
def handle_http_error(e):  # type: ignore
    resp = jsonify({'error': e.description})
    resp.status_code = e.code
    for name, value in e.get_headers():
        if name.lower() != 'content-type':
            resp.headers[name] = value
    return resp


@tracking_bp.errorhandler(SQLAlchemyError)
def handle_store_error(e):  # type: ignore
    current_app.logger.exception('Database error in track-ticket')
    return handle_http_error(StoreFailure())


@tracking_bp.errorhandler(Exception)
def handle_unexpected(e):  # type: ignore
    current_app.logger.exception('Error in track-ticket')
    return handle_http_error(TrackingError())


@tracking_bp.route('/track-ticket', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'])
def track_ticket():
    if request.method == 'OPTIONS':
        return make_response('', 200)

    key = client_key()
    limiter = current_app.extensions['tracking_rate_limiter']
    if not limiter.allow(key):
        current_app.logger.warning('Rate limit exceeded for client %s', key)
        raise RateLimited(retry_after=RETRY_AFTER_SECONDS)

    if request.method != 'POST':
        abort(405, valid_methods=['POST', 'OPTIONS'])

    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise InvalidRequest()
    ticket_number = body.get('ticket_number')
    token = body.get('tracking_token')
    if not isinstance(ticket_number, str) or not ticket_number.strip() or not isinstance(token, str) or not token.strip():
        current_app.logger.info('Missing credentials (client %s)', key)
        raise InvalidRequest(description='Auftragsnummer und Tracking-Token sind erforderlich.')
    action = validate_choice(body.get('action'), ACTIONS, 'Ungültige Aktion.')

    ticket = verify_ticket_access(ticket_number, token, client_key=key)

    if action == ACTION_LOOKUP:
        return lookup_ticket(ticket)
    if action == ACTION_KVA_DECISION:
        approved = require_bool(body.get('kva_approved'), 'KVA-Entscheidung fehlt.')
        disposal = optional_choice(body.get('disposal_option'), RepairTicket.DISPOSAL_OPTIONS, 'Ungültige Entsorgungsoption.')
        result = apply_customer_decision(ticket, approved, disposal)
        return {
            'success': True,
            'kva_approved': result.kva_approved,
            'kva_approved_at': isoformat(result.kva_approved_at),
        }
    post_customer_message(ticket, body.get('message'))
    return {'success': True}
