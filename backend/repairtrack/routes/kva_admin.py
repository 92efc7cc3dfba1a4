from __future__ import annotations
from flask import Blueprint, request
from repairtrack.constants.permissions import PERM_KVA_MANAGE
from repairtrack.decorators.auth import require_permissions
from repairtrack.services.kva_reminders import run_kva_reminders

kva_admin_bp = Blueprint('kva_admin', __name__)


@kva_admin_bp.post('/kva-reminders')
@require_permissions(PERM_KVA_MANAGE)
def send_kva_reminders():
    data = request.get_json(silent=True) or {}
    run = run_kva_reminders(dry_run=bool(data.get('dry_run')))
    return run.as_dict()
