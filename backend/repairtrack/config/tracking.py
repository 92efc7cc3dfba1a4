"""Defaults and env parsing for the public tracking endpoint and the KVA reminder job."""
from typing import Any, Dict, Mapping, Tuple
from repairtrack.constants.permissions import STAFF_ROLES

RATE_LIMIT_WINDOW = 60
RATE_LIMIT_MAX = 10
RATE_LIMIT_CLEANUP_PROBABILITY = 0.1
RETRY_AFTER_SECONDS = 60
MESSAGE_MAX_LENGTH = 1000
MESSAGE_PREVIEW_LENGTH = 100
NOTIFY_ROLES: Tuple[str, ...] = ('ADMIN', 'THEKE', 'TECHNIKER')
REMINDER_HORIZON_DAYS = 3


def _parse_roles(raw) -> Tuple[str, ...]:
    roles = tuple(r.strip().upper() for r in raw.split(',') if r.strip())
    if not roles:
        raise ValueError('TRACKING_NOTIFY_ROLES must name at least one role')
    unknown = [r for r in roles if r not in STAFF_ROLES]
    if unknown:
        raise ValueError(f"TRACKING_NOTIFY_ROLES has non-staff roles: {', '.join(unknown)}")
    return roles


def load_tracking_config(env: Mapping[str, str]) -> Dict[str, Any]:
    try:
        cfg = {
            'TRACKING_RATE_LIMIT_WINDOW': int(env.get('TRACKING_RATE_LIMIT_WINDOW', RATE_LIMIT_WINDOW)),
            'TRACKING_RATE_LIMIT_MAX': int(env.get('TRACKING_RATE_LIMIT_MAX', RATE_LIMIT_MAX)),
            'TRACKING_RATE_LIMIT_CLEANUP_PROBABILITY': float(
                env.get('TRACKING_RATE_LIMIT_CLEANUP_PROBABILITY', RATE_LIMIT_CLEANUP_PROBABILITY)
            ),
            'TRACKING_MESSAGE_MAX_LENGTH': int(env.get('TRACKING_MESSAGE_MAX_LENGTH', MESSAGE_MAX_LENGTH)),
            'TRACKING_NOTIFY_ROLES': _parse_roles(env.get('TRACKING_NOTIFY_ROLES', ','.join(NOTIFY_ROLES))),
            'PUBLIC_APP_URL': env.get('PUBLIC_APP_URL', ''),
            'KVA_REMINDER_HORIZON_DAYS': int(env.get('KVA_REMINDER_HORIZON_DAYS', REMINDER_HORIZON_DAYS)),
        }
        if cfg['TRACKING_RATE_LIMIT_WINDOW'] <= 0 or cfg['TRACKING_RATE_LIMIT_MAX'] <= 0:
            raise ValueError('rate limit window and maximum must be positive')
        if not 0.0 <= cfg['TRACKING_RATE_LIMIT_CLEANUP_PROBABILITY'] <= 1.0:
            raise ValueError('cleanup probability must be between 0 and 1')
        if cfg['TRACKING_MESSAGE_MAX_LENGTH'] <= 0:
            raise ValueError('message max length must be positive')
        return cfg
    except ValueError as e:
        raise ValueError(f'invalid tracking configuration: {e}') from e
