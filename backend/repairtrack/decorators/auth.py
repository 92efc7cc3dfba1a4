import logging
from functools import wraps
from flask import abort
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from repairtrack.services.policy import has_permissions

logger = logging.getLogger(__name__)


def require_permissions(*codes: str):
    """Staff-only guard: a valid JWT whose ``perms`` claim holds every code."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_permissions(*codes):
                logger.warning('User %s lacks %s for %s', get_jwt_identity(), ','.join(codes), fn.__name__)
                abort(403, description='Missing permission')
            return fn(*args, **kwargs)
        return wrapper
    return outer
