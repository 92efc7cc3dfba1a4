"""HTTP-aware error types for the public tracking endpoint.

Raised from services and views; the tracking blueprint renders every one of them
as ``{"error": description}``. Messages are customer-facing (German) and must never
carry internal identifiers.
"""
from __future__ import annotations
from werkzeug.exceptions import HTTPException

# Shared by unknown ticket numbers and wrong tokens so callers cannot tell them apart
ACCESS_DENIED_MESSAGE = 'Auftrag nicht gefunden oder Tracking-Token ungültig.'


class TrackingError(HTTPException):
    code = 500
    description = 'Ein Fehler ist aufgetreten. Bitte versuchen Sie es später erneut.'


class InvalidRequest(TrackingError):
    code = 400
    description = 'Ungültige Anfrage.'


class TicketNotFound(TrackingError):
    code = 404
    description = ACCESS_DENIED_MESSAGE


class AccessDenied(TrackingError):
    code = 403
    description = ACCESS_DENIED_MESSAGE


class DecisionConflict(TrackingError):
    """KVA not applicable or already decided; safe to explain to a token holder."""
    code = 400
    description = 'KVA wurde bereits entschieden.'


class RateLimited(TrackingError):
    code = 429
    description = 'Zu viele Anfragen. Bitte warten Sie einen Moment.'

    def __init__(self, retry_after: int = 60, description=None):
        super().__init__(description=description)
        self.retry_after = retry_after

    def get_headers(self, environ=None, scope=None):
        headers = super().get_headers(environ, scope)
        headers.append(('Retry-After', str(self.retry_after)))
        return headers


class StoreFailure(TrackingError):
    code = 500
    description = 'Datenbankfehler. Bitte versuchen Sie es später erneut.'


__all__ = [
    'ACCESS_DENIED_MESSAGE', 'TrackingError', 'InvalidRequest', 'TicketNotFound', 'AccessDenied',
    'DecisionConflict', 'RateLimited', 'StoreFailure',
]
