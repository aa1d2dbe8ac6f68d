"""
In-memory storage for import wizard sessions.
Sessions expire after a period of inactivity.
Single-process only.
"""
from datetime import datetime, timedelta
from typing import Optional

from config import settings
from exceptions import ImportSessionNotFoundError
from services.import_wizard_service import ImportWizardController

_cache: dict[str, tuple[datetime, ImportWizardController]] = {}


def _ttl() -> timedelta:
    return timedelta(minutes=settings.session_ttl_minutes)


def store_session(controller: ImportWizardController) -> str:
    """Store a session, return its id."""
    _cache[controller.session_id] = (datetime.now() + _ttl(), controller)
    _cleanup_expired()
    return controller.session_id


def retrieve_session(session_id: str) -> Optional[ImportWizardController]:
    """Session by id, or None if expired/not found. Access extends its lifetime."""
    entry = _cache.get(session_id)
    if entry is None:
        return None
    expires_at, controller = entry
    if datetime.now() > expires_at:
        del _cache[session_id]
        return None
    _cache[session_id] = (datetime.now() + _ttl(), controller)
    return controller


def get_session(session_id: str) -> ImportWizardController:
    """
    Raises:
        ImportSessionNotFoundError: If the session is unknown or expired
    """
    controller = retrieve_session(session_id)
    if controller is None:
        raise ImportSessionNotFoundError(session_id)
    return controller


def delete_session(session_id: str) -> None:
    """Remove a session when the operator is done with it."""
    _cache.pop(session_id, None)


def clear_sessions() -> None:
    _cache.clear()


def _cleanup_expired() -> None:
    """Remove all expired entries."""
    now = datetime.now()
    expired = [k for k, (exp, _) in _cache.items() if now > exp]
    for k in expired:
        del _cache[k]
