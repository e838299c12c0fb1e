"""Ownership and role checks gating every read and mutation.

The gate is always handed a ``User`` freshly loaded from the store (see
``dental_booking.auth.dependencies.get_current_user``). It never looks at a
role supplied by the client.
"""

import logging

from dental_booking.core.errors import PermissionDenied
from dental_booking.models.appointment import Appointment
from dental_booking.models.user import User

logger = logging.getLogger(__name__)


def is_admin(user: User | None) -> bool:
    return user is not None and user.is_admin


def owns(user: User | None, appointment: Appointment) -> bool:
    return user is not None and bool(user.id) and appointment.user_id == user.id


def can_read(user: User | None, appointment: Appointment) -> bool:
    return is_admin(user) or owns(user, appointment)


def can_mutate(user: User | None, appointment: Appointment) -> bool:
    return is_admin(user) or owns(user, appointment)


def can_manage_catalog(user: User | None) -> bool:
    return is_admin(user)


def require_read(user: User | None, appointment: Appointment) -> None:
    if not can_read(user, appointment):
        _deny(user, f'read appointment {appointment.id}')
        raise PermissionDenied('You can only view your own appointments.')


def require_mutate(user: User | None, appointment: Appointment) -> None:
    if not can_mutate(user, appointment):
        _deny(user, f'modify appointment {appointment.id}')
        raise PermissionDenied('You can only change your own appointments.')


def require_admin(user: User | None, action: str) -> None:
    if not is_admin(user):
        _deny(user, action)
        raise PermissionDenied(f'Only administrators can {action}.')


def require_catalog_manager(user: User | None) -> None:
    if not can_manage_catalog(user):
        _deny(user, 'manage the catalog')
        raise PermissionDenied('Only administrators can manage dentists and services.')


def _deny(user: User | None, action: str) -> None:
    logger.warning('Denied user %s attempt to %s', getattr(user, 'id', None), action)
