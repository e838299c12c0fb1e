"""Maps an authenticated principal onto an application ``User``."""

import logging
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dental_booking.core.errors import NotFoundError, ValidationError
from dental_booking.database import store_errors
from dental_booking.models.user import ROLE_PATIENT, ROLES, User
from dental_booking.services.authorization import require_admin

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('first_name', 'last_name', 'phone', 'age', 'gender', 'address')
MIN_AGE = 1
MAX_AGE = 120


class Principal(BaseModel):
    """An identity already verified by the identity provider."""

    subject: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    photo_url: str | None = None
    provider: str | None = None


def _find_user(db: Session, subject: str, email: str) -> User | None:
    user = db.query(User).filter(User.subject == subject).first()
    if user is None:
        user = db.query(User).filter(User.email == email).first()
    return user


def resolve_or_create_user(db: Session, principal: Principal) -> User:
    email = (principal.email or '').strip().lower()
    subject = (principal.subject or '').strip()
    if not email or '@' not in email:
        raise ValidationError('A verified email address is required to sign in.', field='email')
    if not subject:
        raise ValidationError('The identity provider did not supply a stable identifier.', field='subject')

    with store_errors(db):
        user = _find_user(db, subject, email)
        if user is None:
            user = User(
                subject=subject,
                email=email,
                first_name=principal.first_name,
                last_name=principal.last_name,
                profile_image_url=principal.photo_url,
                role=ROLE_PATIENT,
                sso_provider=principal.provider,
            )
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                # Another request created the same user first.
                db.rollback()
                user = _find_user(db, subject, email)
                if user is None:
                    raise
                return user
            db.refresh(user)
            logger.info('Created user %s for subject %s', user.id, subject)
            return user

        user.subject = user.subject or subject
        user.sso_provider = user.sso_provider or principal.provider
        if principal.first_name:
            user.first_name = principal.first_name
        if principal.last_name:
            user.last_name = principal.last_name
        if principal.photo_url:
            user.profile_image_url = principal.photo_url
        user.updated_at = datetime.now()
        db.commit()
        db.refresh(user)
        return user


def get_user(db: Session, user_id: str) -> User:
    with store_errors(db):
        user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError('User not found.')
    return user


def validate_age(age: int | None) -> None:
    if age is not None and not MIN_AGE <= age <= MAX_AGE:
        raise ValidationError(f'Please enter a valid age between {MIN_AGE} and {MAX_AGE}.', field='age')


def update_profile(db: Session, user: User, changes: dict) -> User:
    """Self-service profile edit. Email and role are not editable here."""
    for field in changes:
        if field not in PROFILE_FIELDS:
            raise ValidationError(f'{field} cannot be changed from your profile.', field=field)
    validate_age(changes.get('age'))

    with store_errors(db):
        for field, value in changes.items():
            if isinstance(value, str):
                value = value.strip() or None
            setattr(user, field, value)
        user.updated_at = datetime.now()
        db.commit()
        db.refresh(user)
    return user


def set_role(db: Session, acting_user: User, user_id: str, role: str) -> User:
    require_admin(acting_user, 'change user roles')
    if role not in ROLES:
        raise ValidationError(f'Role must be one of: {", ".join(ROLES)}.', field='role')

    user = get_user(db, user_id)
    with store_errors(db):
        user.role = role
        user.updated_at = datetime.now()
        db.commit()
        db.refresh(user)
    logger.info('User %s set role of %s to %s', acting_user.id, user.id, role)
    return user
