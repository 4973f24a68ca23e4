# Overview: Service-layer operations for user administration.

from ..extensions import db
from ..models import User, USER_ROLES
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)
from . import session_service
from vendtrack.time_utils import utcnow


USER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "role", "isActive"},
    field_map={"isActive": "is_active"},
)


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_user(user_id: int, payload: dict, acting_user_id: int | None = None) -> User:
    """
    Apply an admin edit (name, role, isActive).

    Deactivating a user revokes every open session, so the change takes
    effect on their next request. Admins cannot deactivate or demote
    themselves.
    """
    user = get_user(user_id)
    patch = validate_payload(model=User, payload=payload, policy=USER_UPDATE_POLICY, partial=True)

    if "role" in patch and patch["role"] not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")

    if acting_user_id is not None and acting_user_id == user.id:
        if patch.get("is_active") is False:
            raise ValidationError("You cannot deactivate your own account")
        if "role" in patch and patch["role"] != user.role:
            raise ValidationError("You cannot change your own role")

    deactivating = user.is_active and patch.get("is_active") is False

    for key, value in patch.items():
        setattr(user, key, value)
    user.updated_at = utcnow()
    db.session.commit()

    if deactivating:
        session_service.revoke_all_user_sessions(user.id, reason="Account deactivated")

    return user


def toggle_user_status(user_id: int, acting_user_id: int | None = None) -> User:
    user = get_user(user_id)
    return update_user(user_id, {"isActive": not user.is_active}, acting_user_id=acting_user_id)


def delete_user(user_id: int) -> None:
    """
    Hard delete. Reports keep their copied userName; their userId is cleared.
    """
    user = get_user(user_id)
    for report in user.reports:
        report.user_id = None
    db.session.delete(user)
    db.session.commit()
