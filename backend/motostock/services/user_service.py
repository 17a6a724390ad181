from __future__ import annotations

from ..extensions import db
from ..models import User, Role
from . import auth_service, policy_service, session_service
from .audit_service import log_action
from .auth_service import UserNotFoundError, UserValidationError, UserConflictError
from .concurrency import lock_for_update
from ..validation import require_text


def list_users(actor, *, role: str | None = None, location_id: int | None = None) -> list[User]:
    policy_service.require_permission(actor, "MANAGE_USERS")
    query = db.session.query(User)
    if role:
        query = query.filter(User.role == role)
    if location_id is not None:
        query = query.filter(User.location_id == location_id)
    return query.order_by(User.name.asc(), User.id.asc()).all()


def create_user(actor, *, name: str, email: str, password: str, role: str, location_id: int | None = None) -> User:
    policy_service.require_permission(actor, "MANAGE_USERS")
    user = auth_service.create_user(
        name=name,
        email=email,
        password=password,
        role=role,
        location_id=location_id,
    )
    log_action(
        user_id=actor.id,
        action="USER_CREATED",
        details=f"Created user {user.email} ({user.role})",
        entity_type="user",
        entity_id=user.id,
    )
    return user


def update_user(
    actor,
    user_id: int,
    *,
    name: str | None = None,
    email: str | None = None,
    role: str | None = None,
    location_id=...,
    is_active: bool | None = None,
    password: str | None = None,
) -> User:
    """
    Admin edit of any user field. location_id uses ... as "not given" so
    that None can clear it when promoting a user to ADMIN.
    """
    policy_service.require_permission(actor, "MANAGE_USERS")
    if is_active is not None and not isinstance(is_active, bool):
        raise UserValidationError("is_active must be true or false")

    user = lock_for_update(db.session.query(User).filter_by(id=user_id)).first()
    if not user:
        raise UserNotFoundError(f"User {user_id} not found")

    changes = []
    if name is not None:
        user.name = require_text(name, "name", max_length=120)
        changes.append("name")

    if email is not None:
        email = auth_service.normalize_email(email)
        if email != user.email:
            clash = db.session.query(User.id).filter(User.email == email, User.id != user.id).first()
            if clash:
                raise UserConflictError(f"Email {email} is already registered")
            user.email = email
            changes.append("email")

    if role is not None or location_id is not ...:
        new_role = role if role is not None else user.role
        new_location_id = user.location_id if location_id is ... else location_id
        if user.id == actor.id and new_role != Role.ADMIN:
            raise UserValidationError("You cannot remove your own admin role")
        location = auth_service.validate_role_location(new_role, new_location_id)
        user.role = new_role
        user.location_id = location.id if location else None
        changes.append("role/location")

    if is_active is not None and is_active != user.is_active:
        if user.id == actor.id and not is_active:
            raise UserValidationError("You cannot deactivate your own account")
        user.is_active = is_active
        if not user.is_active:
            session_service.revoke_all_user_sessions(user.id, reason="User deactivated")
        changes.append("activated" if user.is_active else "deactivated")

    if password is not None:
        user.password_hash = auth_service.hash_password(password)
        if user.id != actor.id:
            session_service.revoke_all_user_sessions(user.id, reason="Password reset")
        changes.append("password reset")

    db.session.flush()

    if changes:
        log_action(
            user_id=actor.id,
            action="USER_UPDATED",
            details=f"Updated user {user.email} ({', '.join(changes)})",
            entity_type="user",
            entity_id=user.id,
        )
    return user


def set_active(actor, user_id: int, is_active: bool) -> User:
    return update_user(actor, user_id, is_active=is_active)


def reset_password(actor, user_id: int, password: str) -> User:
    return update_user(actor, user_id, password=password)
