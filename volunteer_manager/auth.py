import base64
import hashlib
import json
import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, joinedload

from .access import ANY_EVENT, ANY_TEAM, AccessControl, Privilege, can
from .config import SECRET_KEY, SESSION_MAX_AGE
from .constants import REGISTRATION_ACCEPTED
from .database import get_db
from .errors import forbidden, not_found
from .models import Registration, User

logger = logging.getLogger(__name__)

# Guests are allowed, so a missing Authorization header must not fail the request
security = HTTPBearer(auto_error=False)

AUTH_TYPE_GUEST = "guest"
AUTH_TYPE_SESSION = "session"


def _get_fernet() -> Fernet:
    """Fernet instance keyed on SECRET_KEY"""
    key = base64.urlsafe_b64encode(hashlib.sha256(SECRET_KEY.encode()).digest())
    return Fernet(key)


def create_session_token(user: User) -> str:
    """Seal the user's id and current session token into an encrypted bearer token"""
    payload = json.dumps({"id": user.id, "token": user.session_token})
    return _get_fernet().encrypt(payload.encode()).decode()


def decode_session_token(token: str) -> Optional[dict]:
    """Unseal a bearer token. Returns None when it is invalid or has expired."""
    try:
        payload = _get_fernet().decrypt(token.encode(), ttl=SESSION_MAX_AGE)
        session = json.loads(payload)
    except (InvalidToken, ValueError) as e:
        logger.warning(f"⚠️ Unable to decode session token: {type(e).__name__}")
        return None

    if not isinstance(session, dict) or "id" not in session or "token" not in session:
        return None
    return session


def authenticate_user_from_session(db: Session, session: dict) -> Optional[User]:
    """The activated user whose current session token matches the sealed one"""
    return (
        db.query(User)
        .filter(
            User.id == session["id"],
            User.session_token == session["token"],
            User.activated.is_(True),
        )
        .first()
    )


def invalidate_sessions(db: Session, user: User) -> None:
    """Sign the user out everywhere by rotating their session token"""
    user.session_token = (user.session_token or 0) + 1
    db.commit()
    logger.info(f"✅ Invalidated sessions for user {user.id}")


class AuthenticationContext:
    """Who is making the request, and what they have access to"""

    def __init__(
        self,
        access: AccessControl,
        user: Optional[User] = None,
        auth_type: str = AUTH_TYPE_GUEST,
        events: Optional[dict] = None,
    ):
        self.access = access
        self.user = user
        self.auth_type = auth_type
        # Event slug -> {"admin": bool, "event": slug, "team": slug}
        self.events = events or {}


def get_guest_context() -> AuthenticationContext:
    return AuthenticationContext(access=AccessControl(grants="everyone"))


def build_authentication_context(
    db: Session, user: User, auth_type: str = AUTH_TYPE_SESSION
) -> AuthenticationContext:
    """Compose the authentication context for a signed in user"""
    registrations = (
        db.query(Registration)
        .options(joinedload(Registration.event), joinedload(Registration.team), joinedload(Registration.role))
        .filter(
            Registration.user_id == user.id,
            Registration.registration_status == REGISTRATION_ACCEPTED,
        )
        .all()
    )

    events = {}
    for registration in registrations:
        slug = registration.event.slug
        admin = bool(registration.role and registration.role.admin_access)
        existing = events.get(slug)
        if existing is None or (admin and not existing["admin"]):
            events[slug] = {"admin": admin, "event": slug, "team": registration.team.slug}

    grants = [grant for grant in (user.permission_grants or "").split(",") if grant]
    if can(user, Privilege.Administrator):
        grants.append("admin")

    if can(user, Privilege.EventAdministrator):
        scoped_events, scoped_teams = ANY_EVENT, ANY_TEAM
    else:
        scoped_events = ",".join(sorted(events))
        scoped_teams = ",".join(sorted({info["team"] for info in events.values()}))

    access = AccessControl(
        grants=",".join(grants) if grants else None,
        revokes=user.permission_revokes or None,
        events=scoped_events or None,
        teams=scoped_teams or None,
    )

    return AuthenticationContext(access=access, user=user, auth_type=auth_type, events=events)


async def get_authentication_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AuthenticationContext:
    """Dependency resolving the bearer token to an authentication context, or a guest"""
    if credentials is None:
        return get_guest_context()

    session = decode_session_token(credentials.credentials)
    if session is None:
        return get_guest_context()

    user = authenticate_user_from_session(db, session)
    if user is None:
        logger.warning(f"⚠️ Session for user {session.get('id')} is no longer valid")
        return get_guest_context()

    return build_authentication_context(db, user)


def and_(*privileges: Privilege) -> dict:
    return {"type": "and", "privileges": privileges}


def or_(*privileges: Privilege) -> dict:
    return {"type": "or", "privileges": privileges}


def _check_privilege(user: Optional[User], privilege) -> bool:
    if not isinstance(privilege, dict):
        return can(user, privilege)

    count = sum(1 for individual in privilege["privileges"] if can(user, individual))
    if privilege["type"] == "and":
        return count == len(privilege["privileges"])
    return count > 0


def execute_access_check(
    context: AuthenticationContext,
    check: Optional[str] = None,
    event: Optional[str] = None,
    privilege=None,
    permission=None,
) -> None:
    """
    Verify that the context passes the given checks. Privilege and admin checks fail
    with NotFoundError so that the existence of the resource is not revealed, failed
    permission checks with NoAccessError.

    Args:
        check: "admin", "admin-event" or "event"
        event: Slug of the event, required for the "admin-event" and "event" checks
        privilege: A Privilege, or a set built with and_() / or_()
        permission: A boolean permission name, or a dict with "permission", and optional
            "operation" and "scope" keys
    """
    if privilege is not None and not _check_privilege(context.user, privilege):
        not_found()

    if check is not None:
        if context.user is None:
            not_found()

        if check == "admin":
            if not can(context.user, Privilege.EventAdministrator):
                if not any(info["admin"] for info in context.events.values()):
                    not_found()
        elif check == "admin-event":
            if not can(context.user, Privilege.EventAdministrator):
                info = context.events.get(event)
                if not info or not info["admin"]:
                    not_found()
        elif check == "event":
            if not can(context.user, Privilege.EventScheduleOverride):
                if event not in context.events:
                    not_found()
        else:
            raise ValueError(f"Unknown access check: {check}")

    if permission is not None:
        if isinstance(permission, str):
            permission = {"permission": permission}

        if not context.access.can(
            permission["permission"], permission.get("operation"), permission.get("scope")
        ):
            forbidden()
