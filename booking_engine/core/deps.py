"""FastAPI dependencies for caller identity and database access."""

from typing import Generator
from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from booking_engine.db.enums import ActorRole
from booking_engine.db.session import SessionLocal
from booking_engine.schemas.auth import ActorSession

# Identity headers set by the upstream auth layer
ACTOR_ID_HEADER = "X-Actor-Id"
ACTOR_ROLE_HEADER = "X-Actor-Role"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_session(request: Request) -> ActorSession:
    """
    Build the caller context from pre-authenticated identity headers.

    Raises:
        HTTPException 401: Identity headers missing or malformed
    """
    actor_id = request.headers.get(ACTOR_ID_HEADER)
    role = request.headers.get(ACTOR_ROLE_HEADER)
    if not actor_id or not role:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return ActorSession(actor_id=UUID(actor_id), role=ActorRole(role.lower()))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid identity headers")


def require_roles(*roles: ActorRole):
    """Dependency factory restricting an endpoint to the given roles."""

    def _check(session: ActorSession = Depends(get_current_session)) -> ActorSession:
        if session.role not in roles:
            raise HTTPException(status_code=403, detail="Not authorized")
        return session

    return _check
