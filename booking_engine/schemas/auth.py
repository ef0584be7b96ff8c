"""Caller identity schemas."""

from uuid import UUID

from pydantic import BaseModel

from booking_engine.db.enums import ActorRole


class ActorSession(BaseModel):
    """
    Pre-authenticated caller context.

    Returned by the get_current_session dependency; identity is established
    upstream and trusted here.
    """
    actor_id: UUID
    role: ActorRole
