"""Acting user extraction."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header

from src.taskhive.core.logging import bind_actor_context


async def get_actor_id(
    x_actor_id: Annotated[UUID | None, Header(description="Id of the acting user")] = None,
) -> UUID | None:
    """Acting user from the X-Actor-ID header. Authentication happens upstream."""
    bind_actor_context(x_actor_id)
    return x_actor_id


ActorId = Annotated[UUID | None, Depends(get_actor_id)]
