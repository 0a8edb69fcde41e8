"""Token-header authentication resolving the caller identity."""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

from fastapi import Depends, Header, HTTPException, Request, status

from photoset_pipeline.domain.photos import ActorRole, AuthorizedActor

if TYPE_CHECKING:
    from photoset_pipeline.containers import AppContainer


def _get_role_tokens(request: Request) -> list[tuple[ActorRole, str]]:
    container: AppContainer = request.app.state.container
    settings = container.settings
    tokens = [
        (ActorRole.ADMIN, settings.admin_token),
        (ActorRole.MAINTENANCE, settings.maintenance_token),
        (ActorRole.WORKER, settings.worker_token),
    ]
    return [(role, token) for role, token in tokens if token]


async def require_actor(
    x_actor_token: str | None = Header(default=None),
    x_actor_id: str | None = Header(default=None),
    role_tokens: list[tuple[ActorRole, str]] = Depends(_get_role_tokens),
) -> AuthorizedActor:
    """Resolve the authorized actor from request headers."""
    if not x_actor_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    for role, token in role_tokens:
        if secrets.compare_digest(x_actor_token.encode(), token.encode()):
            actor_id = (x_actor_id or "").strip()
            if not actor_id:
                if role != ActorRole.ADMIN:
                    raise HTTPException(
                        status_code=status.HTTP_401_UNAUTHORIZED,
                        detail="X-Actor-Id header is required",
                    )
                actor_id = "admin"
            return AuthorizedActor(id=actor_id, role=role)
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


async def require_admin(
    actor: AuthorizedActor = Depends(require_actor),
) -> AuthorizedActor:
    """Ensure the caller is an administrator."""
    if actor.role != ActorRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
    return actor
