# backend/app/api/dependencies/auth.py
"""
Acting-principal dependencies.

Identity is established upstream (gateway or session layer) and forwarded
in two headers: ``X-Actor-Id`` and ``X-Actor-Role``. This module only turns
them into an ActorPrincipal; it does not authenticate.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from ...core.enums import RoleName
from ...principal import ActorPrincipal

logger = logging.getLogger(__name__)


def get_actor_optional(
    x_actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    x_actor_role: Optional[str] = Header(None, alias="X-Actor-Role"),
) -> Optional[ActorPrincipal]:
    """The acting principal, or None when the request carries no actor headers."""
    if not x_actor_id:
        return None
    try:
        role = RoleName((x_actor_role or "").strip().lower())
    except ValueError:
        logger.warning(f"Rejected unknown actor role: {x_actor_role!r}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Unknown actor role", "code": "INVALID_ACTOR_ROLE"},
        )
    return ActorPrincipal(user_id=x_actor_id.strip(), role=role)


def get_actor(
    actor: Optional[ActorPrincipal] = Depends(get_actor_optional),
) -> ActorPrincipal:
    """The acting principal; 401 when missing."""
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Actor headers are required", "code": "ACTOR_REQUIRED"},
        )
    return actor


def require_admin(actor: ActorPrincipal = Depends(get_actor)) -> ActorPrincipal:
    if not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Administrator role required", "code": "ADMIN_REQUIRED"},
        )
    return actor
