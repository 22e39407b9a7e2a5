"""Role-based access restriction."""

from typing import AbstractSet

import structlog

from authgate.errors import Forbidden
from authgate.models.user import Role, User

logger = structlog.get_logger(__name__)


def allow(user: User, allowed_roles: AbstractSet[Role]) -> None:
    """Raise Forbidden unless the user's role is in ``allowed_roles``."""
    if user.role not in allowed_roles:
        logger.info(
            "role_denied",
            user_id=str(user.id),
            role=user.role.value,
            allowed=sorted(r.value for r in allowed_roles),
        )
        raise Forbidden("You do not have permission to perform this action")
