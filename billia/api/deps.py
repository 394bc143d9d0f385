"""
API dependency helpers.

Provides the dependency-resolved caller for routes.
"""
import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from billia.api.auth import get_or_create_user, resolve_identity_from_headers
from billia.db import models
from billia.db.database import get_db
from billia.utils.runtime import dev_mode_active

logger = logging.getLogger(__name__)

DEV_USER_EMAIL = "dev@localhost"


# Contract:
# Returns (sqlalchemy User model, current_user_context_dict)
# Raises 401 if identity cannot be resolved.
def get_current_user_context(
    db: Session = Depends(get_db),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Tuple[models.User, Dict[str, Any]]:
    try:
        is_dev_mode = dev_mode_active()
    except RuntimeError as exc:
        logger.error("DEV_MODE misconfiguration detected: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="DEV_MODE misconfigured")

    if is_dev_mode:
        email = DEV_USER_EMAIL
        name = "Development User"
    else:
        name, email = resolve_identity_from_headers(
            x_auth_request_user=x_auth_request_user,
            x_auth_request_email=x_auth_request_email,
            x_forwarded_user=x_forwarded_user,
            x_forwarded_email=x_forwarded_email,
        )
        if not email:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    user = get_or_create_user(db, email=email, display_name=name)
    current_user = {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "is_superadmin": bool(user.is_superadmin),
    }
    return user, current_user


def get_current_user(
    ctx: Tuple[models.User, Dict[str, Any]] = Depends(get_current_user_context),
) -> models.User:
    return ctx[0]


def require_superadmin(
    ctx: Tuple[models.User, Dict[str, Any]] = Depends(get_current_user_context),
) -> models.User:
    user, current_user = ctx
    if not current_user.get("is_superadmin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Superadmin privileges required")
    return user
