from typing import List, Optional

from fastapi import Depends, Header, HTTPException, status
from pydantic import BaseModel

from utils.auth_utils import get_current_user, get_user_identifier

SUPERADMIN = "superadmin"
ADMIN = "admin"
VICEPRINCIPAL = "viceprincipal"
STAFF = "staff"

# Roles allowed to approve or reject inventory transfers
TRANSFER_APPROVER_ROLES = (ADMIN, VICEPRINCIPAL, SUPERADMIN)


class RequestContext(BaseModel):
    """Who is calling and on behalf of which institute.

    Built once per request and handed to every crud function explicitly.
    """
    user_id: int
    institute_id: Optional[int] = None
    roles: List[str] = []
    identifier: str = "system"

    def has_role(self, *roles: str) -> bool:
        return any(role in self.roles for role in roles)

    @property
    def is_superadmin(self) -> bool:
        return SUPERADMIN in self.roles

    @property
    def primary_role(self) -> str:
        for role in (SUPERADMIN, ADMIN, VICEPRINCIPAL):
            if role in self.roles:
                return role
        return self.roles[0] if self.roles else STAFF


def _roles_from_claims(user: dict) -> List[str]:
    roles = user.get("roles")
    if roles is None:
        roles = [user["role"]] if user.get("role") else []
    elif isinstance(roles, str):
        roles = [roles]
    return [str(r).strip().lower() for r in roles if r]


def get_request_context(
    user: dict = Depends(get_current_user),
    x_institute_id: Optional[int] = Header(None),
) -> RequestContext:
    try:
        user_id = int(user["sub"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token subject is not a user id")

    roles = _roles_from_claims(user)
    institute_id = user.get("institute_id")
    # Only a superadmin may act on behalf of another institute
    if SUPERADMIN in roles and x_institute_id is not None:
        institute_id = x_institute_id

    return RequestContext(
        user_id=user_id,
        institute_id=int(institute_id) if institute_id is not None else None,
        roles=roles,
        identifier=get_user_identifier(user),
    )


def get_institute_context(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    """Context for endpoints that only make sense inside one institute."""
    if ctx.institute_id is None:
        raise HTTPException(status_code=400, detail="X-Institute-ID header is missing")
    return ctx


def require_roles(*allowed_roles: str):
    """Dependency factory for role based access control."""
    def _checker(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        if allowed_roles and not ctx.has_role(*allowed_roles):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")
        return ctx
    return _checker
