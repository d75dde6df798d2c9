"""
Auth module: session tokens for externally issued identities, and the
get_current_user FastAPI dependency.

The identity provider owns credentials. Signup and login present the
provider's ID token; once it verifies, this service signs its own short-lived
session JWT for the account it names. The resolved UserPrincipal is passed
explicitly into every handler and service call, and it is re-read from the
account store on each request so roster changes are visible immediately.
"""

import time
from dataclasses import dataclass, field
from typing import Optional
from jose import jwt, JWTError
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from ayurdiet.config import get_settings
from ayurdiet.database import get_db
from ayurdiet.models.user import User

ALGORITHM = "HS256"

ROLE_REDIRECTS = {
    "admin": "/admin/dashboard",
    "dietitian": "/users/dietitian",
    "patient": "/users/patient",
}


def get_redirect_url(role: str) -> str:
    return ROLE_REDIRECTS.get(role, ROLE_REDIRECTS["patient"])


@dataclass
class UserPrincipal:
    """Resolved identity attached to each request."""
    user_id: str
    name: str
    email: str
    role: str                     # "admin" | "dietitian" | "patient"
    linked_patient_ids: list = field(default_factory=list)
    linked_dietitian_id: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserPrincipal":
        return cls(
            user_id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            linked_patient_ids=list(user.linked_patient_ids or []),
            linked_dietitian_id=user.linked_dietitian_id,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_dietitian(self) -> bool:
        return self.role == "dietitian"

    @property
    def is_patient(self) -> bool:
        return self.role == "patient"

    def has_access_to_patient(self, patient_id: str) -> bool:
        if self.is_admin:
            return True
        if self.is_dietitian:
            return patient_id in self.linked_patient_ids
        return patient_id == self.user_id


def create_token(user: User) -> str:
    """Create a signed JWT for the given User model instance."""
    settings = get_settings()
    payload = {
        "sub": user.id,
        "role": user.role,
        "exp": int(time.time()) + settings.token_expire_seconds,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT. Returns None if invalid/expired."""
    try:
        settings = get_settings()
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None


def verify_identity_token(id_token: str) -> Optional[dict]:
    """
    Validate an ID token issued by the identity provider. Returns its claims,
    or None if the signature, expiry, audience or issuer don't check out, or
    the token lacks `sub`/`email`.
    """
    settings = get_settings()
    try:
        claims = jwt.decode(
            id_token,
            settings.identity_provider_secret,
            algorithms=[settings.identity_provider_algorithm],
            audience=settings.identity_provider_audience or None,
            issuer=settings.identity_provider_issuer or None,
        )
    except JWTError:
        return None
    if not claims.get("sub") or not claims.get("email"):
        return None
    return claims


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> UserPrincipal:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    payload = decode_token(auth_header[7:])
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = await db.get(User, payload["sub"])
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return UserPrincipal.from_user(user)


def require_role(*roles: str):
    """Dependency factory: 403 unless the current user has one of `roles`."""
    async def _check(current_user: UserPrincipal = Depends(get_current_user)) -> UserPrincipal:
        if current_user.role not in roles:
            raise HTTPException(status_code=403, detail="Your role does not permit this action")
        return current_user
    return _check
