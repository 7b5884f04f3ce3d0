"""
Authentication middleware for the validation queue API.

Identifies the acting user only; authorization rules beyond the admin flag
live with the callers.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import jwt
from fastapi import Depends, HTTPException, Request
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, Response

from .core.models import Actor, UserType

logger = logging.getLogger(__name__)

AUTH_EXEMPT_PATHS = ("/health", "/api/health")

BYPASS_USER_ID = "LYDO-DEV-ADMIN"


def _is_docker_environment() -> bool:
    """Detect if running inside a Docker container."""
    if Path("/.dockerenv").exists():
        return True
    if os.getenv("DOCKER_CONTAINER") == "true":
        return True
    try:
        with open("/proc/1/cgroup") as f:
            return "docker" in f.read()
    except (FileNotFoundError, PermissionError):
        pass
    return False


def _is_ci_environment() -> bool:
    return os.getenv("CI") == "true" and os.getenv("GITHUB_ACTIONS") == "true"


def extract_bearer_token(authorization_header: str | None) -> str | None:
    """Extract bearer token from Authorization header."""
    if not authorization_header:
        return None

    parts = authorization_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _parse_user_type(value: Any) -> UserType:
    try:
        return UserType(str(value).lower())
    except ValueError:
        return UserType.LYDO_STAFF


def _parse_groups(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(g) for g in value]
    if isinstance(value, str):
        return [g.strip() for g in value.split(",") if g.strip()]
    return []


class AuthUser:
    """Represents an authenticated user."""

    def __init__(
        self,
        user_id: str,
        user_type: UserType,
        display_name: str,
        groups: list[str],
        is_admin: bool,
    ):
        self.user_id = user_id
        self.user_type = user_type
        self.display_name = display_name
        self.groups = groups
        self.is_admin = is_admin

    def to_actor(self) -> Actor:
        """The acting identity written into validated_by and the audit trail."""
        return Actor(user_id=self.user_id, user_type=self.user_type, display_name=self.display_name)

    def to_dict(self) -> dict[str, Any]:
        """Convert user to dictionary for JSON serialization."""
        return {
            "user_id": self.user_id,
            "user_type": self.user_type.value,
            "display_name": self.display_name,
            "groups": self.groups,
            "is_admin": self.is_admin,
        }


class TokenValidator:
    """Validates shared-secret signed bearer tokens"""

    def __init__(self, secret: str, algorithm: str = "HS256", audience: str | None = None):
        if not secret:
            raise ValueError("JWT_SECRET must be set in production mode")
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience or None

    def validate_token(self, token: str) -> dict[str, Any] | None:
        """Return the verified claims, or None when the token is unusable."""
        try:
            claims: dict[str, Any] = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"require": ["sub", "exp"], "verify_aud": self.audience is not None},
            )
            return claims
        except ExpiredSignatureError:
            logger.info("Rejected expired token")
        except InvalidTokenError as e:
            logger.warning(f"Rejected invalid token: {type(e).__name__}: {e}")
        return None


def user_from_claims(claims: dict[str, Any], admin_group: str) -> AuthUser:
    user_id = str(claims["sub"])
    user_type = _parse_user_type(claims.get("user_type", UserType.LYDO_STAFF.value))
    groups = _parse_groups(claims.get("groups"))
    is_admin = admin_group in groups or user_type is UserType.ADMIN
    return AuthUser(
        user_id=user_id,
        user_type=user_type,
        display_name=str(claims.get("name") or user_id),
        groups=groups,
        is_admin=is_admin,
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Middleware for handling authentication.

    Supports two modes:
    - bypass: Always authenticate as the development admin
    - production: Validate HS256 bearer tokens
    """

    def __init__(
        self,
        app: Any,
        auth_mode: str,
        admin_group: str = "admin",
        jwt_secret: str = "",
        jwt_algorithm: str = "HS256",
        jwt_audience: str | None = None,
    ):
        super().__init__(app)
        self.auth_mode = auth_mode.lower()
        self.admin_group = admin_group

        if self.auth_mode not in ["bypass", "production"]:
            raise ValueError(f"Invalid AUTH_MODE: {auth_mode}. Must be bypass or production")

        if self.auth_mode == "bypass" and _is_docker_environment() and not _is_ci_environment():
            raise ValueError(
                "SECURITY ERROR: AUTH_MODE=bypass is not allowed in Docker containers. "
                "Docker deployments must use AUTH_MODE=production."
            )

        self.validator: TokenValidator | None = None
        if self.auth_mode == "production":
            self.validator = TokenValidator(jwt_secret, jwt_algorithm, jwt_audience)

        logger.info(f"Authentication middleware initialized in {self.auth_mode} mode")

    def _extract_user_from_jwt(self, request: Request) -> AuthUser | None:
        token = extract_bearer_token(request.headers.get("Authorization"))
        if not token:
            logger.debug("No bearer token found in Authorization header")
            return None
        if self.validator is None:
            return None

        claims = self.validator.validate_token(token)
        if not claims:
            return None
        return user_from_claims(claims, self.admin_group)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process the request and add authentication context."""
        if request.url.path in AUTH_EXEMPT_PATHS:
            return await call_next(request)

        user: AuthUser | None
        if self.auth_mode == "bypass":
            user = AuthUser(
                user_id=BYPASS_USER_ID,
                user_type=UserType.ADMIN,
                display_name="Dev Admin",
                groups=[self.admin_group],
                is_admin=True,
            )
        else:
            user = self._extract_user_from_jwt(request)

        if not user:
            # Allow OPTIONS requests for CORS
            if request.method == "OPTIONS":
                return await call_next(request)

            logger.warning(f"Unauthenticated request to {request.url.path} in {self.auth_mode} mode")
            # BaseHTTPMiddleware turns raised HTTPExceptions into 500s
            return JSONResponse(
                status_code=401,
                content={"success": False, "message": "Authentication required", "error": "Unauthorized"},
            )

        request.state.user = user
        logger.debug(f"Authenticated request from {user.user_id} to {request.url.path}")
        return await call_next(request)


def get_current_user(request: Request) -> AuthUser:
    """
    Dependency to get the current authenticated user.

    Usage:
        @router.get("/protected")
        async def protected_route(user: AuthUser = Depends(get_current_user)):
            return {"message": f"Hello {user.display_name}"}
    """
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user  # type: ignore[no-any-return]


def require_admin(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    """Dependency to require admin access."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
