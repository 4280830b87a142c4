"""
API dependencies for Campus Events Service.
Handles authentication and role checks.
"""

from typing import Dict, Any
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt
import logging

from campus_events.core.config import config
from campus_events.core.exceptions import PermissionDeniedError
from campus_events.core.identity import Identity, Role
from campus_events.db.database import db_manager
from campus_events.db.redis_client import redis_manager

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer()


class AuthenticationError(Exception):
    """Custom exception for authentication errors."""
    pass


async def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a bearer token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid or expired
    """
    jwt_secret = await config.get_jwt_secret()
    jwt_algorithm = await config.get_jwt_algorithm()
    return jwt.decode(token, jwt_secret, algorithms=[jwt_algorithm])


async def get_current_identity(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Identity:
    """
    Build the caller identity from the JWT ``user_id`` and ``role`` claims.

    Raises:
        HTTPException: If the token is invalid, expired or missing claims
    """
    try:
        payload = await decode_token(credentials.credentials)

        user_id = payload.get("user_id")
        if not user_id:
            raise AuthenticationError("Invalid token: missing user_id")

        try:
            role = Role(payload.get("role"))
        except ValueError:
            raise AuthenticationError("Invalid token: unknown role")

        return Identity(user_id=str(user_id), role=role)

    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_roles(*roles: Role):
    """
    Dependency factory restricting an endpoint to the given roles.

    Services repeat their own role checks; this only rejects early at the edge.
    """
    async def checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in roles:
            logger.warning(f"User {identity.user_id} with role {identity.role.value} denied")
            raise PermissionDeniedError()
        return identity

    return checker


async def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


async def check_service_health() -> Dict[str, Any]:
    """
    Check the health of all service dependencies.
    Redis only counts towards overall health when distributed locks are enabled.

    Returns:
        Dictionary with health status of all components
    """
    health_status = {
        "database": "healthy" if db_manager.health_check() else "unhealthy",
        "redis": "unknown",
        "overall": "unknown"
    }

    consistency_config = await config.get_consistency_config()
    redis_required = consistency_config["enable_distributed_locks"]

    try:
        redis_healthy = await redis_manager.health_check()
        health_status["redis"] = "healthy" if redis_healthy else "unhealthy"
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        health_status["redis"] = "unhealthy"

    redis_ok = health_status["redis"] == "healthy" or not redis_required
    if health_status["database"] == "healthy" and redis_ok:
        health_status["overall"] = "healthy"
    else:
        health_status["overall"] = "unhealthy"

    return health_status
