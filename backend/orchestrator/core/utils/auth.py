# auth.py

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from jose import JWTError, jwt
from fastapi import Request

from config.config import settings
from config.logger import logger
from orchestrator.core.exceptions import AuthenticationError
from orchestrator.core.services.tools.types import InvocationContext
from orchestrator.core.utils.id_generator import generate_id


@dataclass
class Caller:
    """Identité de l'appelant résolue depuis le JWT."""
    user_id: Optional[str]
    organization_id: Optional[str]
    session_id: str

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def to_context(self, agent_id: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None) -> InvocationContext:
        return InvocationContext(
            user_id=self.user_id,
            organization_id=self.organization_id,
            session_id=self.session_id,
            agent_id=agent_id,
            metadata=dict(metadata or {})
        )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Crée un access token JWT (courte durée)."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """Vérifie un token JWT et retourne ses claims."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def _extract_token(request: Request) -> Optional[str]:
    token = request.cookies.get("access_token")
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


def resolve_caller(request: Request) -> Caller:
    """
    Caller identity from the `access_token` cookie or a Bearer header.

    Missing or invalid tokens give an anonymous caller; identity fields sent
    in request bodies are never consulted.
    """
    token = _extract_token(request)
    claims = decode_token(token) if token else None

    if token and claims is None:
        logger.warning("Invalid or expired token, treating caller as anonymous")

    claims = claims or {}
    return Caller(
        user_id=claims.get("sub"),
        organization_id=claims.get("org_id"),
        session_id=claims.get("sid") or generate_id("session")
    )


async def get_current_caller(request: Request) -> Caller:
    """Récupère l'appelant authentifié, sinon 401."""
    caller = resolve_caller(request)
    if not caller.is_authenticated:
        raise AuthenticationError("Not authenticated")
    return caller
