"""FastAPI dependencies for platform-operator authentication."""

import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.security import decode_jwt
from app.models.user import User, is_platform_operator
from app.services.audit import Actor

bearer_scheme = HTTPBearer(auto_error=False)


class OperatorContext:
    """Resolved platform operator carried through a request."""

    __slots__ = ("user_id", "email", "ip_address")

    def __init__(self, user_id: uuid.UUID, email: str, ip_address: str | None = None) -> None:
        self.user_id = user_id
        self.email = email
        self.ip_address = ip_address

    @property
    def actor(self) -> Actor:
        return Actor(user_id=self.user_id, ip_address=self.ip_address)


def client_ip(request: Request) -> str | None:
    """Best-effort caller IP: CDN header, then proxy chain, then the socket peer."""
    forwarded = request.headers.get("cf-connecting-ip")
    if forwarded:
        return forwarded.strip()
    chain = request.headers.get("x-forwarded-for")
    if chain:
        return chain.split(",")[0].strip()
    return request.client.host if request.client else None


def _subject(token: str) -> uuid.UUID:
    try:
        payload = decode_jwt(token)
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired JWT",
        ) from exc

    try:
        return uuid.UUID(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Malformed JWT payload",
        ) from exc


async def get_operator(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OperatorContext:
    """Resolve a bearer JWT to a platform operator, or reject the request."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
        )

    user = await session.get(User, _subject(credentials.credentials))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
        )
    if not is_platform_operator(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Platform operator access required",
        )

    return OperatorContext(user_id=user.id, email=user.email, ip_address=client_ip(request))


# Typed shorthand for use in route signatures
Operator = Annotated[OperatorContext, Depends(get_operator)]
Session = Annotated[AsyncSession, Depends(get_session)]
