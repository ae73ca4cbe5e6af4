"""Handler context and authentication."""

import logging
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from api_contract.errors import AuthenticationError, AuthenticationFailed, MissingToken, Unauthorized
from api_contract.schema.base import AuthRequirement

logger = logging.getLogger(__name__)


class HandlerContext(BaseModel):
    """Who is calling: anonymous, or authenticated as ``user_id``."""

    model_config = ConfigDict(frozen=True)

    user_id: str | None = None

    @classmethod
    def anonymous(cls) -> "HandlerContext":
        return cls()

    @classmethod
    def authenticated(cls, user_id: str) -> "HandlerContext":
        return cls(user_id=user_id)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def require_user_id(self) -> str:
        if self.user_id is None:
            raise Unauthorized()
        return self.user_id


class AuthenticationProvider(Protocol):
    async def verify_token(self, token: str) -> str:
        """Return the user id for ``token`` or raise ``AuthenticationError``."""
        ...


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def authenticate(
    requirement: AuthRequirement,
    authorization: str | None,
    provider: AuthenticationProvider | None,
) -> HandlerContext:
    """Build the handler context for a request.

    Endpoints without an auth requirement still get an authenticated
    context when a valid token is sent; an invalid one leaves them anonymous.
    """
    token = bearer_token(authorization)
    if token is None:
        if requirement is AuthRequirement.REQUIRED:
            raise MissingToken()
        return HandlerContext.anonymous()
    if provider is None:
        if requirement is AuthRequirement.REQUIRED:
            raise AuthenticationFailed("no authentication provider configured")
        return HandlerContext.anonymous()

    try:
        user_id = await provider.verify_token(token)
    except AuthenticationError:
        if requirement is AuthRequirement.REQUIRED:
            raise
        return HandlerContext.anonymous()
    except Exception as e:
        logger.warning("Token verification failed: %s", e)
        if requirement is AuthRequirement.REQUIRED:
            raise AuthenticationFailed(str(e)) from e
        return HandlerContext.anonymous()
    return HandlerContext.authenticated(user_id)
