import hmac
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.config import Settings
from app.core.exceptions import UnauthorizedException
from app.services.providers import get_settings

bearer_scheme = HTTPBearer(auto_error=False)


def token_matches(expected: str, provided: str) -> bool:
    """Compare tokens in constant time."""
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


async def require_chat_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Enforce the bearer token on the chat endpoint when CHAT_TOKEN is set.
    With no token configured the endpoint stays open.

    Raises:
        UnauthorizedException: If the token is missing or does not match
    """
    expected = (settings.CHAT_TOKEN or "").strip()
    if not expected:
        return

    if credentials is None or not token_matches(expected, credentials.credentials):
        raise UnauthorizedException()
