"""
Auth0 token client used to authenticate against QuoteFactory.
"""
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import Auth0Config
from ..logger import get_logger
from .base import LoadLookupError

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class AuthenticationError(LoadLookupError):
    """Raised when Auth0 refuses to issue a token."""
    pass


@dataclass(frozen=True)
class Auth0Token:
    access_token: str
    expires_in: int
    id_token: Optional[str] = None


class Auth0Client:
    """Obtains user tokens with the OAuth2 password grant."""

    def __init__(self, config: Auth0Config, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.http_client = http_client

    @property
    def token_url(self) -> str:
        return f"https://{self.config.domain}/oauth/token"

    async def get_user_token(self, username: str, password: str, timeout: Optional[float] = None) -> Auth0Token:
        """Exchange user credentials for an access token.

        Args:
            username: QuoteFactory login
            password: QuoteFactory password
            timeout: Request timeout in seconds

        Returns:
            Auth0Token with the access token and its lifetime

        Raises:
            AuthenticationError: If Auth0 rejects the request or the response is malformed
        """
        if not self.config.is_configured:
            raise AuthenticationError("Auth0 configuration (domain, client_id, client_secret) is required")

        payload = {
            'grant_type': 'password',
            'username': username,
            'password': password,
            'client_id': self.config.client_id,
            'client_secret': self.config.client_secret,
            'audience': self.config.audience,
            'scope': 'openid profile email'
        }

        if self.http_client is not None:
            # None would disable the client timeout, so only pass an explicit value
            extra = {'timeout': timeout} if timeout is not None else {}
            response = await self.http_client.post(self.token_url, json=payload, **extra)
        else:
            async with httpx.AsyncClient(timeout=timeout if timeout is not None else DEFAULT_TIMEOUT) as client:
                response = await client.post(self.token_url, json=payload)

        if response.is_error:
            logger.error(f"Auth0 authentication failed with status {response.status_code}")
            raise AuthenticationError(
                f"Auth0 authentication failed: {response.status_code}",
                status_code=response.status_code
            )

        try:
            data = response.json()
            return Auth0Token(
                access_token=data['access_token'],
                expires_in=int(data.get('expires_in', 3600)),
                id_token=data.get('id_token')
            )
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError(f"Invalid Auth0 token response: {e}") from e
