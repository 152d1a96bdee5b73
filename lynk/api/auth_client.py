"""
Supabase Auth (GoTrue) client
"""

from typing import Optional, Dict
import httpx
from lynk.api.base_client import BaseAPIClient
from lynk.config.settings import settings
from lynk.config.constants import AUTH_API_PREFIX
from lynk.models.session import Session, User
from lynk.utils.error_handler import APIError, AuthError


class AuthClient(BaseAPIClient):
    """Client for the hosted identity provider"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize auth client

        Args:
            base_url: Project URL (defaults to SUPABASE_URL)
            anon_key: Public API key (defaults to SUPABASE_ANON_KEY)
            timeout: Request timeout in seconds
            transport: Optional httpx transport
        """
        super().__init__(
            base_url if base_url is not None else settings.SUPABASE_URL,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
            transport=transport,
        )
        self.anon_key = anon_key if anon_key is not None else settings.SUPABASE_ANON_KEY

    def _get_headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        """Get request headers; the anon key doubles as bearer when signed out"""
        return {
            "apikey": self.anon_key,
            "Content-Type": "application/json",
            "Authorization": f"Bearer {access_token or self.anon_key}",
        }

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """
        Exchange email and password for a session

        Raises:
            AuthError: If the credentials are rejected or the call fails
        """
        try:
            data = await self.post(
                endpoint=f"{AUTH_API_PREFIX}/token",
                headers=self._get_headers(),
                params={"grant_type": "password"},
                json_data={"email": email, "password": password},
            )
        except APIError as e:
            raise AuthError(e.message, error_code=e.error_code) from e

        self.logger.info(f"Signed in as {email}")
        return Session.from_token_response(data)

    async def sign_up(self, email: str, password: str) -> Optional[Session]:
        """
        Register a new account

        Returns:
            Session when the project auto-confirms accounts, otherwise None
            (the user has to confirm by email first)
        """
        try:
            data = await self.post(
                endpoint=f"{AUTH_API_PREFIX}/signup",
                headers=self._get_headers(),
                json_data={"email": email, "password": password},
            )
        except APIError as e:
            raise AuthError(e.message, error_code=e.error_code) from e

        if data.get("access_token"):
            self.logger.info(f"Signed up and signed in as {email}")
            return Session.from_token_response(data)

        self.logger.info(f"Signed up {email}, email confirmation pending")
        return None

    async def refresh_session(self, refresh_token: str) -> Session:
        """Trade a refresh token for a fresh session"""
        try:
            data = await self.post(
                endpoint=f"{AUTH_API_PREFIX}/token",
                headers=self._get_headers(),
                params={"grant_type": "refresh_token"},
                json_data={"refresh_token": refresh_token},
            )
        except APIError as e:
            raise AuthError(e.message, error_code=e.error_code) from e

        return Session.from_token_response(data)

    async def get_user(self, access_token: str) -> User:
        """Fetch the identity an access token belongs to"""
        data = await self.get(
            endpoint=f"{AUTH_API_PREFIX}/user",
            headers=self._get_headers(access_token),
        )
        return User(id=data["id"], email=data.get("email"))

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session server-side"""
        await self.post(
            endpoint=f"{AUTH_API_PREFIX}/logout",
            headers=self._get_headers(access_token),
        )
