"""
Process-wide session store

Holds the one authenticated session of the application and notifies
subscribers (the task board, the web header) whenever it changes.
"""

import inspect
from typing import Awaitable, Callable, List, Optional, Union
from lynk.api.auth_client import AuthClient
from lynk.config.settings import settings
from lynk.config.constants import SESSION_REFRESH_MARGIN
from lynk.models.session import AuthState, Session, User
from lynk.services.session_cache import SessionCacheService
from lynk.utils.error_handler import APIError, AuthError, ValidationError
from lynk.utils.logger import logger

SessionListener = Callable[[AuthState, Optional[Session]], Union[None, Awaitable[None]]]


class Subscription:
    """Handle returned by ``SessionStore.subscribe``"""

    def __init__(self, store: "SessionStore", listener: SessionListener):
        self._store = store
        self._listener = listener

    @property
    def active(self) -> bool:
        return self._listener in self._store._listeners

    def unsubscribe(self):
        """Stop receiving session changes; calling twice is harmless"""
        if self.active:
            self._store._listeners.remove(self._listener)


class SessionStore:
    """Current identity plus change notifications"""

    def __init__(self, auth_client: AuthClient, cache: Optional[SessionCacheService] = None):
        """
        Initialize session store

        Args:
            auth_client: Identity provider client
            cache: Session persistence (defaults to SESSION_CACHE_PATH)
        """
        self.auth = auth_client
        self.cache = cache or SessionCacheService(settings.SESSION_CACHE_PATH)
        self.state = AuthState.UNRESOLVED
        self.session: Optional[Session] = None
        self._listeners: List[SessionListener] = []
        self.logger = logger

    @property
    def user(self) -> Optional[User]:
        return self.session.user if self.session else None

    @property
    def is_authenticated(self) -> bool:
        return self.state == AuthState.AUTHENTICATED and self.session is not None

    def subscribe(self, listener: SessionListener) -> Subscription:
        """
        Register a callback invoked with ``(state, session)`` on every change

        Callbacks may be plain functions or coroutines.
        """
        self._listeners.append(listener)
        return Subscription(self, listener)

    async def _notify(self):
        for listener in list(self._listeners):
            try:
                result = listener(self.state, self.session)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self.logger.error(f"Session listener {listener!r} failed: {e}", exc_info=True)

    async def _set_session(self, session: Optional[Session]):
        self.session = session
        if session is None:
            self.state = AuthState.UNAUTHENTICATED
            self.cache.clear()
        else:
            self.state = AuthState.AUTHENTICATED
            self.cache.save(session)

        self.logger.info(f"Session state: {self.state.value}")
        await self._notify()

    async def resolve(self) -> AuthState:
        """
        Fetch the current session

        Restores the cached session, refreshes it when it is about to expire
        and confirms it with the identity provider. Any failure is treated
        as "no session".
        """
        session = self.cache.load()
        try:
            if session is not None:
                if session.is_expired(SESSION_REFRESH_MARGIN):
                    if not session.refresh_token:
                        raise AuthError("Session expired")
                    self.logger.info("Cached session expired, refreshing")
                    session = await self.auth.refresh_session(session.refresh_token)

                user = await self.auth.get_user(session.access_token)
                session = session.model_copy(update={"user": user})
        except APIError as e:
            self.logger.warning(f"Could not resolve session, treating as signed out: {e}")
            session = None

        await self._set_session(session)
        return self.state

    async def sign_in(self, email: str, password: str) -> Session:
        """
        Sign in with email and password

        Raises:
            ValidationError: If a field is empty
            AuthError: If the identity provider rejects the credentials
        """
        if not email or not password:
            raise ValidationError("Email and password are required.")

        session = await self.auth.sign_in_with_password(email, password)
        await self._set_session(session)
        return session

    async def sign_up(self, email: str, password: str) -> Optional[Session]:
        """
        Register a new account

        Returns:
            The new session, or None while email confirmation is pending
        """
        if not email or not password:
            raise ValidationError("Email and password are required.")

        session = await self.auth.sign_up(email, password)
        if session is not None:
            await self._set_session(session)
        return session

    async def sign_out(self):
        """Sign out; the local session is dropped even if the remote call fails"""
        if self.session is not None:
            try:
                await self.auth.sign_out(self.session.access_token)
            except APIError as e:
                self.logger.warning(f"Error logging out: {e}")

        await self._set_session(None)
