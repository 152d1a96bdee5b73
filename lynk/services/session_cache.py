"""
Session cache service for keeping the signed-in session across restarts
"""

import json
import os
from typing import Optional
from pathlib import Path
import pydantic
from lynk.config.settings import settings
from lynk.models.session import Session
from lynk.utils.logger import logger

CACHE_FILE_MODE = 0o600


class SessionCacheService:
    """Service for persisting the current session using a JSON file"""

    def __init__(self, cache_file: Optional[str] = None):
        """
        Initialize session cache service

        Args:
            cache_file: Path to cache file (optional, defaults to SESSION_CACHE_PATH)
        """
        if cache_file is None:
            cache_file = settings.SESSION_CACHE_PATH
        self.cache_file = Path(cache_file).expanduser()
        self.logger = logger
        self._session: Optional[Session] = None

    def load(self) -> Optional[Session]:
        """Load session from file; unreadable files count as no session"""
        try:
            if not self.cache_file.exists():
                return self._session
            with open(self.cache_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            self._session = Session.model_validate(data) if data else None
        except (OSError, ValueError, pydantic.ValidationError) as e:
            self.logger.warning(f"Failed to load session cache: {e}")
            self._session = None
        return self._session

    def save(self, session: Session):
        """Save session to file"""
        self._session = session
        try:
            self.cache_file.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            # Tokens are readable by the owner only
            fd = os.open(self.cache_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CACHE_FILE_MODE)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                os.chmod(self.cache_file, CACHE_FILE_MODE)
                json.dump(session.model_dump(), f, ensure_ascii=False, indent=2)
            self.logger.debug(f"Cached session for {session.user.email or session.user.id}")
        except OSError as e:
            self.logger.warning(f"Failed to save session cache: {e}. Using in-memory cache only.")

    def clear(self):
        """Forget the cached session"""
        self._session = None
        try:
            if self.cache_file.exists():
                self.cache_file.unlink()
        except OSError as e:
            self.logger.warning(f"Failed to remove session cache: {e}")
