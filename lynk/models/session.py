"""
Session and identity models
"""

import time
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel


class AuthState(str, Enum):
    """Session resolution state"""
    UNRESOLVED = "unresolved"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class User(BaseModel):
    """Authenticated identity"""
    id: str
    email: Optional[str] = None


class Session(BaseModel):
    """Access credentials issued by the identity provider"""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_at: Optional[int] = None
    user: User
    
    def is_expired(self, margin: int = 0) -> bool:
        if self.expires_at is None:
            return False
        return time.time() + margin >= self.expires_at
    
    @classmethod
    def from_token_response(cls, data: Dict[str, Any]) -> "Session":
        """
        Build session from a token endpoint response
        
        The endpoint returns ``expires_in`` (seconds) and sometimes
        ``expires_at``; the absolute value is kept.
        """
        expires_at = data.get("expires_at")
        if expires_at is None and data.get("expires_in") is not None:
            expires_at = int(time.time()) + int(data["expires_in"])
        user = data.get("user") or {}
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type", "bearer"),
            expires_at=expires_at,
            user=User(id=user["id"], email=user.get("email")),
        )
