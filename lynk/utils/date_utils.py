"""
Date/time helpers
All timestamps written by the client are UTC ISO 8601
"""

from datetime import datetime, timezone
from typing import Optional


def get_current_datetime() -> datetime:
    """
    Get current datetime in UTC
    
    Returns:
        Current datetime object with UTC timezone
    """
    return datetime.now(timezone.utc)


def get_current_timestamp() -> str:
    """
    Get current timestamp for ``updated_at`` columns
    
    Returns:
        ISO 8601 string with offset
    """
    return get_current_datetime().isoformat()


def format_created_date(value: Optional[str]) -> str:
    """
    Format a stored timestamp for task cards
    
    Example: "2025-11-13T15:30:45.123+00:00" -> "13.11.2025"
    
    Args:
        value: ISO timestamp as stored by the backend
        
    Returns:
        Date string, or the raw value if it cannot be parsed
    """
    if not value:
        return ""
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return dt.strftime("%d.%m.%Y")
