"""
Error handling utilities
"""

from typing import Optional
from lynk.models.response import ErrorResponse
from lynk.utils.logger import logger


class LynkError(Exception):
    """Base exception for application errors"""
    pass


class APIError(LynkError):
    """Remote call failed (network, auth or permission error)"""
    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class AuthError(APIError):
    """Sign-in, sign-up or session refresh rejected by the identity provider"""
    pass


class ValidationError(LynkError):
    """Client-side validation failed before any remote call"""
    pass


class NotAuthenticatedError(LynkError):
    """Task operation attempted without an authenticated session"""
    def __init__(self, message: str = "You need to sign in first."):
        super().__init__(message)


class TaskNotFoundError(LynkError):
    """Task id is not present on the board"""
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


def handle_error(error: Exception) -> ErrorResponse:
    """
    Handle error and return user-friendly message
    
    Args:
        error: Exception to handle
        
    Returns:
        ErrorResponse with user-friendly message
    """
    if isinstance(error, (ValidationError, NotAuthenticatedError, TaskNotFoundError)):
        logger.info(f"Rejected: {error}")
    else:
        logger.error(f"Error occurred: {error}", exc_info=True)
    
    if isinstance(error, APIError):
        return ErrorResponse(
            message=error.message,
            error_code=error.error_code,
        )
    
    if isinstance(error, LynkError):
        return ErrorResponse(
            message=str(error),
        )
    
    # Generic error message
    return ErrorResponse(
        message="Something went wrong. Please try again later.",
    )


def format_error_message(error: Exception) -> str:
    """
    Format error message for user
    
    Args:
        error: Exception to format
        
    Returns:
        User-friendly error message
    """
    error_response = handle_error(error)
    return error_response.message
