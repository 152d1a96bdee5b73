"""
Application constants
"""

# Ordering
ORDER_STEP = 1000.0  # Spacing between consecutive order keys
MIN_ORDER_GAP = 1e-6  # Below this gap between neighbours the list is renumbered

# Supabase API
AUTH_API_PREFIX = "/auth/v1"
REST_API_PREFIX = "/rest/v1"

# Seconds before expiry at which a cached session is refreshed
SESSION_REFRESH_MARGIN = 60

# Auth screen messages
SIGN_UP_CONFIRM_MESSAGE = "Sign-up successful! Please check your email to confirm your account."
SIGN_IN_SUCCESS_MESSAGE = "Signed in successfully!"
EMPTY_TITLE_MESSAGE = "Task title cannot be empty."

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
