"""Authentication / authorization helpers.

Auth is intentionally lightweight:

- Users table (username, email, password hash)
- Short-lived JWTs carrying only the user id

Clients send the token in the `x-auth-token` request header.
"""

from .deps import get_current_identity
from .crud import create_user, verify_user_credentials

__all__ = [
    "get_current_identity",
    "create_user",
    "verify_user_credentials",
]
