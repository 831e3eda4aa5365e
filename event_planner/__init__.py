"""Event Planner - Backend.

A small account-scoped planning API:
- Users register/login and receive a short-lived JWT.
- Categories and events belong to exactly one user.

Every single-record read or mutation checks ownership against the
identity carried by the request token.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
