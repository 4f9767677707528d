"""OpenID relying party with server-side sessions.

Logs visitors in through a single OpenID 2.0 provider (Steam by default) and
keeps the resulting identity in a cookie-keyed server-side session.
"""

__version__ = "0.1.0"
