"""Authentication and session error types."""


class AuthError(Exception):
    """Base class for failures in the login lifecycle."""


class ProviderRejected(AuthError):
    """The identity provider did not authenticate the user.

    Recoverable: the visitor stays anonymous and is sent back with a failure
    marker.
    """


class ProviderUnavailable(AuthError):
    """The identity provider could not be reached or discovered."""


class MalformedIdentifierError(AuthError):
    """A claimed identifier does not end in the numeric provider ID."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Claimed identifier has no numeric suffix: {identifier!r}")


class StoreUnavailable(AuthError):
    """The session store failed; fatal for the current request."""
