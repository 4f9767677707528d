"""Outcome of a login lifecycle step."""

from dataclasses import dataclass

from src.relying_party.core.errors import AuthError
from src.relying_party.core.models.session import AuthState, Session, UserIdentity


@dataclass(frozen=True)
class Transition:
    """Result of an orchestrator operation.

    ``session`` is the session to carry forward (``None`` once destroyed),
    ``user`` is set only on a successful login and ``error`` only on a
    failed one.
    """

    state: AuthState
    redirect_to: str
    session: Session | None = None
    user: UserIdentity | None = None
    error: AuthError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
