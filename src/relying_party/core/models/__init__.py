"""Session, identity and lifecycle models."""

from .session import AuthState, Session, UserIdentity
from .transition import Transition

__all__ = ["AuthState", "Session", "UserIdentity", "Transition"]
