from dataclasses import dataclass

from src.relying_party.core.services import (
    IdentityProviderAdapter,
    SessionLifecycleService,
    SessionService,
)
from src.relying_party.core.storage import SessionStorage


@dataclass
class ApplicationDependencies:
    session_storage: SessionStorage
    session_service: SessionService
    identity_provider: IdentityProviderAdapter
    lifecycle_service: SessionLifecycleService
