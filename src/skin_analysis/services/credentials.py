"""Credential port wrapping the identity provider."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Credential:
    """Current principal and a short-lived bearer token."""

    principal_id: str
    bearer_token: str


class CredentialProvider(Protocol):
    """Interface for obtaining fresh credentials."""

    async def get_credential(self) -> Credential:
        """Return the signed-in principal with a freshly refreshed token."""


class IdentityProvider(CredentialProvider, Protocol):
    """Credential provider that can also establish a session."""

    def sign_in(self, email: str, password: str) -> str:
        """Sign in and return the principal id."""
