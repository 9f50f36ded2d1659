"""Supabase Auth-backed credential provider."""

import asyncio
from dataclasses import dataclass

from supabase import AuthError, Client

from skin_analysis.domain.errors import Unauthenticated
from skin_analysis.services.credentials import Credential, IdentityProvider


@dataclass
class SupabaseCredentialProvider(IdentityProvider):
    """Credential provider that refreshes the Supabase session on every call."""

    client: Client

    def sign_in(self, email: str, password: str) -> str:
        """Sign in with email and password and return the principal id."""
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise Unauthenticated(f"Sign-in failed: {exc}") from exc
        if response.user is None:
            raise Unauthenticated("Sign-in returned no user")
        return response.user.id

    async def get_credential(self) -> Credential:
        """Return the signed-in user with a freshly refreshed access token."""
        try:
            response = await asyncio.to_thread(self.client.auth.refresh_session)
        except AuthError as exc:
            raise Unauthenticated("User not authenticated") from exc
        if response.session is None or response.user is None:
            raise Unauthenticated("User not authenticated")
        return Credential(
            principal_id=response.user.id,
            bearer_token=response.session.access_token,
        )
