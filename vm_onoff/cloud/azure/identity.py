"""Azure AD (Entra ID) client credentials flow."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

import httpx
from pydantic import BaseModel

from vm_onoff.cloud.azure.http import parse_json, send
from vm_onoff.cloud.azure.token_manager import TokenRecord, utc_now
from vm_onoff.tracing import FunctionTrace, Session

DEFAULT_LOGIN_URL = "https://login.microsoftonline.com"
ARM_SCOPE = "https://management.azure.com/.default"


class AuthResponse(BaseModel):
    """Token endpoint response.

    Only the fields needed to build a TokenRecord are kept.
    """

    access_token: str
    # Lifetime of the access token in seconds
    expires_in: int

    def to_record(self, now: datetime) -> TokenRecord:
        return TokenRecord(
            access_token=self.access_token,
            expires_at=now + timedelta(seconds=self.expires_in),
        )


class ClientCredentials:
    """Obtains app-only tokens for a service principal.

    Uses the Microsoft identity platform v2.0 token endpoint of a single
    tenant. Scopes must all belong to one resource, e.g. ARM_SCOPE.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        scopes: list[str] | None = None,
        login_url: str = DEFAULT_LOGIN_URL,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client = client
        self.client_id = client_id
        self.client_secret = client_secret
        self.tenant_id = tenant_id
        self.scopes = scopes if scopes is not None else [ARM_SCOPE]
        self.token_url = f"{login_url.rstrip('/')}/{tenant_id}/oauth2/v2.0/token"
        self._clock = clock

    async def perform(self, session: Session | None = None) -> AuthResponse:
        """Perform the client credentials flow."""
        with FunctionTrace(
            session, "Requesting client credentials token", tenant_id=self.tenant_id
        ) as trace:
            request = self.client.build_request(
                "POST",
                self.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "scope": " ".join(self.scopes),
                },
            )
            response = await send(self.client, request)
            auth_response = parse_json(response, AuthResponse)

            trace.log("Token issued", expires_in=auth_response.expires_in)
            return auth_response

    async def get_auth_token(self, session: Session | None = None) -> TokenRecord:
        # Take the timestamp before the request so the expiry errs early
        now = self._clock()
        auth_response = await self.perform(session=session)
        return auth_response.to_record(now)
