"""Bearer token acquisition for Microsoft Graph."""
import logging
from typing import Optional

import requests

from graph.exceptions import AuthError
from graph.graph_client import describe_response
from host.context import HostContext

logger = logging.getLogger(__name__)


GRAPH_SCOPE = "https://graph.microsoft.com/.default"
TOKEN_URL_TEMPLATE = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"


class ClientCredentialsAuthenticator:
    """OAuth2 client-credentials exchange against the Microsoft identity platform."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        timeout: Optional[int] = None
    ):
        """
        Initialize the authenticator.

        Args:
            client_id: Application (client) ID of the app registration
            client_secret: Client secret of the app registration
            tenant_id: Directory (tenant) ID or verified domain
            timeout: HTTP request timeout in seconds (default: none)
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.tenant_id = tenant_id
        self.timeout = timeout

    @property
    def token_url(self) -> str:
        return TOKEN_URL_TEMPLATE.format(tenant_id=self.tenant_id)

    def acquire_token(self) -> str:
        """
        Exchange the client credentials for a Graph access token.

        Returns:
            Bearer token string

        Raises:
            AuthError: If the token endpoint rejects the request or
                returns no access_token
        """
        logger.info(f"Requesting Graph token for tenant {self.tenant_id}")
        data = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'scope': GRAPH_SCOPE,
            'grant_type': 'client_credentials'
        }

        try:
            response = requests.post(self.token_url, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise AuthError(f"Token request failed: {e}") from e

        if not response.ok:
            raise AuthError(f"Token request failed: {describe_response(response)}")

        try:
            token = response.json().get('access_token')
        except ValueError as e:
            raise AuthError(f"Token endpoint returned invalid JSON: {e}") from e

        if not token:
            raise AuthError("Token endpoint response did not contain an access_token")

        logger.info("Acquired Graph token")
        return token


class HostDelegatedAuthenticator:
    """Obtains the Graph token from the host platform's token accessor."""

    def __init__(self, context: HostContext, tenant_id: Optional[str] = None):
        self.context = context
        self.tenant_id = tenant_id
        self.resolved_tenant_id: Optional[str] = None

    def acquire_token(self) -> str:
        try:
            tenant_id = self.tenant_id or self.context.get_tenant_id()
        except Exception as e:
            raise AuthError(f"Host tenant lookup failed: {e}") from e

        self.resolved_tenant_id = tenant_id
        logger.info(
            f"Requesting Graph token from host for tenant {tenant_id or '<host default>'}"
        )

        try:
            token = self.context.get_access_token(GRAPH_SCOPE, tenant_id)
        except Exception as e:
            raise AuthError(f"Host token accessor failed: {e}") from e

        if not token:
            raise AuthError("Host platform returned an empty Graph token")

        logger.info("Acquired Graph token from host")
        return token
