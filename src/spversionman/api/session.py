"""Authentication and per-site sessions for the admin API.

Admin tokens are treated as scoped to one site. The session manager
authenticates again for every site, even when the previous site used the
same tenant, and a session is closed before the next site is processed.
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import httpx
import typer

from ..errors import AuthError
from .client import SharePointAdminClient

logger = logging.getLogger(__name__)

ACCESS_TOKEN_ENV_VAR = "SPVERSIONMAN_ACCESS_TOKEN"


@dataclass(frozen=True)
class TenantContext:
    """Tenant the run is administering."""

    tenant_name: str
    admin_url: str


class Authenticator(ABC):
    """Produces bearer tokens for a tenant and site."""

    @abstractmethod
    def authenticate(self, tenant: TenantContext, resource: Optional[str]) -> str:
        """Return a bearer token.

        Args:
            tenant: Tenant being administered
            resource: Site URL, or None for tenant-level operations

        Returns:
            Bearer token string
        """


class TokenAuthenticator(Authenticator):
    """Uses a pre-issued access token, asking for one if none is configured."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        interactive: bool = True,
        env_var: str = ACCESS_TOKEN_ENV_VAR,
    ):
        """
        Initialize the authenticator.

        Args:
            access_token: Token from configuration, if any
            interactive: Whether to prompt when no token is available
            env_var: Environment variable checked before prompting
        """
        self.access_token = access_token
        self.interactive = interactive
        self.env_var = env_var

    def authenticate(self, tenant: TenantContext, resource: Optional[str]) -> str:
        token = os.environ.get(self.env_var) or self.access_token
        if token:
            return token
        if not self.interactive:
            raise AuthError(
                f"No access token configured; set {self.env_var} or auth.access_token",
                resource=resource,
            )
        target = resource or tenant.admin_url
        try:
            token = typer.prompt(f"Access token for {target}", hide_input=True)
        except typer.Abort:
            raise AuthError("Authentication was cancelled", resource=resource) from None
        if not token.strip():
            raise AuthError("Empty access token", resource=resource)
        return token.strip()


class SiteSession:
    """Authenticated handle bound to one site (or to the tenant)."""

    def __init__(self, resource: Optional[str], tenant: TenantContext, http: httpx.Client):
        self.resource = resource
        self.tenant = tenant
        self.http = http
        self.api = SharePointAdminClient(http, resource=resource)
        self.closed = False

    def close(self) -> None:
        if not self.closed:
            self.http.close()
            self.closed = True

    def __enter__(self) -> "SiteSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class SessionProvider(ABC):
    """Hands out sessions to the batch executor."""

    @abstractmethod
    def acquire(self, resource: str, tenant: TenantContext) -> SiteSession:
        """Create a session bound to ``resource``.

        Raises:
            AuthError: On credential or connectivity failure
        """


class SessionManager(SessionProvider):
    """Creates a freshly authenticated session for every site."""

    def __init__(
        self,
        authenticator: Authenticator,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the session manager.

        Args:
            authenticator: Source of bearer tokens
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.authenticator = authenticator
        self.timeout = timeout
        self.transport = transport

    def acquire(self, resource: str, tenant: TenantContext) -> SiteSession:
        return self._open(resource, tenant)

    def acquire_tenant(self, tenant: TenantContext) -> SiteSession:
        """Create a session for tenant-level operations."""
        return self._open(None, tenant)

    def _open(self, resource: Optional[str], tenant: TenantContext) -> SiteSession:
        logger.debug("Authenticating", extra={"resource": resource, "tenant": tenant.tenant_name})
        try:
            token = self.authenticator.authenticate(tenant, resource)
        except AuthError:
            raise
        except Exception as e:
            raise AuthError(f"Authentication failed: {e}", resource=resource) from e

        try:
            http = httpx.Client(
                base_url=tenant.admin_url,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
                transport=self.transport,
            )
        except (httpx.HTTPError, ValueError) as e:
            raise AuthError(f"Could not connect to {tenant.admin_url}: {e}", resource=resource) from e

        return SiteSession(resource, tenant, http)
