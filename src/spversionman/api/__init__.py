"""Admin API access for spversionman."""

from .client import SharePointAdminClient, parse_retry_after
from .session import (
    Authenticator,
    SessionManager,
    SessionProvider,
    SiteSession,
    TenantContext,
    TokenAuthenticator,
)

__all__ = [
    "SharePointAdminClient",
    "parse_retry_after",
    "Authenticator",
    "TokenAuthenticator",
    "TenantContext",
    "SiteSession",
    "SessionProvider",
    "SessionManager",
]
