"""Shared fixtures for spversionman tests."""

from typing import Dict, List
from unittest.mock import MagicMock

import httpx
import pytest

from spversionman.api.session import SessionProvider, SiteSession, TenantContext
from spversionman.bulk.retry import RetryPolicy
from spversionman.errors import AuthError


class RecordingSessionProvider(SessionProvider):
    """Session provider that hands out sessions with a mocked API."""

    def __init__(self, fail_auth_for=None):
        self.fail_auth_for = set(fail_auth_for or [])
        self.acquired: List[str] = []
        self.sessions: List[SiteSession] = []
        self.api_by_resource: Dict[str, MagicMock] = {}

    def acquire(self, resource: str, tenant: TenantContext) -> SiteSession:
        self.acquired.append(resource)
        if resource in self.fail_auth_for:
            raise AuthError("Token request was denied", resource=resource)
        session = SiteSession(resource, tenant, MagicMock(spec=httpx.Client))
        session.api = self.api_for(resource)
        self.sessions.append(session)
        return session

    def api_for(self, resource: str) -> MagicMock:
        """Mocked API for a site, created on first use."""
        if resource not in self.api_by_resource:
            api = MagicMock()
            api.get_site_policy.return_value = {"enableAutoExpirationVersionTrim": True}
            self.api_by_resource[resource] = api
        return self.api_by_resource[resource]


@pytest.fixture
def tenant_context():
    """Tenant used across tests."""
    return TenantContext(tenant_name="contoso", admin_url="https://contoso-admin.sharepoint.com")


@pytest.fixture
def session_provider():
    """Session provider with mocked per-site APIs."""
    return RecordingSessionProvider()


@pytest.fixture
def sleeps():
    """List that collects the delays a retry policy sleeps for."""
    return []


@pytest.fixture
def retry_policy(sleeps):
    """Retry policy with the default schedule that records sleeps instead of sleeping."""
    return RetryPolicy(sleep=sleeps.append)


@pytest.fixture
def site_urls():
    """Three site URLs in a fixed order."""
    return [
        "https://contoso.sharepoint.com/sites/alpha",
        "https://contoso.sharepoint.com/sites/bravo",
        "https://contoso.sharepoint.com/sites/charlie",
    ]


@pytest.fixture
def make_session_provider():
    """Factory for session providers that fail authentication for given sites."""
    return RecordingSessionProvider
