"""Fixtures for command tests: a RunContext wired to an in-memory admin API."""

import json
from typing import Any, Dict, List, Tuple

import httpx
import pytest

from spversionman.api.session import SessionManager, TenantContext, TokenAuthenticator
from spversionman.bulk.retry import RetryPolicy
from spversionman.commands.common import RunContext
from spversionman.utils.config import Config

ADMIN_URL = "https://contoso-admin.sharepoint.com"


class FakeAdminApi:
    """Answers admin API requests from canned responses and records each call."""

    def __init__(self):
        self.calls: List[Tuple[str, str, Any, Any]] = []
        # (method, path, site url) -> httpx.Response or callable
        self.responses: Dict[Tuple[str, str, Any], Any] = {}
        self.tenant_policy = {
            "enableAutoExpirationVersionTrim": False,
            "majorVersionLimit": 500,
            "expireVersionsAfterDays": 0,
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        site = request.url.params.get("url")
        path = request.url.path.replace("/_api/spversion", "", 1)
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, path, site, body))

        if path == "/tenant/policy" and request.method == "GET":
            return httpx.Response(200, json=self.tenant_policy)
        response = self.responses.get((request.method, path, site))
        if callable(response):
            return response(request)
        if response is not None:
            return response
        if request.method == "GET" and path == "/sites/policy":
            return httpx.Response(200, json={"enableAutoExpirationVersionTrim": True})
        return httpx.Response(200, json={"status": "New"})

    def calls_for(self, method: str, path: str) -> List[Tuple[str, str, Any, Any]]:
        return [call for call in self.calls if call[0] == method and call[1] == path]


@pytest.fixture
def fake_api():
    return FakeAdminApi()


@pytest.fixture
def run_context(fake_api, tmp_path, sleeps):
    """RunContext whose sessions talk to ``fake_api``."""
    return RunContext(
        config=Config(config_dir=tmp_path),
        tenant=TenantContext(tenant_name="contoso", admin_url=ADMIN_URL),
        session_manager=SessionManager(
            TokenAuthenticator(access_token="token", interactive=False),
            transport=httpx.MockTransport(fake_api.handle),
        ),
        retry_policy=RetryPolicy(sleep=sleeps.append),
    )
