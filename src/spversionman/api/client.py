"""HTTP client for the version-retention admin API."""

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Iterable, List, Optional

import httpx

from ..errors import RateLimitedError, RemoteFaultError
from ..policy.models import BatchDeleteSpec, TenantVersionConfig, VersionPolicy

logger = logging.getLogger(__name__)

API_ROOT = "/_api/spversion"
THROTTLE_STATUS_CODES = {429, 503}


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header given as seconds or an HTTP date."""
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring unparseable Retry-After header %r", value)
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def _error_detail(response: httpx.Response) -> Dict[str, Optional[str]]:
    try:
        body = response.json()
    except ValueError:
        return {"code": None, "message": response.text or response.reason_phrase}
    error = body.get("error", body) if isinstance(body, dict) else {}
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, dict):
            message = message.get("value")
        return {"code": error.get("code"), "message": message or response.reason_phrase}
    return {"code": None, "message": str(error)}


class SharePointAdminClient:
    """Thin wrapper over the admin API.

    Every method raises RateLimitedError when the service throttles and
    RemoteFaultError for any other failure.
    """

    def __init__(self, http: httpx.Client, resource: Optional[str] = None):
        """
        Initialize the client.

        Args:
            http: Authenticated httpx client whose base URL is the admin endpoint
            resource: Site URL used to tag errors raised by this client
        """
        self.http = http
        self.resource = resource

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = path if httpx.URL(path).is_absolute_url else API_ROOT + path
        try:
            response = self.http.request(method, url, params=params, json=json)
        except httpx.TimeoutException as e:
            raise RemoteFaultError(f"Request timed out: {e}", resource=self.resource) from e
        except httpx.HTTPError as e:
            raise RemoteFaultError(f"Request failed: {e}", resource=self.resource) from e

        if response.status_code in THROTTLE_STATUS_CODES:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            raise RateLimitedError(
                f"{method} {path} throttled with HTTP {response.status_code}",
                retry_after=retry_after,
                resource=self.resource,
            )

        if response.is_error:
            detail = _error_detail(response)
            raise RemoteFaultError(
                f"HTTP {response.status_code}: {detail['message']}",
                status_code=response.status_code,
                error_code=detail["code"],
                resource=self.resource,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RemoteFaultError(
                "Response was not valid JSON",
                status_code=response.status_code,
                resource=self.resource,
            ) from e

    # Site operations

    def get_site_policy(self, site_url: str) -> Dict[str, Any]:
        return self._request("GET", "/sites/policy", params={"url": site_url})

    def set_site_policy(self, site_url: str, policy: VersionPolicy) -> Dict[str, Any]:
        return self._request(
            "POST", "/sites/policy", params={"url": site_url}, json=policy.to_payload()
        )

    def get_site_policy_progress(self, site_url: str) -> Dict[str, Any]:
        return self._request("GET", "/sites/policy/progress", params={"url": site_url})

    def create_delete_job(self, site_url: str, spec: BatchDeleteSpec) -> Dict[str, Any]:
        return self._request(
            "POST", "/sites/deletejobs", params={"url": site_url}, json=spec.to_payload()
        )

    def get_delete_job_progress(self, site_url: str) -> Dict[str, Any]:
        return self._request("GET", "/sites/deletejobs/progress", params={"url": site_url})

    def cancel_delete_job(self, site_url: str) -> Dict[str, Any]:
        return self._request("DELETE", "/sites/deletejobs", params={"url": site_url})

    # Tenant operations

    def get_tenant_config(self) -> TenantVersionConfig:
        return TenantVersionConfig.from_payload(self._request("GET", "/tenant/policy"))

    def set_tenant_config(self, policy: VersionPolicy) -> Dict[str, Any]:
        return self._request("POST", "/tenant/policy", json=policy.to_payload())

    def list_sites(self, templates: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        """List every site, following continuation links.

        Args:
            templates: Optional template names to pass through as a server filter

        Returns:
            Site records with at least ``url`` and ``template`` keys
        """
        params: Optional[Dict[str, Any]] = {}
        if templates:
            params["template"] = ",".join(templates)

        sites: List[Dict[str, Any]] = []
        path: Optional[str] = "/sites"
        while path:
            page = self._request("GET", path, params=params)
            sites.extend(page.get("value", []))
            path = page.get("nextLink")
            if path and path.startswith(API_ROOT):
                path = path[len(API_ROOT) :]
            params = None
        return sites
