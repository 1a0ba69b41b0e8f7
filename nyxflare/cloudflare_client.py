"""Cloudflare DNS API client for nyxflare.

Uses the Cloudflare v4 REST API to list zones and manage DNS records.
Authentication is either a scoped API token (Bearer token) or the legacy
global API key paired with the account e-mail.

Requests go through urllib.request with a default SSL context; list
calls follow ``result_info.total_pages``.
"""

from __future__ import annotations

import json
import logging
import ssl
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Optional

logger = logging.getLogger(__name__)

BODY_PREVIEW_LIMIT = 200


class CloudflareError(Exception):
    """Cloudflare API error.

    ``status`` is the HTTP status code, or ``None`` when the request never
    produced a response (connection failure, bad JSON, ...).
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
        self.message = message


def truncate_body(text: str, limit: int = BODY_PREVIEW_LIMIT) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def format_errors(errors: list) -> str:
    """Render a Cloudflare ``errors`` array as ``[code] message; ...``."""
    return "; ".join(
        f"[{err.get('code', '?')}] {err.get('message', 'Unknown error')}"
        for err in errors
        if isinstance(err, dict)
    )


class CloudflareClient:
    """Cloudflare DNS API client.

    Constructor parameters:
      api_token: A Cloudflare API token, or the global API key when
          *email* is given with ``global_key=True``.
      email: Account e-mail, only used with the global API key.
      global_key: Authenticate with ``X-Auth-Email``/``X-Auth-Key``.
      base_url: API root, overridable for tests.
    """

    BASE_URL = "https://api.cloudflare.com/client/v4"
    USER_AGENT = "nyxflare/0.1"
    TIMEOUT = 30

    def __init__(
        self,
        api_token: str,
        email: Optional[str] = None,
        global_key: bool = False,
        base_url: Optional[str] = None,
    ):
        if not api_token:
            raise CloudflareError("api_token is required")
        if global_key and not email:
            raise CloudflareError("email is required for global API key auth")
        self._api_token = api_token
        self._email = email
        self._global_key = global_key
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._ssl_ctx = ssl.create_default_context()

    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------

    def list_zones(self, account_id: Optional[str] = None) -> list[dict]:
        """List all zones accessible to the credentials.

        Paginates through ``GET /zones?per_page=50``.  When *account_id*
        is given only zones owned by that account are returned.
        """
        params: dict[str, Any] = {"per_page": 50}
        if account_id:
            params["account.id"] = account_id
        return self._paginate("/zones", params)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def list_records(self, zone_id: str) -> list[dict]:
        """List all DNS records in a zone (``GET /zones/{id}/dns_records``)."""
        return self._paginate(f"/zones/{zone_id}/dns_records", {"per_page": 100})

    def create_record(self, zone_id: str, body: dict) -> dict:
        """Create a DNS record and return the API ``result`` object."""
        resp = self._request("POST", f"/zones/{zone_id}/dns_records", data=body)
        return self._require_result(resp, "create")

    def update_record(self, zone_id: str, record_id: str, body: dict) -> dict:
        """Overwrite a DNS record (``PUT``) and return the API ``result``."""
        resp = self._request(
            "PUT", f"/zones/{zone_id}/dns_records/{record_id}", data=body,
        )
        return self._require_result(resp, "update")

    def delete_record(self, zone_id: str, record_id: str) -> None:
        """Delete a DNS record."""
        self._request("DELETE", f"/zones/{zone_id}/dns_records/{record_id}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_result(resp: dict, action: str) -> dict:
        result = resp.get("result")
        if not isinstance(result, dict):
            raise CloudflareError(f"Cloudflare {action} succeeded but returned no record")
        return result

    def _paginate(self, path: str, params: dict[str, Any]) -> list[dict]:
        items: list[dict] = []
        page = 1
        while True:
            query = urllib.parse.urlencode({**params, "page": page})
            resp = self._request("GET", f"{path}?{query}")
            result_list = resp.get("result") or []
            items.extend(result_list)
            if not result_list:
                break
            result_info = resp.get("result_info") or {}
            total_pages = result_info.get("total_pages", 1)
            if page >= total_pages:
                break
            page += 1
        return items

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.USER_AGENT,
        }
        if self._global_key:
            headers["X-Auth-Email"] = self._email or ""
            headers["X-Auth-Key"] = self._api_token
        else:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    def _request(
        self, method: str, path: str, data: dict | None = None
    ) -> dict:
        """Make an authenticated API request to Cloudflare.

        Returns:
          The parsed JSON response as a dict.

        Raises:
          CloudflareError: On HTTP errors, malformed responses, or API
              errors (``success == false``).
        """
        url = f"{self._base_url}{path}"

        body_bytes: bytes | None = None
        if data is not None:
            body_bytes = json.dumps(data).encode("utf-8")

        req = urllib.request.Request(
            url,
            data=body_bytes,
            headers=self._headers(),
            method=method,
        )
        logger.debug("%s %s", method, url)

        try:
            with urllib.request.urlopen(req, context=self._ssl_ctx, timeout=self.TIMEOUT) as resp:
                status = getattr(resp, "status", 200)
                resp_body = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            # Try to extract Cloudflare error details from the response body
            error_body = ""
            try:
                error_body = e.read().decode("utf-8", errors="replace")
            except OSError:
                logger.debug("Could not read error body for %s %s", method, url)

            cf_message = ""
            if error_body:
                try:
                    cf_message = format_errors(json.loads(error_body).get("errors", []))
                except (json.JSONDecodeError, AttributeError):
                    pass

            message = cf_message or truncate_body(error_body) or str(e.reason)
            raise CloudflareError(message, status=e.code)
        except urllib.error.URLError as e:
            raise CloudflareError(f"Failed to connect to Cloudflare API: {e.reason}")
        except OSError as e:
            raise CloudflareError(f"Cloudflare API request failed: {e}")

        if not resp_body:
            return {}

        try:
            result = json.loads(resp_body)
        except json.JSONDecodeError:
            raise CloudflareError(
                f"Invalid JSON response from Cloudflare: {truncate_body(resp_body)}",
                status=status,
            )

        # Check for API-level errors
        if isinstance(result, dict) and not result.get("success", True):
            messages = format_errors(result.get("errors", []))
            raise CloudflareError(
                messages or "Cloudflare API returned success=false with no details",
                status=status,
            )

        return result if isinstance(result, dict) else {}
