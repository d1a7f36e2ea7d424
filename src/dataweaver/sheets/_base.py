"""Base HTTP client and error type for remote sheet stores."""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

_KIND_BY_STATUS = {
    400: "malformed",
    401: "permission_denied",
    403: "permission_denied",
    404: "not_found",
}

_DEFAULT_MESSAGES = {
    "not_found": "The requested spreadsheet or sheet was not found.",
    "permission_denied": "Permission denied. Share the spreadsheet with the service account.",
    "malformed": "The spreadsheet identifier or range is malformed.",
}


class SheetStoreError(Exception):
    """A remote sheet call failed.

    ``kind`` is one of ``not_found``, ``permission_denied``, ``malformed``,
    ``network`` or ``unknown``; the message is meant for the user.
    """

    def __init__(self, message: str, kind: str = "unknown", status: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status = status

    @classmethod
    def from_status(cls, status: int, detail: str = "") -> "SheetStoreError":
        kind = _KIND_BY_STATUS.get(status, "unknown")
        message = detail or _DEFAULT_MESSAGES.get(kind, f"Remote call failed with status {status}.")
        return cls(message, kind=kind, status=status)


def _error_detail(raw: str) -> str:
    """Pull the API's own message out of an error body when there is one."""
    try:
        body = json.loads(raw)
    except ValueError:
        return ""
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message", ""))
    return ""


class BaseClient:
    """Lightweight HTTP client using stdlib only (no requests dependency)."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        token_env: str = "",
        auth_header: str = "Authorization",
        auth_prefix: str = "Bearer",
        timeout: int = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or os.getenv(token_env, "")
        self.timeout = timeout
        self._auth_header = auth_header
        self._auth_prefix = auth_prefix

    def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Execute an HTTP request and return parsed JSON.

        Raises:
            SheetStoreError: On any HTTP or connection failure.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req_headers = {"Content-Type": "application/json"}
        if self.api_key:
            req_headers[self._auth_header] = f"{self._auth_prefix} {self.api_key}"
        if headers:
            req_headers.update(headers)

        req = Request(url, data=data, headers=req_headers, method=method.upper())
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8")
                return json.loads(raw) if raw.strip() else {}
        except HTTPError as e:
            body_text = e.read().decode("utf-8", errors="replace")[:500]
            raise SheetStoreError.from_status(e.code, _error_detail(body_text)) from e
        except URLError as e:
            raise SheetStoreError(f"Connection failed: {e.reason}", kind="network") from e

    def get(self, path: str, **kw) -> Dict[str, Any]:
        return self._request("GET", path, **kw)

    def post(self, path: str, body: dict = None, **kw) -> Dict[str, Any]:
        return self._request("POST", path, body=body, **kw)

    def check_configured(self, service_name: str) -> None:
        """Raise if the access token is not set."""
        if not self.api_key:
            raise SheetStoreError(
                f"{service_name} access token not configured. "
                f"Set it in the environment or pass it explicitly.",
                kind="permission_denied",
            )
