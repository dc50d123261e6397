"""
KeyStoreClient SDK: sync client for Keygate.

Used by external services to verify access keys and, with the admin key,
to issue and revoke them.
"""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import httpx

from keygate.common.security import API_KEY_HEADER
from keygate.keys.expiry import parse_timestamp


@dataclass
class ClientKey:
    """A key record as returned by the server."""

    key: str
    owner: str = ""
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


@dataclass
class ClientVerifyResult:
    """Result of verify() call."""

    valid: bool
    message: str = ""
    owner: Optional[str] = None
    code: str = ""


@dataclass
class ClientIssueResult:
    """Result of add_key() and generate_key() calls."""

    success: bool
    key: str = ""
    expires_at: Optional[datetime] = None
    message: str = ""
    code: str = ""


@dataclass
class ClientKeyPage:
    """One page of list_keys()."""

    keys: list[ClientKey] = field(default_factory=list)
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_prev: bool = False
    code: str = ""


def _timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except (ValueError, TypeError):
        return None


class KeyStoreClient:
    """
    Synchronous HTTP client for Keygate.

    Can be wrapped in async by consumers; designed for simplicity in sync contexts.
    """

    def __init__(
        self,
        server_url: str = "http://localhost:3000",
        api_key: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        retry_backoff_base: float = 0.5,
    ):
        self.server_url = server_url.rstrip("/")
        self.api_key = api_key
        self.max_retries = max_retries
        self.retry_backoff_base = retry_backoff_base
        self._http = httpx.Client(
            base_url=self.server_url,
            timeout=timeout,
        )

    def _admin_headers(self) -> dict[str, str]:
        headers = {}
        if self.api_key:
            headers[API_KEY_HEADER] = self.api_key
        return headers

    def _request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Central HTTP method with retry and structured error handling.

        Retries on:
        - httpx.TimeoutException and other transport errors
        - 5xx status codes
        - 429 (rate limit)

        No retry on other 4xx errors. A 5xx that carries a JSON message
        (duplicate key, generation failure) is not retried either.

        Returns parsed JSON on success, or a dict with ``error`` and
        ``code`` on failure.
        """
        last_error = None
        for attempt in range(self.max_retries):
            try:
                resp = getattr(self._http, method)(path, **kwargs)
                if resp.status_code >= 400:
                    message = self._error_message(resp)
                    retryable = resp.status_code >= 500 or resp.status_code == 429
                    if retryable and message is None and attempt < self.max_retries - 1:
                        last_error = f"HTTP {resp.status_code}"
                        time.sleep(self.retry_backoff_base * (2 ** attempt))
                        continue
                    return {
                        "error": message or f"HTTP {resp.status_code}",
                        "code": "SERVER_ERROR" if resp.status_code >= 500 else "CLIENT_ERROR",
                        "status": resp.status_code,
                    }
                return resp.json()
            except httpx.HTTPError as e:
                last_error = str(e) or type(e).__name__
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_backoff_base * (2 ** attempt))
                    continue
            except json.JSONDecodeError:
                return {"error": "Invalid JSON response", "code": "JSON_ERROR"}

        return {"error": f"All {self.max_retries} retries exhausted: {last_error}", "code": "CONNECTION_ERROR"}

    @staticmethod
    def _error_message(resp: httpx.Response) -> Optional[str]:
        try:
            data = resp.json()
        except ValueError:
            return None
        if isinstance(data, dict) and isinstance(data.get("message"), str):
            return data["message"]
        return None

    @staticmethod
    def _issue_body(owner: str, expires_in: int | float | str | None) -> dict[str, Any]:
        body: dict[str, Any] = {"owner": owner}
        if expires_in is not None:
            body["expiresIn"] = expires_in
        return body

    @staticmethod
    def _parse_issue(data: dict[str, Any]) -> ClientIssueResult:
        if "error" in data:
            return ClientIssueResult(success=False, message=data["error"], code=data.get("code", ""))
        return ClientIssueResult(
            success=True,
            key=data.get("key", ""),
            expires_at=_timestamp(data.get("expiresAt")),
            message=data.get("message", ""),
            code="OK",
        )

    # ── Public ──

    def ping(self) -> bool:
        try:
            resp = self._http.get("/ping")
        except httpx.HTTPError:
            return False
        return resp.status_code == 200 and resp.text == "pong"

    def verify(self, key: str) -> ClientVerifyResult:
        data = self._request("post", "/verify", json={"key": key})
        if "error" in data:
            return ClientVerifyResult(valid=False, message=data["error"], code=data.get("code", ""))
        return ClientVerifyResult(
            valid=bool(data.get("isValid", False)),
            message=data.get("message", ""),
            owner=data.get("owner"),
            code="OK" if data.get("isValid") else "INVALID",
        )

    # ── Admin ──

    def add_key(
        self, key: str, owner: str, expires_in: int | float | str | None = None,
    ) -> ClientIssueResult:
        body = self._issue_body(owner, expires_in)
        body["key"] = key
        data = self._request("post", "/add-key", json=body, headers=self._admin_headers())
        return self._parse_issue(data)

    def generate_key(
        self, owner: str, expires_in: int | float | str | None = None,
    ) -> ClientIssueResult:
        data = self._request(
            "post", "/generate-key",
            json=self._issue_body(owner, expires_in),
            headers=self._admin_headers(),
        )
        return self._parse_issue(data)

    def delete_key(self, key: str) -> bool:
        data = self._request(
            "post", "/delete-key", json={"key": key}, headers=self._admin_headers(),
        )
        return bool(data.get("success", False))

    def list_keys(self, page: int = 1, limit: int = 10) -> ClientKeyPage:
        data = self._request(
            "get", "/get-keys",
            params={"page": page, "limit": limit},
            headers=self._admin_headers(),
        )
        if "error" in data:
            return ClientKeyPage(page=page, limit=limit, code=data.get("code", ""))
        meta = data.get("pagination", {})
        return ClientKeyPage(
            keys=[
                ClientKey(
                    key=item.get("key", ""),
                    owner=item.get("owner", ""),
                    created_at=_timestamp(item.get("createdAt")),
                    expires_at=_timestamp(item.get("expiresAt")),
                )
                for item in data.get("keys", [])
            ],
            page=meta.get("page", page),
            limit=meta.get("limit", limit),
            total=meta.get("total", 0),
            total_pages=meta.get("totalPages", 0),
            has_next=meta.get("hasNext", False),
            has_prev=meta.get("hasPrev", False),
            code="OK",
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "KeyStoreClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
