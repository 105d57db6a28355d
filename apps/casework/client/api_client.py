"""
HTTP client for the case REST API.

Every call sends the token both as ``x-auth-token`` and as a bearer
``Authorization`` header; the API accepts either. Errors are not swallowed
here: ``requests`` exceptions and non-2xx responses propagate to the caller.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

import requests

logger = logging.getLogger("hopetrack.api_client")

API_BASE_URL = os.getenv("HOPETRACK_API_URL", "http://localhost:5000/api").rstrip("/")
API_TOKEN = os.getenv("HOPETRACK_API_TOKEN")
HTTP_TIMEOUT = float(os.getenv("HOPETRACK_HTTP_TIMEOUT", "30"))


class AuthenticationRequired(RuntimeError):
    """Raised when a request needs a token and none is configured."""


class CaseApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ):
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.token = token if token is not None else API_TOKEN
        self.session = session or requests.Session()
        self.timeout = timeout or HTTP_TIMEOUT

    def _headers(self) -> dict[str, str]:
        if not self.token:
            raise AuthenticationRequired("Authentication required")
        return {
            "x-auth-token": self.token,
            "Authorization": f"Bearer {self.token}",
        }

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        resp = self.session.request(
            method,
            self._url(path),
            headers=self._headers(),
            timeout=self.timeout,
            **kwargs,
        )
        resp.raise_for_status()
        return resp

    # ── Cases ─────────────────────────────────────────────────────────

    def get_case(self, case_id: str | int) -> dict[str, Any]:
        return self._request("GET", f"/cases/{case_id}").json()

    def list_all_cases(self) -> list[dict[str, Any]]:
        data = self._request("GET", "/cases/all").json()
        return data if isinstance(data, list) else []

    def update_case(self, case_id: str | int, payload: Mapping[str, Any]) -> dict[str, Any]:
        resp = self._request("PUT", f"/cases/{case_id}", json=dict(payload))
        return resp.json() if resp.content else {}

    def get_life_skills(self, case_id: str | int) -> list[dict[str, Any]]:
        data = self._request("GET", f"/cases/{case_id}/life-skills").json()
        return data if isinstance(data, list) else []

    def get_vital_signs(self, case_id: str | int) -> list[dict[str, Any]]:
        data = self._request("GET", f"/cases/{case_id}/vital-signs").json()
        return data if isinstance(data, list) else []

    # ── Server-side export ────────────────────────────────────────────

    def export_cases_pdf(self, cases: list[Mapping[str, Any]], list_only: bool = True) -> bytes:
        """Ask the export endpoint for the consolidated list PDF."""
        resp = self._request(
            "POST",
            "/export/cases/pdf-html",
            json={"cases": [dict(c) for c in cases], "listOnly": list_only},
        )
        content_type = resp.headers.get("Content-Type", "")
        if "pdf" not in content_type.lower():
            raise requests.HTTPError(f"Unexpected export response type: {content_type or 'none'}", response=resp)
        return resp.content
