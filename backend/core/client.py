"""HTTP client for the CachedInfo REST API.

Used by the catalogue cache, the auth session and the submission pipeline.
Every failure, whether a transport error or a non-2xx status, surfaces as
``ApiError`` so callers can catch a single exception type.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

TOKEN_HEADER = "x-auth-token"


class ApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.payload = payload

    @property
    def field_errors(self) -> Dict[str, str]:
        if isinstance(self.payload, dict):
            return dict(self.payload.get("errors") or {})
        return {}


class ApiClient:
    def __init__(self, base_url: str = "http://localhost:5000", token: Optional[str] = None,
                 timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None,
                 headers: Optional[Dict[str, str]] = None):
        self.token = token
        self._http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport,
                                  headers=headers or {})

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _request(self, method: str, path: str, json: Any = None, params: Optional[Dict] = None) -> Any:
        headers = {TOKEN_HEADER: self.token} if self.token else {}
        try:
            response = self._http.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise ApiError(f"{method} {path} failed: {e}") from e
        try:
            payload = response.json()
        except ValueError:
            payload = response.text
        if response.is_error:
            message = payload.get("message", payload.get("error")) if isinstance(payload, dict) else payload
            raise ApiError(f"{method} {path} returned {response.status_code}: {message}",
                           status=response.status_code, payload=payload)
        return payload

    # Hierarchy
    def universities(self) -> List[Dict]:
        return self._request("GET", "/api/universities")

    def domains(self, university_id) -> List[Dict]:
        return self._request("GET", f"/api/universities/{university_id}/domains")

    def subjects(self, domain_id) -> List[Dict]:
        return self._request("GET", f"/api/domains/{domain_id}/subjects")

    def skill_categories(self) -> List[Dict]:
        return self._request("GET", "/api/skills/categories")

    def skills(self, category_id) -> List[Dict]:
        return self._request("GET", f"/api/skills/categories/{category_id}/skills")

    def exam_categories(self) -> List[Dict]:
        return self._request("GET", "/api/exams/categories")

    def exams(self, category_id) -> List[Dict]:
        return self._request("GET", f"/api/exams/categories/{category_id}/exams")

    # Resources
    def catalog(self) -> Dict:
        return self._request("GET", "/api/catalog")

    def stats(self) -> Dict:
        return self._request("GET", "/api/stats")

    def search(self, query: str) -> List[Dict]:
        return self._request("GET", "/api/search", params={"q": query})

    def submit_resource(self, payload: Dict) -> Dict:
        return self._request("POST", "/api/resources", json=payload)

    def submit_request(self, payload: Dict) -> Dict:
        return self._request("POST", "/api/requests", json=payload)

    # Auth
    def sign_in(self, id_token: str, full_name: Optional[str] = None) -> Dict:
        body = {"tokenId": id_token}
        if full_name:
            body["full_name"] = full_name
        return self._request("POST", "/api/auth/google", json=body)

    def current_user(self) -> Dict:
        return self._request("GET", "/api/auth/user")
