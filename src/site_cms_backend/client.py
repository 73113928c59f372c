"""
HTTP client for the admin API.

The bearer token is held by the ``CmsClient`` instance that obtained it, not
in module state, so several sessions can coexist and callers decide where
the token is persisted between runs.

Example:
    >>> client = CmsClient("http://localhost:5001")
    >>> client.login("admin", "secret")
    >>> page = client.get_page_data()
    >>> page["hero"]["title"] = "New title"
    >>> client.save_page_data(page)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotAuthenticatedError(ApiError):
    """An authenticated call was attempted without a token."""


class SessionExpiredError(ApiError):
    """The server rejected the token with 401; the client token was cleared."""


class CmsClient:
    """
    Thin wrapper over the admin HTTP surface.

    Args:
        base_url: Server root, e.g. ``http://localhost:5001``
        token: Previously issued bearer token, if any
        http: Preconfigured httpx client; one is created when omitted
        api_prefix: Path prefix of the JSON API
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5001",
        token: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        api_prefix: str = "/api",
    ) -> None:
        self.token = token
        self.api_prefix = api_prefix.rstrip("/")
        self._http = http or httpx.Client(base_url=base_url)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "CmsClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _auth_headers(self) -> Dict[str, str]:
        if not self.token:
            raise NotAuthenticatedError("Not authenticated")
        return {"Authorization": f"Bearer {self.token}"}

    def _request(self, method: str, endpoint: str, requires_auth: bool = False, **kwargs: Any) -> Dict[str, Any]:
        headers = dict(kwargs.pop("headers", {}) or {})
        if requires_auth:
            headers.update(self._auth_headers())

        response = self._http.request(method, f"{self.api_prefix}{endpoint}", headers=headers, **kwargs)

        if response.status_code == 401 and requires_auth:
            self.token = None
            raise SessionExpiredError("Session expired, please log in again", status_code=401)
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = (body.get("error") if isinstance(body, dict) else None) or f"Error: {response.status_code}"
            raise ApiError(message, status_code=response.status_code)
        return response.json()

    def login(self, username: str, password: str) -> Dict[str, Any]:
        result = self._request("POST", "/auth/login", json={"username": username, "password": password})
        self.token = result["token"]
        return result

    def logout(self) -> None:
        self.token = None

    def verify_token(self) -> Union[Dict[str, Any], bool]:
        """Return the verify payload, or False if the token is missing or rejected."""
        try:
            return self._request("GET", "/auth/verify", requires_auth=True)
        except ApiError as exc:
            logger.warning(f"Token verification failed: {exc.message}")
            return False

    def upload_service_image(self, path: Union[str, Path], content_type: str = "image/jpeg") -> Dict[str, Any]:
        path = Path(path)
        with path.open("rb") as handle:
            files = {"image": (path.name, handle, content_type)}
            return self._request("POST", "/services/upload", requires_auth=True, files=files)

    def list_images(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/services/images", requires_auth=True)["images"]

    def delete_image(self, filename: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/services/images/{filename}", requires_auth=True)

    def get_page_data(self) -> Dict[str, Any]:
        return self._request("GET", "/content/page-data")

    def save_page_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/content/page-data", requires_auth=True, json=data)

    def check_health(self) -> Optional[Dict[str, Any]]:
        try:
            return self._request("GET", "/health")
        except (ApiError, httpx.HTTPError) as exc:
            logger.warning(f"Server unavailable: {exc}")
            return None
