"""
HTTP client for the Utsav backend.

One round trip per call; no retries. Non-2xx responses and transport
failures surface as BackendError.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from utsav.client.config import ClientSettings

logger = structlog.get_logger(__name__)


class BackendError(Exception):
    """
    A failed backend call.

    status_code is 0 when the request never got a response.
    """

    def __init__(self, status_code: int, code: str, message: str) -> None:
        super().__init__(f"{status_code} {code}: {message}")
        self.status_code = status_code
        self.code = code
        self.message = message

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


def _error_from_response(response: httpx.Response) -> BackendError:
    try:
        body = response.json()
    except ValueError:
        return BackendError(response.status_code, f"HTTP_{response.status_code}", response.text)

    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return BackendError(
            response.status_code,
            str(detail.get("code", f"HTTP_{response.status_code}")),
            str(detail.get("message", "")),
        )
    if isinstance(detail, list):
        return BackendError(response.status_code, "VALIDATION_ERROR", str(detail))
    if isinstance(body, dict) and "code" in body:
        return BackendError(response.status_code, str(body["code"]), str(body.get("message", "")))
    return BackendError(response.status_code, f"HTTP_{response.status_code}", str(detail or body))


class BackendClient:
    """
    Thin async wrapper around httpx.

    Paths are relative to API_URL; translation functions are addressed by
    name under FUNCTIONS_URL. The bearer token is attached when set.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        self.access_token: str | None = None
        self._http = httpx.AsyncClient(
            transport=transport,
            timeout=self.settings.TIMEOUT_SECONDS,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    async def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._http.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("backend_unreachable", method=method, url=url, error=str(exc))
            raise BackendError(0, "NETWORK_ERROR", str(exc)) from exc

        if response.is_error:
            error = _error_from_response(response)
            logger.info(
                "backend_error",
                method=method,
                url=url,
                status_code=error.status_code,
                code=error.code,
            )
            raise error

        if not response.content:
            return None
        return response.json()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        url = self.settings.API_URL.rstrip("/") + path
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        return await self._send(method, url, json=json, params=params, data=data, files=files)

    async def get(self, path: str, **params: Any) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def invoke(self, function_name: str, body: dict[str, Any]) -> Any:
        """POST a JSON body to a translation function."""
        url = f"{self.settings.FUNCTIONS_URL.rstrip('/')}/{function_name}"
        return await self._send("POST", url, json=body)
