"""
HTTP client for the test service, used by the editor to fetch and save tests.

Wraps an `httpx.AsyncClient`. Every call either returns parsed data or
raises one of:
- NotFoundOrUnauthorized for 401 / 403 / 404 responses
- PersistenceFailure for any other error status or transport error
"""

import time
from typing import Any, Dict, Optional

import httpx

from testcraft.editor.drafts import TestDraft
from testcraft.errors import NotFoundOrUnauthorized, PersistenceFailure
from testcraft.logging_config import get_logger, log_with_context

logger = get_logger("http")


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error")
        if isinstance(detail, dict):
            return detail.get("message") or str(detail)
        if detail:
            return str(detail)
    return str(body)


class TestServiceClient:
    """
    Async client for the /api/tests endpoints.

    Args:
        base_url: Service root, e.g. "http://localhost:8000"
        token: Bearer token of the acting author
        http: Pre-configured AsyncClient (tests pass one bound to the ASGI app)
        timeout: Request timeout in seconds when the client is created here
    """

    def __init__(self, base_url: str = "", token: Optional[str] = None,
                 http: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self._http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._owns_http = http is None
        self._headers = {"Authorization": "Bearer {}".format(token)} if token else {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self):
        if self._owns_http:
            await self._http.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        start_time = time.time()
        try:
            response = await self._http.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as e:
            log_with_context(logger, "ERROR", "Request failed: {} {}".format(method, url),
                             extra_data={"error": str(e)})
            raise PersistenceFailure("Could not reach the test service: {}".format(e))

        duration_ms = (time.time() - start_time) * 1000
        log_with_context(logger, "DEBUG", "{} {} -> {}".format(method, url, response.status_code),
                         extra_data={"duration_ms": round(duration_ms, 2)})

        if response.status_code in (401, 403, 404):
            raise NotFoundOrUnauthorized(_error_detail(response), response.status_code)
        if response.status_code >= 400:
            raise PersistenceFailure(_error_detail(response), response.status_code)
        return response.json()

    async def get_test(self, test_id: str) -> TestDraft:
        data = await self._request("GET", "/api/tests/{}".format(test_id))
        return TestDraft.model_validate(data["test"])

    async def update_test(self, test_id: str, payload: Dict[str, Any]) -> TestDraft:
        data = await self._request("PUT", "/api/tests/{}".format(test_id), json=payload)
        return TestDraft.model_validate(data["test"])

    async def create_test(self, payload: Dict[str, Any]) -> str:
        """Create a DRAFT test and return its id."""
        data = await self._request("POST", "/api/tests", json=payload)
        return data["test"]["id"]

    async def list_tests(self, page: int = 1, limit: int = 10, status: Optional[str] = None) -> Dict[str, Any]:
        params = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        return await self._request("GET", "/api/tests", params=params)
