"""Firebase Realtime Database client — per-account key/value persistence.

Talks to the REST surface (``{database_url}/users/{uid}/{path}.json``).
Authentication is delegated: pass a database secret or an ID token as
``auth_token`` and it is sent as the ``auth`` query parameter.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from streamtracker.clients.base import IUserStore, StoreError

logger = logging.getLogger(__name__)


class FirebaseUserStore(IUserStore):
    """Account store backed by the Firebase Realtime Database REST API."""

    def __init__(
        self,
        database_url: str,
        auth_token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.database_url = database_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout = timeout
        self._transport = transport

    def _url(self, account_id: str, path: str) -> str:
        path = path.strip("/")
        account = quote(account_id, safe="")
        key = f"users/{account}/{path}" if path else f"users/{account}"
        return f"{self.database_url}/{key}.json"

    def _params(self) -> dict:
        return {"auth": self.auth_token} if self.auth_token else {}

    async def read(self, account_id: str, path: str = "") -> Any:
        """Value at ``path``; None if absent. Raises StoreError on any failure."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(self._url(account_id, path), params=self._params())
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise StoreError(f"Read users/{account_id}/{path} failed: {e}") from e

    async def write(self, account_id: str, path: str, value: Any) -> bool:
        """Replace the value at ``path`` (PUT). Returns False on failure."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.put(
                    self._url(account_id, path), params=self._params(), json=value,
                )
                resp.raise_for_status()
                return True
        except httpx.HTTPError as e:
            logger.error("Write users/%s/%s failed: %s", account_id, path, e)
            return False

    async def test_connection(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(
                    f"{self.database_url}/.json", params={**self._params(), "shallow": "true"},
                )
                return resp.status_code < 400
        except httpx.HTTPError:
            return False
