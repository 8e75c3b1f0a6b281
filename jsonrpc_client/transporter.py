"""JSON-RPC over HTTP POST.

The transporter is the only part of the runtime that touches the network.
It sends one envelope and returns the ``result``/``error`` pair; anything
that prevents it from getting a reply is raised as TransportError, which
the client turns into an error value.
"""

from __future__ import annotations

import enum
import logging
import os
from typing import Any, Awaitable, Mapping, Protocol

import httpx

from .errors import TransportError

logger = logging.getLogger(__name__)


class RpcEndpoint(str, enum.Enum):
    MAINNET = "https://rpc.mainnet.near.org"
    TESTNET = "https://rpc.testnet.near.org"
    BETANET = "https://rpc.betanet.near.org"
    LOCALNET = "http://localhost:3030"


DEFAULT_ENDPOINT = os.environ.get("JSONRPC_ENDPOINT", RpcEndpoint.TESTNET.value)
DEFAULT_TIMEOUT = 30.0
REQUEST_ID = "dontcare"


def _env_timeout() -> float:
    raw = os.environ.get("JSONRPC_TIMEOUT")
    if raw is None:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"JSONRPC_TIMEOUT must be a number, got {raw!r}") from None


class Transporter(Protocol):
    def __call__(self, method: str, params: Any) -> Awaitable[Mapping[str, Any]]:
        ...


class JsonRpcTransporter:
    """Post JSON-RPC 2.0 envelopes with an ``httpx.AsyncClient``.

    Pass ``client`` to share a connection pool (or to plug in an
    ``httpx.MockTransport``); otherwise one is created and closed by
    :meth:`aclose`.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        if isinstance(endpoint, RpcEndpoint):
            endpoint = endpoint.value
        self.endpoint = endpoint or DEFAULT_ENDPOINT
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout if timeout is not None else _env_timeout()),
        )
        self._headers = {"Content-Type": "application/json", **(headers or {})}

    async def __call__(self, method: str, params: Any) -> dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": REQUEST_ID,
            "method": method,
            "params": params,
        }
        logger.debug("POST %s method=%s", self.endpoint, method)
        try:
            response = await self._client.post(self.endpoint, json=payload, headers=self._headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise TransportError(f"HTTP error {exc.response.status_code} from {self.endpoint}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        except ValueError as exc:
            raise TransportError("reply body is not JSON") from exc

        if not isinstance(data, dict):
            raise TransportError("reply is not a JSON-RPC envelope")
        return {"result": data.get("result"), "error": data.get("error")}

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "JsonRpcTransporter":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
