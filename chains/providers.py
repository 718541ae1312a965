"""
chains/providers.py - JSON-RPC provider with failover.

Provides node access with:
- Multiple endpoint failover for transport failures
- Request timeout handling
- Connection pooling
- Latency tracking

A JSON-RPC error object is normally the node's answer and is raised as
RPCError straight away, without trying another endpoint. Errors that
report load or lag (HTTP 429/5xx, rate limits, -32603, "header not
found") are transport failures instead: the next endpoint is tried and
InfraError is raised once all have failed.
"""

import os
import time
from dataclasses import dataclass
from typing import Any

import httpx

from core.constants import (
    BLOCK_PENDING,
    DEFAULT_TIMEOUT_SECONDS,
    ErrorCode,
    EVM_HALT_MESSAGES,
    TRANSIENT_HTTP_STATUSES,
    TRANSIENT_RPC_CODES,
    TRANSIENT_RPC_MESSAGES,
)
from core.exceptions import InfraError, RPCError, RPCTimeoutError
from core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RPCStats:
    """Statistics for an RPC endpoint."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None
    last_success_ts: int | None = None

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


@dataclass
class RPCResponse:
    """Response from an RPC call."""
    result: Any
    latency_ms: int
    endpoint_used: str


def _redact(url: str) -> str:
    """Strip path and query (API keys live there) from an endpoint URL."""
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return "<invalid url>"
    return f"{parsed.scheme}://{parsed.host}"


def is_transient_rpc_error(http_status: int, rpc_code: Any, rpc_message: str) -> bool:
    """
    Tell node load or lag apart from a rejected request.

    A message that reports an EVM halt is never transient, whatever the
    code: some clients send reverts as -32603.
    """
    message = rpc_message.lower()
    if any(marker in message for marker in EVM_HALT_MESSAGES):
        return False
    if http_status in TRANSIENT_HTTP_STATUSES or rpc_code in TRANSIENT_RPC_CODES:
        return True
    return any(marker in message for marker in TRANSIENT_RPC_MESSAGES)


class RPCProvider:
    """
    JSON-RPC provider with failover support.

    Tries endpoints in order until one answers. Tracks statistics per
    endpoint for monitoring.

    Usage:
        async with RPCProvider([node_url], timeout_seconds=10) as provider:
            response = await provider.eth_call(call, "pending", overrides)
    """

    def __init__(
        self,
        rpc_urls: list[str],
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._request_id = 0

        self.rpc_urls = self._resolve_urls(rpc_urls)

        self.stats: dict[str, RPCStats] = {
            url: RPCStats(url=url) for url in self.rpc_urls
        }

    def _resolve_urls(self, urls: list[str]) -> list[str]:
        """Expand ${VAR} placeholders; drop URLs whose placeholders stay unresolved."""
        resolved = []
        for url in urls:
            resolved_url = os.path.expandvars(url.strip())
            if resolved_url and "${" not in resolved_url:
                resolved.append(resolved_url)
            else:
                logger.warning(
                    "Skipping RPC endpoint with unresolved placeholder",
                    extra={"context": {"endpoint": _redact(url)}},
                )
        return resolved

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                limits=httpx.Limits(max_connections=10),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RPCProvider":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _next_request_id(self) -> int:
        """Generate next request ID."""
        self._request_id += 1
        return self._request_id

    async def call(
        self,
        method: str,
        params: list | None = None,
    ) -> RPCResponse:
        """
        Make an RPC call with failover.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            RPCResponse with result and metadata

        Raises:
            RPCError: The node rejected the request (JSON-RPC error object)
            RPCTimeoutError: Every endpoint timed out
            InfraError: Every endpoint failed at the transport level
        """
        if not self.rpc_urls:
            raise InfraError(
                "No RPC endpoints configured",
                code=ErrorCode.INFRA_RPC_UNAVAILABLE,
            )

        client = await self._get_client()
        last_error: Exception | None = None
        timeouts = 0

        for url in self.rpc_urls:
            stats = self.stats[url]
            stats.total_requests += 1
            endpoint = _redact(url)

            payload = {
                "jsonrpc": "2.0",
                "method": method,
                "params": params or [],
                "id": self._next_request_id(),
            }

            start_ms = int(time.time() * 1000)

            try:
                resp = await client.post(url, json=payload)
                latency_ms = int(time.time() * 1000) - start_ms
                body = resp.json()

            except httpx.TimeoutException as e:
                latency_ms = int(time.time() * 1000) - start_ms
                stats.failed_requests += 1
                stats.last_error = f"Timeout after {latency_ms}ms"
                last_error = e
                timeouts += 1
                logger.debug(
                    "RPC timeout",
                    extra={"context": {"endpoint": endpoint, "method": method, "latency_ms": latency_ms}},
                )
                continue

            except (httpx.HTTPError, ValueError) as e:
                # ValueError: body is not JSON (proxy error page, empty reply)
                stats.failed_requests += 1
                stats.last_error = str(e)
                last_error = e
                logger.debug(
                    "RPC transport failure",
                    extra={"context": {"endpoint": endpoint, "method": method, "error": str(e)}},
                )
                continue

            if not isinstance(body, dict):
                stats.failed_requests += 1
                stats.last_error = "Malformed JSON-RPC response"
                last_error = InfraError(
                    "Malformed JSON-RPC response",
                    code=ErrorCode.INFRA_BAD_RESPONSE,
                )
                continue

            if body.get("error") is not None:
                error = body["error"]
                if isinstance(error, dict):
                    rpc_code = error.get("code")
                    rpc_message = str(error.get("message", ""))
                    rpc_data = error.get("data")
                else:
                    rpc_code, rpc_message, rpc_data = None, str(error), None
                stats.failed_requests += 1
                stats.last_error = rpc_message
                transient = is_transient_rpc_error(resp.status_code, rpc_code, rpc_message)
                logger.debug(
                    "RPC error response",
                    extra={"context": {
                        "endpoint": endpoint,
                        "method": method,
                        "rpc_code": rpc_code,
                        "rpc_message": rpc_message,
                        "http_status": resp.status_code,
                        "transient": transient,
                    }},
                )
                details = {"endpoint": endpoint, "method": method, "http_status": resp.status_code}
                if transient:
                    last_error = InfraError(
                        f"Node unavailable: {rpc_message}",
                        code=ErrorCode.INFRA_RPC_UNAVAILABLE,
                        details={**details, "rpc_code": rpc_code},
                    )
                    continue
                raise RPCError(
                    f"RPC error: {rpc_message}",
                    rpc_code=rpc_code,
                    rpc_message=rpc_message,
                    rpc_data=rpc_data,
                    details=details,
                )

            if "result" not in body:
                stats.failed_requests += 1
                stats.last_error = f"HTTP {resp.status_code} without result"
                last_error = InfraError(
                    f"JSON-RPC response without result (HTTP {resp.status_code})",
                    code=ErrorCode.INFRA_BAD_RESPONSE,
                )
                continue

            # Success
            stats.successful_requests += 1
            stats.total_latency_ms += latency_ms
            stats.last_success_ts = int(time.time() * 1000)

            return RPCResponse(
                result=body["result"],
                latency_ms=latency_ms,
                endpoint_used=endpoint,
            )

        details = {
            "method": method,
            "endpoints_tried": len(self.rpc_urls),
            "last_error": str(last_error),
        }
        if timeouts == len(self.rpc_urls):
            raise RPCTimeoutError(
                f"All RPC endpoints timed out after {self.timeout_seconds}s",
                details=details,
            )
        raise InfraError(
            "All RPC endpoints failed",
            code=ErrorCode.INFRA_RPC_UNAVAILABLE,
            details=details,
        )

    async def get_block_number(self) -> tuple[int, int]:
        """
        Get latest block number.

        Returns:
            (block_number, latency_ms)
        """
        response = await self.call("eth_blockNumber")
        block_number = int(response.result, 16)
        return block_number, response.latency_ms

    async def get_code(self, address: str, block: str = BLOCK_PENDING) -> str:
        """Get deployed code at an address ("0x" for none)."""
        response = await self.call("eth_getCode", [address, block])
        return response.result or "0x"

    async def get_transaction_count(self, address: str, block: str = BLOCK_PENDING) -> int:
        """Get the nonce of an address."""
        response = await self.call("eth_getTransactionCount", [address, block])
        return int(response.result, 16)

    async def eth_call(
        self,
        call: dict[str, str],
        block: str = BLOCK_PENDING,
        state_override: dict[str, dict[str, str]] | None = None,
    ) -> RPCResponse:
        """
        Make eth_call, optionally with a state override set.

        Args:
            call: Call object ({"to", "data", ["value"], ["from"], ["gas"]})
            block: Block tag or hex block number
            state_override: Address -> {"code": ...} overrides for this call

        Returns:
            RPCResponse with call result
        """
        params: list[Any] = [call, block]
        if state_override:
            params.append(state_override)
        return await self.call("eth_call", params)

    def get_stats_summary(self) -> dict:
        """Get statistics summary for all endpoints."""
        return {
            _redact(url): {
                "total_requests": s.total_requests,
                "success_rate": round(s.success_rate, 3),
                "avg_latency_ms": s.avg_latency_ms,
                "last_error": s.last_error,
            }
            for url, s in self.stats.items()
        }
