"""Solana JSON-RPC client.

`call()` performs exactly one request and classifies it into a FetchOutcome;
it never raises and never retries. The convenience wrappers used for wallet
balances (`get_balance`, `get_token_accounts`, `get_asset`) raise
ExternalServiceError instead and retry transient failures with tenacity.
"""

import logging
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from walletscope.domain.enums import RpcMethod
from walletscope.exceptions import ExternalServiceError, RetryableServiceError
from walletscope.infra.blockchain.solana.outcomes import (
    FetchOutcome,
    Permanent,
    RateLimited,
    Success,
    Transient,
)
from walletscope.infra.blockchain.solana.tx_parser import parse_transaction
from walletscope.infra.http.rate_limited_client import RateLimitedClient
from walletscope.infra.http.retry_after import parse_retry_after

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

# JSON-RPC error codes that mean "node not ready for this right now"
TRANSIENT_RPC_CODES = {
    -32004,  # block not available for slot
    -32005,  # node is unhealthy / behind
    -32014,  # block status not yet available
    -32016,  # minimum context slot not reached
    -32603,  # internal error
}
# Some RPC providers report throttling inside the envelope instead of via HTTP 429
RATE_LIMIT_RPC_CODES = {-32429}

TRANSACTION_OPTIONS = {
    "encoding": "json",
    "maxSupportedTransactionVersion": 0,
}

_backoff = wait_exponential(multiplier=0.5, min=0.5, max=8)


def _wait_for_hint_or_backoff(retry_state) -> float:
    exc = retry_state.outcome.exception()
    if isinstance(exc, RetryableServiceError) and exc.retry_after is not None:
        return min(exc.retry_after, 30.0)
    return _backoff(retry_state)


class SolanaRPCClient:
    """Solana JSON-RPC client with typed per-attempt outcomes."""

    def __init__(
        self,
        rpc_url: str,
        http_client: RateLimitedClient,
        default_rate_limit_delay: float = 5.0,
    ) -> None:
        self._rpc_url = rpc_url
        self._http = http_client
        self._default_rate_limit_delay = default_rate_limit_delay

    async def call(self, method: str, params: list) -> FetchOutcome:
        """Issue one JSON-RPC request and classify the response."""
        try:
            rpc_method = RpcMethod(method)
        except ValueError:
            return Permanent(f"unsupported RPC method: {method}")
        if not isinstance(params, list):
            return Permanent(f"params for {method} must be a list")

        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": rpc_method.value,
            "params": params,
        }
        try:
            resp = await self._http.post(self._rpc_url, json=payload)
        except httpx.TimeoutException:
            return Transient(f"timeout calling {method}")
        except httpx.TransportError as exc:
            return Transient(f"transport error calling {method}: {exc!r}")

        return self._classify(method, resp)

    def _classify(self, method: str, resp: httpx.Response) -> FetchOutcome:
        status = resp.status_code
        if not 200 <= status < 300:
            delay = parse_retry_after(resp.headers.get("Retry-After"))
            if delay is not None:
                return RateLimited(delay, f"HTTP {status} with Retry-After")
            if status == 429:
                return RateLimited(self._default_rate_limit_delay, "HTTP 429")
            if status == 408 or status >= 500:
                return Transient(f"HTTP {status} from {method}")
            return Permanent(f"HTTP {status} from {method}")

        try:
            data = resp.json()
        except ValueError:
            return Transient(f"malformed response body from {method}")

        if not isinstance(data, dict) or ("result" not in data and "error" not in data):
            return Transient(f"malformed JSON-RPC envelope from {method}")

        error = data.get("error")
        if error is not None:
            return self._classify_rpc_error(method, error, resp)

        return Success(data["result"])

    def _classify_rpc_error(self, method: str, error: Any, resp: httpx.Response) -> FetchOutcome:
        if not isinstance(error, dict):
            return Transient(f"malformed error from {method}: {error!r}")
        code = error.get("code")
        message = error.get("message", str(error))
        cause = f"{message} (code {code})"
        if code in RATE_LIMIT_RPC_CODES:
            delay = parse_retry_after(resp.headers.get("Retry-After"))
            return RateLimited(delay if delay is not None else self._default_rate_limit_delay, cause)
        if code in TRANSIENT_RPC_CODES:
            return Transient(cause)
        return Permanent(cause)

    async def fetch_transaction(self, signature: str) -> FetchOutcome:
        """Fetch and parse one transaction. Success carries a TransactionRecord."""
        outcome = await self.call(
            RpcMethod.GET_TRANSACTION.value, [signature, dict(TRANSACTION_OPTIONS)]
        )
        if not isinstance(outcome, Success):
            return outcome
        if outcome.result is None:
            return Permanent("transaction not found")
        try:
            record = parse_transaction(signature, outcome.result)
        except (AttributeError, KeyError, TypeError, ValueError, IndexError) as exc:
            logger.warning("Unparseable transaction %s: %r", signature, exc)
            return Transient(f"unparseable transaction: {exc!r}")
        return Success(record)

    @retry(
        retry=retry_if_exception_type(RetryableServiceError),
        stop=stop_after_attempt(3),
        wait=_wait_for_hint_or_backoff,
        reraise=True,
    )
    async def _request(self, method: RpcMethod, params: list) -> Any:
        """Call `method` and return its result field, raising on failure."""
        outcome = await self.call(method.value, params)
        if isinstance(outcome, Success):
            return outcome.result
        if isinstance(outcome, RateLimited):
            raise RetryableServiceError(
                f"Solana RPC rate limited ({method.value}): {outcome.cause}", retry_after=outcome.delay
            )
        if isinstance(outcome, Transient):
            raise RetryableServiceError(f"Solana RPC error ({method.value}): {outcome.cause}")
        raise ExternalServiceError(f"Solana RPC error ({method.value}): {outcome.cause}")

    async def get_balance(self, address: str) -> int:
        """Native SOL balance in lamports."""
        result = await self._request(RpcMethod.GET_BALANCE, [address])
        if isinstance(result, dict):
            return int(result.get("value", 0))
        return int(result or 0)

    async def get_token_accounts(self, address: str) -> list[dict]:
        """SPL token accounts owned by `address` (jsonParsed)."""
        result = await self._request(
            RpcMethod.GET_TOKEN_ACCOUNTS_BY_OWNER,
            [address, {"programId": TOKEN_PROGRAM_ID}, {"encoding": "jsonParsed"}],
        )
        if not result:
            return []
        return result.get("value", []) or []

    async def get_asset(self, mint: str) -> dict | None:
        """DAS asset metadata for a mint. Requires a DAS-capable RPC provider."""
        result = await self._request(RpcMethod.GET_ASSET, [mint])
        return result  # type: ignore[return-value]
