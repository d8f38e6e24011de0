"""Classified result of a single Solana RPC attempt.

Every call through SolanaRPCClient.call() ends in exactly one of these. Retry
policy lives with the caller: the client never retries a fetch on its own.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Success:
    result: Any


@dataclass(frozen=True)
class RateLimited:
    """Upstream refused the request; retry no sooner than `delay` seconds from now."""

    delay: float
    cause: str = "rate limited"


@dataclass(frozen=True)
class Transient:
    """Retryable failure without a server-supplied delay (timeouts, resets, garbled bodies)."""

    cause: str


@dataclass(frozen=True)
class Permanent:
    """Non-retryable failure specific to the request (not found, invalid params)."""

    cause: str


FetchOutcome = Success | RateLimited | Transient | Permanent
