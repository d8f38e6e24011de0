"""Signature Lister: the full signature history of an address, fetched up front."""

from __future__ import annotations

import asyncio
import logging

from walletscope.domain.enums import RpcMethod
from walletscope.domain.models.transaction import SignatureInfo
from walletscope.exceptions import ListingCancelledError, SignatureListingError
from walletscope.infra.blockchain.solana.outcomes import Success
from walletscope.infra.blockchain.solana.rpc_client import SolanaRPCClient

logger = logging.getLogger(__name__)

PAGE_LIMIT = 1000  # getSignaturesForAddress maximum


class SignatureLister:
    """Pages through getSignaturesForAddress with the `before` cursor.

    Any failed page aborts the listing with SignatureListingError: a partial
    history would silently drop transactions.
    """

    def __init__(
        self,
        rpc: SolanaRPCClient,
        page_limit: int = PAGE_LIMIT,
        max_signatures: int | None = None,
    ) -> None:
        self._rpc = rpc
        self._page_limit = page_limit
        self._max_signatures = max_signatures

    async def list(self, address: str, cancel: asyncio.Event | None = None) -> list[SignatureInfo]:
        """All signatures for `address`, newest first as returned upstream.

        `cancel` is checked before each page; once set, ListingCancelledError is
        raised instead of returning a partial history.
        """
        infos: list[SignatureInfo] = []
        seen: set[str] = set()
        before: str | None = None

        while True:
            if cancel is not None and cancel.is_set():
                logger.info("Signature listing for %s cancelled after %d signatures", address, len(infos))
                raise ListingCancelledError(address)

            opts: dict = {"limit": self._page_limit}
            if before is not None:
                opts["before"] = before

            outcome = await self._rpc.call(RpcMethod.GET_SIGNATURES_FOR_ADDRESS.value, [address, opts])
            if not isinstance(outcome, Success):
                logger.error("Signature listing failed for %s: %s", address, outcome)
                raise SignatureListingError(address, _describe(outcome))

            batch = outcome.result or []
            if not isinstance(batch, list):
                raise SignatureListingError(address, f"unexpected result type {type(batch).__name__}")

            for entry in batch:
                info = _to_info(address, entry)
                if info.signature in seen:
                    continue
                seen.add(info.signature)
                infos.append(info)
                if self._max_signatures is not None and len(infos) >= self._max_signatures:
                    logger.info("Signature listing for %s capped at %d", address, self._max_signatures)
                    return infos

            if len(batch) < self._page_limit:
                break
            before = batch[-1]["signature"]

        logger.info("Listed %d signatures for %s", len(infos), address)
        return infos

    async def list_signatures(self, address: str, cancel: asyncio.Event | None = None) -> list[str]:
        return [info.signature for info in await self.list(address, cancel=cancel)]


def _to_info(address: str, entry) -> SignatureInfo:
    if not isinstance(entry, dict) or "signature" not in entry:
        raise SignatureListingError(address, f"malformed signature entry: {entry!r}")
    return SignatureInfo(
        signature=entry["signature"],
        slot=entry.get("slot") or 0,
        block_time=entry.get("blockTime"),
        err=entry.get("err"),
        memo=entry.get("memo"),
    )


def _describe(outcome) -> str:
    cause = getattr(outcome, "cause", str(outcome))
    return f"{type(outcome).__name__}: {cause}"
