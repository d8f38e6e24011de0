"""TransactionPipeline: signature listing + scheduled fetching for one address."""

import asyncio
import logging
import time

from walletscope.exceptions import ListingCancelledError
from walletscope.infra.blockchain.solana.signature_lister import SignatureLister
from walletscope.pipeline.collector import ResultCollector, ResultSet
from walletscope.pipeline.scheduler import FetchScheduler

logger = logging.getLogger(__name__)


class TransactionPipeline:
    """Fetch the complete transaction history of an address.

    Each call owns its own queue and collector; only the RPC client underneath
    is shared between concurrent calls.
    """

    def __init__(self, lister: SignatureLister, scheduler: FetchScheduler, timeout: float | None = None) -> None:
        self._lister = lister
        self._scheduler = scheduler
        self._timeout = timeout

    async def fetch_transactions(
        self,
        address: str,
        cancel: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> ResultSet:
        """List every signature of `address` and fetch each transaction.

        Raises SignatureListingError if the listing fails; nothing is fetched
        in that case. Otherwise every listed signature ends up in exactly one of
        `transactions`, `abandoned` or (after cancellation) `pending`.

        `timeout` covers listing and fetching together. A run cancelled or timed
        out during listing returns an empty, cancelled ResultSet.
        """
        if timeout is None:
            timeout = self._timeout
        started = time.monotonic()

        try:
            signatures = await asyncio.wait_for(self._lister.list_signatures(address, cancel=cancel), timeout)
        except ListingCancelledError:
            return _cancelled(address)
        except TimeoutError:
            logger.warning("Signature listing for %s hit the %.1fs deadline", address, timeout)
            return _cancelled(address)

        remaining = None
        if timeout is not None:
            remaining = max(0.0, timeout - (time.monotonic() - started))

        logger.info("Fetching %d transactions for %s", len(signatures), address)
        return await self._scheduler.run(address, signatures, cancel=cancel, timeout=remaining)


def _cancelled(address: str) -> ResultSet:
    collector = ResultCollector(address)
    collector.seal(cancelled=True)
    return collector.drain()
