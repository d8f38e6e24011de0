"""Exception hierarchy for walletscope."""


class WalletScopeError(Exception):
    """Base class for all walletscope errors."""


class ExternalServiceError(WalletScopeError):
    """An upstream service (RPC node, price API) failed or returned an error."""


class SignatureListingError(ExternalServiceError):
    """The signature listing for an address could not be fetched.

    Fatal for the transaction pipeline: no partial signature list is usable,
    so nothing is fetched when this is raised.
    """

    def __init__(self, address: str, cause: str) -> None:
        super().__init__(f"Failed to list signatures for {address}: {cause}")
        self.address = address
        self.cause = cause


class PipelineStateError(WalletScopeError):
    """A pipeline component was used out of order (e.g. read before completion)."""


class RetryableServiceError(ExternalServiceError):
    """An upstream failure worth retrying, optionally with a server-supplied delay."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ListingCancelledError(WalletScopeError):
    """The run was cancelled while signatures were still being listed."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Signature listing for {address} was cancelled")
        self.address = address
