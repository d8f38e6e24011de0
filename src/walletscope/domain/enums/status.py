from enum import Enum


class TxStatus(str, Enum):
    """On-chain execution status of a fetched transaction."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class AbandonReason(str, Enum):
    """Why the pipeline gave up on a signature."""

    PERMANENT = "PERMANENT"
    MAX_ATTEMPTS = "MAX_ATTEMPTS"
