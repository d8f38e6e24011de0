import pytest

from walletscope.domain.models.transaction import TransactionRecord

ADDRESS = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"


@pytest.fixture()
def wallet_address() -> str:
    return ADDRESS


@pytest.fixture()
def make_record():
    def _make(signature: str, slot: int = 100, block_time: int | None = 1700000000) -> TransactionRecord:
        return TransactionRecord(signature=signature, slot=slot, block_time=block_time)

    return _make
