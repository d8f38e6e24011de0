from walletscope.domain.enums.rpc import RpcMethod
from walletscope.domain.enums.status import AbandonReason, TxStatus

__all__ = [
    "AbandonReason",
    "RpcMethod",
    "TxStatus",
]
