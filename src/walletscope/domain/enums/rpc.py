from enum import Enum


class RpcMethod(str, Enum):
    """Solana JSON-RPC methods this service calls."""

    GET_SIGNATURES_FOR_ADDRESS = "getSignaturesForAddress"
    GET_TRANSACTION = "getTransaction"
    GET_BALANCE = "getBalance"
    GET_TOKEN_ACCOUNTS_BY_OWNER = "getTokenAccountsByOwner"
    GET_ASSET = "getAsset"
