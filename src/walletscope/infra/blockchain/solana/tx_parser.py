"""Build TransactionRecord objects from getTransaction results."""

from walletscope.domain.enums import TxStatus
from walletscope.domain.models.transaction import (
    BalanceChange,
    InstructionRecord,
    TokenBalanceChange,
    TransactionRecord,
)


def _pubkey(key) -> str:
    # jsonParsed encoding returns {"pubkey": ..., "signer": ...}, json encoding plain strings
    if isinstance(key, dict):
        return key.get("pubkey", "")
    return str(key)


def resolve_account_keys(message: dict, meta: dict) -> list[str]:
    """Static account keys followed by addresses loaded from lookup tables.

    Balance arrays in `meta` are indexed against this combined list for
    versioned transactions.
    """
    keys = [_pubkey(k) for k in message.get("accountKeys", [])]
    loaded = _as_dict(meta.get("loadedAddresses"))
    keys.extend(loaded.get("writable", []) or [])
    keys.extend(loaded.get("readonly", []) or [])
    return keys


def parse_transaction(signature: str, result: dict) -> TransactionRecord:
    """Parse a getTransaction result. Raises KeyError/TypeError/ValueError on a structurally broken result."""
    if not isinstance(result, dict):
        raise TypeError(f"expected transaction object, got {type(result).__name__}")

    slot = int(result["slot"])
    meta = _as_dict(result.get("meta"))
    transaction = result["transaction"]
    if not isinstance(transaction, dict):
        raise TypeError(f"expected transaction body, got {type(transaction).__name__}")
    message = _as_dict(transaction.get("message"))
    account_keys = resolve_account_keys(message, meta)

    err = meta.get("err")
    return TransactionRecord(
        signature=signature,
        slot=slot,
        block_time=result.get("blockTime"),
        fee=int(meta.get("fee", 0) or 0),
        status=TxStatus.FAILED if err is not None else TxStatus.SUCCESS,
        error=err,
        signatures=list(transaction.get("signatures", []) or []),
        account_keys=account_keys,
        balance_changes=_balance_changes(meta, account_keys),
        token_balance_changes=_token_balance_changes(meta, account_keys),
        instructions=_instructions(message, account_keys),
        log_messages=list(meta.get("logMessages", []) or []),
        compute_units_consumed=meta.get("computeUnitsConsumed"),
        version=result.get("version"),
    )


def _balance_changes(meta: dict, account_keys: list[str]) -> list[BalanceChange]:
    pre_balances = meta.get("preBalances", []) or []
    post_balances = meta.get("postBalances", []) or []

    changes: list[BalanceChange] = []
    for i in range(min(len(pre_balances), len(post_balances), len(account_keys))):
        if pre_balances[i] == post_balances[i]:
            continue
        changes.append(BalanceChange(account=account_keys[i], pre=pre_balances[i], post=post_balances[i]))
    return changes


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _token_amount(balance: dict | None) -> int:
    if not balance:
        return 0
    return int(_as_dict(balance.get("uiTokenAmount")).get("amount", "0") or 0)


def _token_balance_changes(meta: dict, account_keys: list[str]) -> list[TokenBalanceChange]:
    pre_map: dict[tuple[int, str], dict] = {}
    for tb in meta.get("preTokenBalances", []) or []:
        if not isinstance(tb, dict):
            continue
        pre_map[(tb.get("accountIndex", -1), tb.get("mint", ""))] = tb

    post_map: dict[tuple[int, str], dict] = {}
    for tb in meta.get("postTokenBalances", []) or []:
        if not isinstance(tb, dict):
            continue
        post_map[(tb.get("accountIndex", -1), tb.get("mint", ""))] = tb

    changes: list[TokenBalanceChange] = []
    for account_index, mint in sorted(set(pre_map) | set(post_map)):
        if account_index < 0 or account_index >= len(account_keys):
            continue
        pre_info = pre_map.get((account_index, mint))
        post_info = post_map.get((account_index, mint))
        pre_amount = _token_amount(pre_info)
        post_amount = _token_amount(post_info)
        if pre_amount == post_amount:
            continue

        info = post_info or pre_info or {}
        changes.append(TokenBalanceChange(
            account_index=account_index,
            account=account_keys[account_index],
            mint=mint,
            owner=info.get("owner"),
            decimals=int(_as_dict(info.get("uiTokenAmount")).get("decimals", 0) or 0),
            pre_amount=pre_amount,
            post_amount=post_amount,
        ))
    return changes


def _instructions(message: dict, account_keys: list[str]) -> list[InstructionRecord]:
    instructions: list[InstructionRecord] = []
    for ix in message.get("instructions", []) or []:
        if "programId" in ix:
            program_id = ix["programId"]
        else:
            program_id = account_keys[ix["programIdIndex"]]
        accounts = ix.get("accounts", []) or []
        instructions.append(InstructionRecord(
            program_id=program_id,
            # jsonParsed lists account pubkeys, json encoding lists indexes
            accounts=[a for a in accounts if isinstance(a, int)],
            data=ix.get("data", "") if isinstance(ix.get("data", ""), str) else "",
            stack_height=ix.get("stackHeight"),
        ))
    return instructions
