from walletscope.domain.enums import AbandonReason, RpcMethod, TxStatus


def test_rpc_method_values_match_json_rpc_names():
    assert RpcMethod.GET_SIGNATURES_FOR_ADDRESS == "getSignaturesForAddress"
    assert RpcMethod.GET_TRANSACTION == "getTransaction"
    assert RpcMethod("getBalance") is RpcMethod.GET_BALANCE


def test_status_enums_are_strings():
    assert TxStatus.FAILED == "FAILED"
    assert AbandonReason.MAX_ATTEMPTS == "MAX_ATTEMPTS"
    assert {r.value for r in AbandonReason} == {"PERMANENT", "MAX_ATTEMPTS"}
