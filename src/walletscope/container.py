from dependency_injector import containers, providers

from walletscope.config import Settings
from walletscope.infra.blockchain.solana.rpc_client import SolanaRPCClient
from walletscope.infra.blockchain.solana.signature_lister import SignatureLister
from walletscope.infra.http.rate_limited_client import RateLimitedClient
from walletscope.infra.price.coingecko import CoinGeckoProvider
from walletscope.infra.price.geckoterminal import GeckoTerminalProvider
from walletscope.pipeline.scheduler import FetchScheduler
from walletscope.pipeline.service import TransactionPipeline
from walletscope.wallet.assembler import WalletAssembler


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["walletscope.api.deps"])

    settings = providers.Singleton(Settings)

    rpc_http = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.rpc_rate_per_second,
        timeout=settings.provided.rpc_call_timeout,
    )

    price_http = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.price_rate_per_second,
    )

    rpc_client = providers.Singleton(
        SolanaRPCClient,
        rpc_url=settings.provided.solana_rpc_url,
        http_client=rpc_http,
        default_rate_limit_delay=settings.provided.default_rate_limit_delay,
    )

    # Per-request objects: each pipeline run gets its own scheduler state
    signature_lister = providers.Factory(
        SignatureLister,
        rpc=rpc_client,
        max_signatures=settings.provided.max_signatures,
    )

    fetch_scheduler = providers.Factory(
        FetchScheduler,
        fetch=rpc_client.provided.fetch_transaction,
        workers=settings.provided.fetch_workers,
        max_attempts=settings.provided.fetch_max_attempts,
        transient_delay=settings.provided.fetch_transient_delay,
        call_timeout=settings.provided.rpc_call_timeout,
        max_rate_limit_delay=settings.provided.max_rate_limit_delay,
    )

    transaction_pipeline = providers.Factory(
        TransactionPipeline,
        lister=signature_lister,
        scheduler=fetch_scheduler,
        timeout=settings.provided.pipeline_timeout,
    )

    coingecko = providers.Singleton(
        CoinGeckoProvider,
        http_client=price_http,
        api_key=settings.provided.coingecko_api_key,
        base_url=settings.provided.coingecko_base_url,
    )

    geckoterminal = providers.Singleton(
        GeckoTerminalProvider,
        http_client=price_http,
        base_url=settings.provided.geckoterminal_base_url,
    )

    wallet_assembler = providers.Factory(
        WalletAssembler,
        rpc=rpc_client,
        pipeline=transaction_pipeline,
        coingecko=coingecko,
        geckoterminal=geckoterminal,
        ohlcv_timeframe=settings.provided.ohlcv_timeframe,
    )
