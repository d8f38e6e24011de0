from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    coingecko_base_url: str = "https://api.coingecko.com"
    coingecko_api_key: str = ""
    geckoterminal_base_url: str = "https://api.geckoterminal.com"

    # Outbound pacing (requests per second) and per-request timeout (seconds)
    rpc_rate_per_second: float = 5.0
    price_rate_per_second: float = 2.0
    rpc_call_timeout: float = 30.0

    # Transaction fetch pipeline
    fetch_workers: int = 4
    fetch_max_attempts: int = 10
    fetch_transient_delay: float = 1.0
    default_rate_limit_delay: float = 5.0
    max_rate_limit_delay: float = 60.0
    max_signatures: int | None = None
    pipeline_timeout: float = 120.0

    ohlcv_timeframe: str = "hour"
    log_level: str = "INFO"
    debug: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "WALLETSCOPE_"


settings = Settings()
