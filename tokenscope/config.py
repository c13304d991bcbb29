from pathlib import Path
from typing import Any, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Clamp values that would make the fan-out degenerate."""

        super().model_post_init(__context)

        if self.concurrency_window < 1:
            object.__setattr__(self, "concurrency_window", 1)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    upstream_log_level: Optional[str] = Field(
        default=None,
        description="Level for chain adapter and aggregator loggers; follows log_level when unset",
    )

    # NEAR (contract-call chain)
    near_rpc_url: str = Field(
        default="https://rpc.mainnet.near.org",
        description="NEAR JSON-RPC endpoint",
    )
    near_indexer_url: str = Field(
        default="https://api.kitwallet.app/account",
        description="Token discovery index; queried as {url}/{account}/likelyTokens",
    )
    near_verified_tokens: str = Field(
        default="",
        description="Comma-separated contract ids replacing the built-in NEAR allow-list",
    )

    # Solana (token-account chain)
    solana_rpc_url: str = Field(
        default="https://api.mainnet-beta.solana.com",
        description="Solana JSON-RPC endpoint",
    )
    solana_verified_tokens: str = Field(
        default="",
        description="Comma-separated mint addresses replacing the built-in Solana allow-list",
    )

    # UTXO explorers
    bitcoin_api_base: str = Field(
        default="https://blockstream.info/api/",
        description="Blockstream-compatible explorer base URL",
    )
    dogecoin_api_base: str = Field(
        default="https://api.blockcypher.com/v1/doge/main/",
        description="BlockCypher Dogecoin base URL",
    )
    litecoin_api_base: str = Field(
        default="https://api.blockcypher.com/v1/ltc/main/",
        description="BlockCypher Litecoin base URL",
    )

    # Token aggregation
    metadata_cache_ttl_seconds: float = Field(
        default=30.0,
        gt=0,
        description="How long fetched token metadata stays fresh",
    )
    metadata_single_flight: bool = Field(
        default=False,
        description="Share one in-flight metadata fetch between concurrent callers",
    )
    concurrency_window: int = Field(
        default=5,
        description="Token fetch pairs issued per window",
    )
    indexer_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for the token discovery index lookup",
    )
    require_descriptive_metadata: bool = Field(
        default=True,
        description="Drop unverified tokens that carry neither icon nor reference",
    )

    # Batch endpoint
    max_batch_addresses: int = Field(
        default=20,
        ge=1,
        description="Maximum addresses accepted by one batch balance request",
    )


# Global settings instance
settings = Settings()
