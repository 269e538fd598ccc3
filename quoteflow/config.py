from decimal import Decimal
from pathlib import Path
from typing import Dict, List

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

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Quote lifecycle
    quote_ttl_seconds: int = Field(default=600, ge=1, description="How long a stored quote stays consumable")
    quote_sweep_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Interval of the periodic sweep that evicts expired quotes",
    )
    quote_tombstone_size: int = Field(
        default=1024,
        ge=0,
        description="How many evicted quote ids are remembered so late lookups report expiry",
    )

    # Amounts
    default_slippage_bps: int = Field(default=50, ge=0, le=5000, description="Default slippage in basis points")
    gas_buffers: Dict[str, Decimal] = Field(
        default_factory=lambda: {
            "ethereum": Decimal("0.001"),
            "polygon": Decimal("0.1"),
            "arbitrum": Decimal("0.001"),
            "optimism": Decimal("0.001"),
            "base": Decimal("0.001"),
            "bnb": Decimal("0.0001"),
            "solana": Decimal("0.01"),
        },
        description="Native currency withheld for fees, per network (human units)",
    )

    # Chain access
    rpc_urls: Dict[str, str] = Field(
        default_factory=lambda: {
            "ethereum": "https://eth.llamarpc.com",
            "polygon": "https://polygon-rpc.com",
            "arbitrum": "https://arb1.arbitrum.io/rpc",
            "optimism": "https://mainnet.optimism.io",
            "base": "https://mainnet.base.org",
            "bnb": "https://bsc-dataseed.binance.org",
            "solana": "https://api.mainnet-beta.solana.com",
        },
        description="JSON-RPC endpoint per network",
    )
    request_timeout_seconds: int = Field(default=30, description="Request timeout")
    confirmation_timeout_seconds: int = Field(default=300, ge=1, description="Max seconds to wait for inclusion")
    confirmation_poll_seconds: float = Field(default=2.0, gt=0, description="Receipt polling interval")

    # Backend toggles
    enable_relay: bool = Field(default=True, description="Enable Relay swap and bridge providers")
    enable_jupiter: bool = Field(default=True, description="Enable Jupiter swap provider for Solana")
    enable_transfer: bool = Field(default=True, description="Enable native and ERC-20 transfers")
    enable_vault_staking: bool = Field(default=True, description="Enable ERC-4626 vault staking provider")

    relay_base_url: str = Field(
        default="",
        description="Override the default Relay API base URL",
    )
    jupiter_base_url: str = Field(
        default="",
        description="Override the default Jupiter quote API base URL",
    )
    staking_vaults: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="ERC-4626 vault addresses allowed for staking, per network",
    )

    # Portfolio reads
    watched_tokens: Dict[str, List[str]] = Field(
        default_factory=lambda: {
            "ethereum": ["0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"],
            "polygon": ["0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359"],
            "arbitrum": ["0xaf88d065e77c8cC2239327C5EDb3A432268e5831"],
            "optimism": ["0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85"],
            "base": ["0x833589fCD6eDb6E08f4c7C32D4f71b54bda02913"],
            "bnb": ["0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d"],
            "solana": [
                "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
                "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",
            ],
        },
        description="Tokens reported next to the native balance by the wallet balance tool, per network",
    )
    balance_dust_threshold: Decimal = Field(
        default=Decimal("0.00001"),
        ge=0,
        description="Token balances at or below this amount (human units) are left out of balance reports",
    )

    # Wallet
    signer_rpc_url: str = Field(
        default="",
        description="JSON-RPC signer (Clef, Web3Signer) used by the default wallet",
    )


# Global settings instance
settings = Settings()
