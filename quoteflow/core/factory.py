"""
Toolkit assembly.

Wires the shared collaborators (chain reader, token resolver, amount adjuster, balance
validator, allowance manager, quote store, executor) into the four quote tools and the
two read-only portfolio tools, and registers the providers enabled in settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..config import Settings, settings as default_settings
from ..providers.chain import ChainReader
from ..providers.evm_rpc import EvmRpcClient
from ..providers.jupiter import JupiterClient
from ..providers.relay import RelayClient
from ..providers.signer import JsonRpcSignerWallet
from ..providers.solana import SolanaRpcClient
from .adapters import (
    JupiterSwapProvider,
    RelayBridgeProvider,
    RelaySwapProvider,
    TransferProvider,
    VaultStakingProvider,
)
from .allowance import AllowanceManager
from .amounts import AmountAdjuster
from .balance import BalanceValidator
from .execution.executor import TransactionExecutor
from .execution.wallet import Wallet
from .quote_store import Clock, QuoteStore
from .tokens import TokenResolver
from .chain_types import lookup_network
from .tools import (
    BridgeTool,
    QuoteTool,
    ReadTool,
    StakingPositionsTool,
    StakingTool,
    SwapTool,
    TransferTool,
    WalletBalanceTool,
)


logger = logging.getLogger(__name__)


@dataclass
class Toolkit:
    swap: SwapTool
    bridge: BridgeTool
    staking: StakingTool
    transfer: TransferTool
    wallet_balance: WalletBalanceTool
    staking_positions: StakingPositionsTool
    quote_store: QuoteStore
    chain_reader: Any
    wallet: Wallet
    _closeables: list = field(default_factory=list)

    @property
    def tools(self) -> Dict[str, QuoteTool]:
        return {
            "swap": self.swap,
            "bridge": self.bridge,
            "staking": self.staking,
            "transfer": self.transfer,
        }

    @property
    def read_tools(self) -> Dict[str, ReadTool]:
        return {
            "wallet_balance": self.wallet_balance,
            "staking_positions": self.staking_positions,
        }

    def start(self) -> None:
        self.quote_store.start()

    async def close(self) -> None:
        await self.quote_store.close()
        for closeable in self._closeables:
            await closeable.close()


def build_toolkit(
    config: Optional[Settings] = None,
    wallet: Optional[Wallet] = None,
    *,
    chain_reader: Any = None,
    clock: Optional[Clock] = None,
    relay_client: Optional[RelayClient] = None,
    jupiter_client: Optional[JupiterClient] = None,
) -> Toolkit:
    """Build all tools from settings; collaborators can be injected for tests."""
    config = config or default_settings
    closeables: list = []

    if chain_reader is None:
        evm = EvmRpcClient(
            config.rpc_urls,
            timeout_s=config.request_timeout_seconds,
            confirmation_timeout_s=config.confirmation_timeout_seconds,
            poll_interval_s=config.confirmation_poll_seconds,
        )
        solana = SolanaRpcClient(
            config.rpc_urls.get("solana"),
            timeout_s=config.request_timeout_seconds,
        )
        chain_reader = ChainReader(evm, solana)
        closeables.append(chain_reader)

    if wallet is None:
        signer = JsonRpcSignerWallet(config.signer_rpc_url, getattr(chain_reader, "evm", None))
        closeables.append(signer)
        wallet = signer

    store_kwargs: Dict[str, Any] = {
        "sweep_interval_seconds": config.quote_sweep_interval_seconds,
        "tombstone_size": config.quote_tombstone_size,
    }
    if clock is not None:
        store_kwargs["clock"] = clock
    quote_store = QuoteStore(config.quote_ttl_seconds, **store_kwargs)

    token_resolver = TokenResolver(chain_reader)
    amount_adjuster = AmountAdjuster(chain_reader, config.gas_buffers)
    balance_validator = BalanceValidator(chain_reader, config.gas_buffers)
    allowance_manager = AllowanceManager(chain_reader)
    executor = TransactionExecutor(wallet)

    collaborators = {
        "token_resolver": token_resolver,
        "amount_adjuster": amount_adjuster,
        "balance_validator": balance_validator,
    }
    tool_args = (wallet, quote_store, allowance_manager, executor)

    swap = SwapTool(*tool_args)
    bridge = BridgeTool(*tool_args)
    staking = StakingTool(*tool_args)
    transfer = TransferTool(*tool_args)

    if config.enable_relay:
        relay = relay_client or RelayClient(base_url=config.relay_base_url or None)
        swap.register_provider(RelaySwapProvider(relay, allowance_manager=allowance_manager, **collaborators))
        bridge.register_provider(RelayBridgeProvider(relay, allowance_manager=allowance_manager, **collaborators))

    if config.enable_jupiter:
        jupiter = jupiter_client or JupiterClient(base_url=config.jupiter_base_url or None)
        swap.register_provider(JupiterSwapProvider(jupiter, **collaborators))

    if config.enable_transfer:
        transfer.register_provider(TransferProvider(allowance_manager=allowance_manager, **collaborators))

    wallet_balance = WalletBalanceTool(
        wallet,
        chain_reader,
        token_resolver,
        [n for n in map(lookup_network, config.rpc_urls) if n is not None],
        config.watched_tokens,
        config.balance_dust_threshold,
    )
    staking_positions = StakingPositionsTool(wallet)

    if config.enable_vault_staking and config.staking_vaults:
        vaults = VaultStakingProvider(
            chain_reader,
            config.staking_vaults,
            allowance_manager=allowance_manager,
            **collaborators,
        )
        staking.register_provider(vaults)
        staking_positions.register_provider(vaults)

    for name, tool in (("swap", swap), ("bridge", bridge), ("staking", staking), ("transfer", transfer)):
        logger.info(f"{name} tool ready: providers={tool.registry.list_names()}")
    logger.info(
        f"Read tools ready: balances on {[n.value for n in wallet_balance.supported_networks()]}, "
        f"position providers={staking_positions.registry.list_names()}"
    )

    return Toolkit(
        swap=swap,
        bridge=bridge,
        staking=staking,
        transfer=transfer,
        wallet_balance=wallet_balance,
        staking_positions=staking_positions,
        quote_store=quote_store,
        chain_reader=chain_reader,
        wallet=wallet,
        _closeables=closeables,
    )
