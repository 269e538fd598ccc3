"""Quote lifecycle and multi-provider orchestration for swaps, bridges, staking and transfers."""

__version__ = "0.1.0"
