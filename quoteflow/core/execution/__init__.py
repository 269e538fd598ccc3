"""
Transaction execution: wallet contract, submission and confirmation.
"""

from .executor import TransactionExecutor, TransactionRevertError
from .wallet import FinalReceipt, Receipt, Wallet

__all__ = [
    "TransactionExecutor",
    "TransactionRevertError",
    "FinalReceipt",
    "Receipt",
    "Wallet",
]
