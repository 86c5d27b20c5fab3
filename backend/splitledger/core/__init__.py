"""Core ledger engine: balances and settlement planning."""

from splitledger.errors import (
    LedgerError,
    InvalidAmount,
    EmptySplit,
    UnknownMember,
    NotFound,
    UnbalancedInput,
)
from .ledger_service import Ledger
from .settlement_service import SettlementPlanner, SettlementInstruction

__all__ = [
    "LedgerError",
    "InvalidAmount",
    "EmptySplit",
    "UnknownMember",
    "NotFound",
    "UnbalancedInput",
    "Ledger",
    "SettlementPlanner",
    "SettlementInstruction",
]
