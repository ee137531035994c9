"""
Session Module - Manages in-memory contract sessions.

A session represents one player working a contract:
- Created when a contract is loaded
- Holds the selection, the hired crew and the player's ledger
- Executes the contract and books the outcome
- Destroyed when the player is done

Sessions are EPHEMERAL: nothing is persisted.
"""

from .manager import (
    ContractOutcome,
    ContractSession,
    HiringError,
    PlayerLedger,
    SelectionError,
    SessionManager,
    SessionState,
)

__all__ = [
    "ContractOutcome",
    "ContractSession",
    "HiringError",
    "PlayerLedger",
    "SelectionError",
    "SessionManager",
    "SessionState",
]
