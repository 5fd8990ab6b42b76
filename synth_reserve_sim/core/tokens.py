#!/usr/bin/env python3
"""
Fungible Token Ledgers

Minimal balance ledgers for the collateral, share and synthetic assets.
Minting and burning are restricted to MINTER holders; the protocol pool and
reserve receive that capability when a deployment is wired together.
"""

import logging
from typing import Dict, Optional

from .access import AccessControl, Role, requires_role
from .errors import EconomicBoundError, PreconditionError
from .events import EventLog
from .transaction import StatefulComponent, atomic

logger = logging.getLogger(__name__)


class Token(StatefulComponent):
    """Balance ledger for a single fungible asset"""

    def __init__(self, symbol: str, address: Optional[str] = None,
                 access: Optional[AccessControl] = None, events: Optional[EventLog] = None):
        super().__init__()
        self.symbol = symbol
        self.address = address or symbol.lower()
        self.access = access or AccessControl()
        self.events = events or EventLog()

        self.balances: Dict[str, int] = {}
        self.total_supply = 0

    def __repr__(self) -> str:
        return f"Token({self.symbol})"

    def balance_of(self, account: Optional[str]) -> int:
        return self.balances.get(account, 0)

    def _credit(self, account: str, amount: int):
        self.balances[account] = self.balances.get(account, 0) + amount

    def _debit(self, account: str, amount: int):
        balance = self.balances.get(account, 0)
        if amount > balance:
            raise EconomicBoundError("insufficient balance")
        self.balances[account] = balance - amount

    @atomic
    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move `amount` from sender to `to`"""
        if to is None:
            raise PreconditionError("Zero address detected")
        if amount < 0:
            raise PreconditionError("negative amount")
        self._debit(sender, amount)
        self._credit(to, amount)
        self.events.emit("Transfer", self.address, sender=sender, to=to, amount=amount)
        return True

    @atomic
    @requires_role(Role.MINTER, "Caller is not a minter")
    def mint(self, caller: str, to: str, amount: int) -> int:
        """Create new units for `to`"""
        if amount < 0:
            raise PreconditionError("negative amount")
        self._credit(to, amount)
        self.total_supply += amount
        logger.debug("%s minted %d to %s", self.symbol, amount, to)
        return amount

    @atomic
    @requires_role(Role.MINTER, "Caller is not a minter")
    def burn(self, caller: str, account: str, amount: int) -> int:
        """Destroy units held by `account`"""
        if amount < 0:
            raise PreconditionError("negative amount")
        self._debit(account, amount)
        self.total_supply -= amount
        logger.debug("%s burned %d from %s", self.symbol, amount, account)
        return amount

    def faucet(self, to: str, amount: int) -> int:
        """Ungated seeding helper for simulations and tests"""
        self._credit(to, amount)
        self.total_supply += amount
        return amount

    def get_state(self) -> Dict:
        return {
            "symbol": self.symbol,
            "total_supply": self.total_supply,
            "holders": len([b for b in self.balances.values() if b > 0]),
        }
