"""
Pool State Model for the Elastic Dollar DAO.

This module holds the storage of the DAO: per-account staged balances and
bonded shares, the global staged/bonded/redeemable/debt totals, the epoch
counter and the per-epoch snapshots of the bonded total. Both the bonding
ledger and the comptroller mutate this state, only through the named
increment/decrement helpers below, which never let a quantity go negative.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field, asdict, replace
from typing import Dict, List, Optional

from protocol_errors import InconsistentBalancesError, InsufficientBalanceError, PreconditionError


@dataclass
class Account:
    """A participant's position in the DAO."""
    staged: int = 0  # deposited, not bonded (token units)
    shares: int = 0  # claim on the bonded pool (abstract shares)


@dataclass
class Deposit:
    account: str
    value: int


@dataclass
class Withdraw:
    account: str
    value: int


@dataclass
class Bond:
    account: str
    start: int   # epoch the bond takes effect
    shares: int
    value: int


@dataclass
class Unbond:
    account: str
    start: int
    shares: int
    value: int


@dataclass
class SupplyIncrease:
    epoch: int
    redeemable: int
    less_debt: int
    bonded: int
    treasury: int


@dataclass
class DebtChange:
    epoch: int
    delta: int  # positive when debt grew
    total_debt: int


@dataclass
class EpochAdvanced:
    epoch: int
    total_bonded: int  # snapshot of the epoch just closed


@dataclass
class PoolState:
    """
    Global DAO storage. One instance per protocol.
    """
    total_staged: int = 0
    total_bonded: int = 0
    total_redeemable: int = 0
    total_debt: int = 0
    total_shares: int = 0
    epoch: int = 0
    bonded_snapshots: Dict[int, int] = field(default_factory=dict)
    accounts: Dict[str, Account] = field(default_factory=dict)
    events: List[object] = field(default_factory=list)

    # Views

    def account(self, address: str) -> Account:
        """Returns the account, creating an empty one on first touch."""
        if address not in self.accounts:
            self.accounts[address] = Account()
        return self.accounts[address]

    def balance_of_staged(self, address: str) -> int:
        acct = self.accounts.get(address)
        return acct.staged if acct else 0

    def balance_of_shares(self, address: str) -> int:
        acct = self.accounts.get(address)
        return acct.shares if acct else 0

    def balance_of_bonded(self, address: str) -> int:
        """
        Token value of an account's shares at the current exchange rate.

        Returns 0 while no shares exist.
        """
        if self.total_shares == 0:
            return 0
        return self.total_bonded * self.balance_of_shares(address) // self.total_shares

    def total_bonded_at(self, epoch: int) -> Optional[int]:
        """Bonded total recorded when the given epoch was closed, if any."""
        return self.bonded_snapshots.get(epoch)

    def summary(self) -> dict:
        """Plain-dict view of the totals, for reporting."""
        return {
            'epoch': self.epoch,
            'total_staged': self.total_staged,
            'total_bonded': self.total_bonded,
            'total_redeemable': self.total_redeemable,
            'total_debt': self.total_debt,
            'total_shares': self.total_shares,
            'accounts': {address: asdict(acct) for address, acct in self.accounts.items()},
        }

    # Setters

    def increment_staged(self, address: str, amount: int):
        _require_non_negative(amount)
        self.account(address).staged += amount
        self.total_staged += amount

    def decrement_staged(self, address: str, amount: int, reason: str):
        acct = self.account(address)
        _require_covers(acct.staged, amount, reason)
        _require_covers(self.total_staged, amount, reason)
        acct.staged -= amount
        self.total_staged -= amount

    def increment_shares(self, address: str, shares: int):
        _require_non_negative(shares)
        self.account(address).shares += shares
        self.total_shares += shares

    def decrement_shares(self, address: str, shares: int, reason: str):
        acct = self.account(address)
        _require_covers(acct.shares, shares, reason)
        acct.shares -= shares
        self.total_shares -= shares

    def increment_total_bonded(self, amount: int):
        _require_non_negative(amount)
        self.total_bonded += amount

    def decrement_total_bonded(self, amount: int, reason: str):
        _require_covers(self.total_bonded, amount, reason)
        self.total_bonded -= amount

    def increment_total_redeemable(self, amount: int):
        _require_non_negative(amount)
        self.total_redeemable += amount

    def decrement_total_redeemable(self, amount: int, reason: str):
        _require_covers(self.total_redeemable, amount, reason)
        self.total_redeemable -= amount

    def increment_total_debt(self, amount: int):
        _require_non_negative(amount)
        self.total_debt += amount

    def decrement_total_debt(self, amount: int, reason: str):
        _require_covers(self.total_debt, amount, reason)
        self.total_debt -= amount

    def snapshot_total_bonded(self):
        self.bonded_snapshots[self.epoch] = self.total_bonded

    def increment_epoch(self):
        self.epoch += 1

    def record(self, event):
        self.events.append(event)

    # Rollback support

    def checkpoint(self):
        """
        Captures the state for a later restore().

        The event log only grows, so it is saved as its length and rolled
        back by truncation instead of being copied.
        """
        saved = {name: value for name, value in self.__dict__.items() if name != 'events'}
        saved['bonded_snapshots'] = dict(self.bonded_snapshots)
        saved['accounts'] = {address: replace(acct) for address, acct in self.accounts.items()}
        return saved, len(self.events)

    def restore(self, checkpoint):
        saved, event_count = checkpoint
        self.__dict__.update(saved)
        del self.events[event_count:]


def _require_non_negative(amount: int):
    if amount < 0:
        raise PreconditionError(f"Negative amount: {amount}")


def _require_covers(balance: int, amount: int, reason: str):
    _require_non_negative(amount)
    if amount > balance:
        raise InsufficientBalanceError(reason)


@contextmanager
def atomic(state: PoolState, *collaborators):
    """
    Runs a block as a single transaction.

    The pool state and every collaborator exposing snapshot()/restore() are
    saved on entry; if the block raises, they are restored before the
    exception propagates.
    """
    saved_state = state.checkpoint()
    saved = [(c, c.snapshot()) for c in collaborators]
    try:
        yield
    except Exception:
        state.restore(saved_state)
        for c, snap in saved:
            c.restore(snap)
        raise


def require_solvent(state: PoolState, token, custodian: str):
    """
    Solvency invariant: the custodian must hold every token it owes to
    stakers (staged and bonded) and to coupon redeemers.
    """
    owed = state.total_bonded + state.total_staged + state.total_redeemable
    if token.balance_of(custodian) < owed:
        raise InconsistentBalancesError("Comptroller: Inconsistent balances")
