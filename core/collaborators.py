"""
External collaborators consulted by the DAO.

The epoch clock and the coupon ledger live outside the bonding and supply
accounting; these are simple implementations for simulations and tests.
"""

import time


class EpochClock:
    """
    External epoch counter.

    With a ``period`` the epoch is derived from wall-clock time as
    ``(now - start) // period + offset``; without one it only moves when
    ``advance`` or ``set_epoch`` is called.
    """

    def __init__(self, epoch=0, start=None, period=None, time_fn=time.time):
        self.epoch = epoch
        self.start = start
        self.period = period
        self.time_fn = time_fn

    def epoch_time(self):
        """Returns the current epoch according to the clock."""
        if self.period:
            elapsed = int(self.time_fn()) - self.start
            return max(elapsed, 0) // self.period + self.epoch
        return self.epoch

    def advance(self, epochs=1):
        """Moves a manual clock forward."""
        if epochs < 0:
            raise ValueError("Cannot move the epoch clock backwards")
        self.epoch += epochs
        return self.epoch_time()

    def set_epoch(self, epoch):
        """Sets the manual epoch value."""
        self.epoch = epoch


class CouponLedger:
    """
    Tracks outstanding coupons, the DAO's redemption obligations.
    """

    def __init__(self):
        self.balances = {}  # address -> outstanding coupons
        self.total = 0

    def total_coupons(self):
        """Returns the sum of outstanding redemption obligations."""
        return self.total

    def balance_of_coupons(self, account):
        """Returns the coupons held by an account."""
        return self.balances.get(account, 0)

    def issue(self, account, amount):
        """Records newly issued coupons for an account."""
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")

        self.balances[account] = self.balances.get(account, 0) + amount
        self.total += amount

    def retire(self, account, amount):
        """Removes redeemed or expired coupons from an account."""
        held = self.balances.get(account, 0)
        if amount <= 0 or amount > held:
            raise ValueError(f"Invalid coupon amount: {amount}")

        self.balances[account] = held - amount
        self.total -= amount

    def snapshot(self):
        return dict(self.balances), self.total

    def restore(self, snapshot):
        balances, self.total = snapshot
        self.balances = dict(balances)
