"""
Lockup status for DAO accounts.

An account's status is derived from the current epoch and the epochs until
which it is fluid (after a bond/unbond) or locked (by governance):

- FROZEN: no recent activity, may bond, unbond and withdraw
- FLUID: recently bonded/unbonded, may not withdraw staged tokens
- LOCKED: mid-lockup, may withdraw but not bond or unbond
"""

from enum import Enum

from protocol_errors import PreconditionError


class AccountStatus(Enum):
    FROZEN = 0
    FLUID = 1
    LOCKED = 2


FROZEN_OR_FLUID = (AccountStatus.FROZEN, AccountStatus.FLUID)
FROZEN_OR_LOCKED = (AccountStatus.FROZEN, AccountStatus.LOCKED)


def require_status(status, allowed, message):
    """Raises PreconditionError unless status is one of allowed."""
    if status not in allowed:
        raise PreconditionError(f"{message}: account is {status.name.lower()}")


class Lockup:
    """
    Per-account fluid and locked windows.
    """

    def __init__(self, fluid_epochs):
        self.fluid_epochs = fluid_epochs
        self.fluid_until = {}   # address -> first epoch the account is frozen again
        self.locked_until = {}  # address -> first epoch the lock no longer applies

    def status_of(self, account, epoch):
        """Computes the account's status at the given epoch."""
        if self.locked_until.get(account, 0) > epoch:
            return AccountStatus.LOCKED

        if epoch >= self.fluid_until.get(account, 0):
            return AccountStatus.FROZEN

        return AccountStatus.FLUID

    def unfreeze(self, account, epoch):
        """Restarts the fluid window; called on every bond and unbond."""
        self.fluid_until[account] = epoch + self.fluid_epochs

    def place_lock(self, account, until_epoch):
        """Locks an account until the given epoch; a lock is never shortened."""
        if until_epoch > self.locked_until.get(account, 0):
            self.locked_until[account] = until_epoch

    def snapshot(self):
        return dict(self.fluid_until), dict(self.locked_until)

    def restore(self, snapshot):
        fluid_until, locked_until = snapshot
        self.fluid_until = dict(fluid_until)
        self.locked_until = dict(locked_until)
