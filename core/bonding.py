"""
Bonding Ledger Model for the Elastic Dollar DAO.

Holders deposit dollars into the DAO (staged balance) and bond them to
receive shares of the bonded pool. Expansion rewards are minted straight
into the bonded total without creating shares, so every share appreciates
and protocol profit flows to long-term stakeholders.

Shares and value are converted at the implicit rate
``total_shares / total_bonded``, recomputed from the totals on every call.
"""

import logging

from lockup import FROZEN_OR_FLUID, FROZEN_OR_LOCKED, require_status
from pool_state import Bond, Deposit, EpochAdvanced, Unbond, Withdraw, atomic, require_solvent
from protocol_errors import InsufficientBalanceError, PreconditionError

logger = logging.getLogger(__name__)


class BondingLedger:
    """
    Simulates the bonding half of the DAO contract.
    """

    def __init__(self, state, token, lockup, clock, config):
        # DAO storage shared with the comptroller
        self.state = state

        # External contracts
        self.token = token
        self.lockup = lockup
        self.clock = clock

        self.config = config.validate()
        self.address = config.dao_address

    def epoch(self):
        """Returns the DAO's current epoch."""
        return self.state.epoch

    def status_of(self, account):
        """Returns the lockup status of an account at the current epoch."""
        return self.lockup.status_of(account, self.state.epoch)

    def shares_for(self, value):
        """
        Shares minted for bonding ``value`` tokens at the current rate.

        The first bonder (empty bonded pool) gets the genesis rate
        ``initial_stake_multiple`` shares per token.
        """
        if self.state.total_bonded == 0:
            return value * self.config.initial_stake_multiple
        return value * self.state.total_shares // self.state.total_bonded

    def step(self):
        """
        Advances the DAO to the next epoch.

        The external clock must already be ahead of the stored epoch. The
        bonded total of the outgoing epoch is snapshotted before the counter
        moves.

        Returns:
            The new epoch

        Raises:
            PreconditionError: If the clock has not advanced
        """
        if self.clock.epoch_time() <= self.state.epoch:
            raise PreconditionError("Bonding: Still current epoch")

        self.state.snapshot_total_bonded()
        self.state.record(EpochAdvanced(self.state.epoch, self.state.total_bonded))
        self.state.increment_epoch()

        logger.info("advanced to epoch %d (bonded %d)", self.state.epoch, self.state.total_bonded)
        return self.state.epoch

    def deposit(self, account, value):
        """
        Pulls ``value`` tokens from the account into DAO custody as staged balance.

        The account must have approved the DAO for at least ``value``.
        """
        if value <= 0:
            raise PreconditionError("Bonding: zero deposit")

        with atomic(self.state, self.token):
            self.token.transfer_from(self.address, account, self.address, value)
            self.state.increment_staged(account, value)
            self.state.record(Deposit(account, value))
            require_solvent(self.state, self.token, self.address)

        logger.debug("%s deposited %d", account, value)
        return True

    def withdraw(self, account, value):
        """
        Returns staged tokens to the account.

        Blocked while the account is fluid, so tokens cannot be bonded and
        withdrawn within the same window.
        """
        _require_non_negative(value)
        require_status(self.status_of(account), FROZEN_OR_LOCKED, "Permission: Not frozen or locked")

        with atomic(self.state, self.token):
            self.state.decrement_staged(account, value, "Bonding: insufficient staged balance")
            self.token.transfer(self.address, account, value)
            self.state.record(Withdraw(account, value))
            require_solvent(self.state, self.token, self.address)

        logger.debug("%s withdrew %d", account, value)
        return True

    def bond(self, account, value):
        """
        Converts staged tokens into bonded shares.

        Args:
            account: Address bonding its staged balance
            value: Amount of staged tokens to bond

        Returns:
            Number of shares granted
        """
        _require_non_negative(value)
        require_status(self.status_of(account), FROZEN_OR_FLUID, "Permission: Not frozen or fluid")

        with atomic(self.state, self.lockup):
            self.state.decrement_staged(account, value, "Bonding: insufficient staged balance")
            shares = self._credit_bond(account, value)
            require_solvent(self.state, self.token, self.address)

        return shares

    def bond_from_pool(self, caller, account, value):
        """
        Bonds tokens supplied by the liquidity pool on an account's behalf.

        The pool must have approved the DAO for ``value``; the tokens are
        pulled into custody and bonded without touching the account's
        staged balance.

        Args:
            caller: Address calling; must be the configured pool
            account: Address receiving the shares
            value: Amount of tokens to bond

        Returns:
            Number of shares granted
        """
        if caller != self.config.pool_address:
            raise PreconditionError("Bonding: not pool")
        _require_non_negative(value)

        require_status(self.status_of(account), FROZEN_OR_FLUID, "Permission: Not frozen or fluid")

        with atomic(self.state, self.token, self.lockup):
            self.token.transfer_from(self.address, caller, self.address, value)
            shares = self._credit_bond(account, value)
            require_solvent(self.state, self.token, self.address)

        return shares

    def unbond(self, account, shares):
        """
        Converts bonded shares back into staged tokens.

        The value released is proportional to the account's own bonded value
        per share, so a partial unbond gets its fair part of accrued rewards.

        Args:
            account: Address unbonding
            shares: Number of shares to give up

        Returns:
            Token value moved to the staged balance
        """
        _require_non_negative(shares)
        require_status(self.status_of(account), FROZEN_OR_FLUID, "Permission: Not frozen or fluid")

        held = self.state.balance_of_shares(account)
        if shares > held or held == 0:
            raise InsufficientBalanceError("Bonding: insufficient balance")

        value = shares * self.state.balance_of_bonded(account) // held

        with atomic(self.state, self.lockup):
            self._debit_bond(account, shares, value)
            require_solvent(self.state, self.token, self.address)

        return value

    def unbond_underlying(self, account, value):
        """
        Unbonds shares worth ``value`` tokens at the global rate.

        Args:
            account: Address unbonding
            value: Token value to move to the staged balance

        Returns:
            Number of shares burned
        """
        _require_non_negative(value)
        require_status(self.status_of(account), FROZEN_OR_FLUID, "Permission: Not frozen or fluid")

        if self.state.total_bonded == 0:
            raise InsufficientBalanceError("Bonding: insufficient total bonded")

        if value > self.state.balance_of_bonded(account):
            raise InsufficientBalanceError("Bonding: insufficient balance")

        shares = value * self.state.total_shares // self.state.total_bonded

        with atomic(self.state, self.lockup):
            self._debit_bond(account, shares, value)
            require_solvent(self.state, self.token, self.address)

        return shares

    def _credit_bond(self, account, value):
        self.lockup.unfreeze(account, self.state.epoch)

        shares = self.shares_for(value)
        self.state.increment_shares(account, shares)
        self.state.increment_total_bonded(value)
        self.state.record(Bond(account, self.state.epoch + 1, shares, value))

        logger.debug("%s bonded %d for %d shares", account, value, shares)
        return shares

    def _debit_bond(self, account, shares, value):
        self.lockup.unfreeze(account, self.state.epoch)

        self.state.decrement_total_bonded(value, "Bonding: insufficient total bonded")
        self.state.decrement_shares(account, shares, "Bonding: insufficient balance")
        self.state.increment_staged(account, value)
        self.state.record(Unbond(account, self.state.epoch + 1, shares, value))

        logger.debug("%s unbonded %d shares for %d", account, shares, value)


def _require_non_negative(amount):
    if amount < 0:
        raise PreconditionError("Bonding: negative amount")
