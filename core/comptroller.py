"""
Comptroller Model for the Elastic Dollar DAO.

This module simulates the supply side of the DAO: it mints expansion supply
through the redeemable -> debt -> bonded waterfall, tracks protocol debt
and its cap, and mints, burns and redeems on behalf of other components.

Every operation ends with the solvency check: the DAO must hold at least
``total_bonded + total_staged + total_redeemable`` tokens. Operations are
all-or-nothing; a failure at any point restores the state they started
from.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from pool_state import DebtChange, SupplyIncrease, atomic, require_solvent
from protocol_errors import ConfigurationError, PreconditionError

logger = logging.getLogger(__name__)


def split_reward(amount, pool_ratio_pct, treasury_ratio_pct):
    """
    Splits ``amount`` into (pool cut, treasury cut, remainder).

    Cuts are rounded down, so the remainder absorbs the rounding dust.
    """
    pool_cut = amount * pool_ratio_pct // 100
    treasury_cut = amount * treasury_ratio_pct // 100
    return pool_cut, treasury_cut, amount - pool_cut - treasury_cut


@dataclass(frozen=True)
class SupplyPlan:
    """
    Where every unit of one supply expansion goes.

    Phase 1 tops up the redeemable pool (with the pool and treasury cuts
    carved out of it), phase 2 retires debt, phase 3 pays the bonded pool
    (again with pool and treasury cuts). Anything left when no one is
    bonded is forfeited.
    """
    redeemable: int = 0
    redeemable_pool_reward: int = 0
    redeemable_treasury_reward: int = 0
    less_debt: int = 0
    bonded_pool_reward: int = 0
    bonded_treasury_reward: int = 0
    dao_reward: int = 0
    forfeited: int = 0

    @property
    def bonded_payout(self):
        """Phase 3 amount, including its pool and treasury cuts."""
        return self.bonded_pool_reward + self.bonded_treasury_reward + self.dao_reward

    @property
    def bonded(self):
        """Bonded payout plus the pool cut carried over from phase 1."""
        return self.bonded_payout + self.redeemable_pool_reward

    @property
    def treasury(self):
        return self.redeemable_treasury_reward + self.bonded_treasury_reward

    @property
    def minted(self):
        return (self.redeemable + self.redeemable_pool_reward + self.redeemable_treasury_reward
                + self.bonded_payout)

    def as_tuple(self):
        """(redeemable, less debt, bonded, treasury)"""
        return self.redeemable, self.less_debt, self.bonded, self.treasury


def plan_supply_increase(new_supply, total_redeemable, total_coupons, total_debt,
                         total_bonded, pool_ratio_pct, treasury_ratio_pct):
    """
    Computes the expansion waterfall without touching any state.

    Args:
        new_supply: Tokens the policy layer decided to create this epoch
        total_redeemable: Tokens already set aside for coupon redemptions
        total_coupons: Outstanding coupons
        total_debt: Outstanding protocol debt
        total_bonded: Tokens in the bonded pool
        pool_ratio_pct: Liquidity pool cut, percent
        treasury_ratio_pct: Treasury cut, percent

    Returns:
        A SupplyPlan

    Raises:
        PreconditionError: If new_supply is negative
        ConfigurationError: If the cuts leave nothing for redemptions
    """
    if new_supply < 0:
        raise PreconditionError("Comptroller: negative supply increase")

    if pool_ratio_pct + treasury_ratio_pct >= 100:
        raise ConfigurationError("Pool and treasury ratios must sum to less than 100%")

    plan = {}
    remaining = new_supply

    # 1. True up redeemable pool, grossed up so the net lands in redeemable
    if total_redeemable < total_coupons:
        shortfall = total_coupons - total_redeemable
        grossed = shortfall * 100 // (100 - pool_ratio_pct - treasury_ratio_pct)
        grossed = min(grossed, remaining)

        pool_cut, treasury_cut, net = split_reward(grossed, pool_ratio_pct, treasury_ratio_pct)
        plan.update(redeemable=net,
                    redeemable_pool_reward=pool_cut,
                    redeemable_treasury_reward=treasury_cut)
        remaining -= grossed

    # 2. Eliminate debt
    if remaining > 0 and total_debt > 0:
        less_debt = min(total_debt, remaining)
        plan['less_debt'] = less_debt
        remaining -= less_debt

    # 3. Payout to bonded
    if total_bonded == 0:
        plan['forfeited'] = remaining
        remaining = 0

    if remaining > 0:
        pool_cut, treasury_cut, dao_cut = split_reward(remaining, pool_ratio_pct, treasury_ratio_pct)
        plan.update(bonded_pool_reward=pool_cut,
                    bonded_treasury_reward=treasury_cut,
                    dao_reward=dao_cut)

    return SupplyPlan(**plan)


class Comptroller:
    """
    Simulates the supply and debt half of the DAO contract.
    """

    def __init__(self, state, token, coupons, config):
        # DAO storage shared with the bonding ledger
        self.state = state

        # External contracts
        self.token = token
        self.coupons = coupons

        self.config = config.validate()
        self.address = config.dao_address

    def balance_check(self):
        """Raises InconsistentBalancesError if the DAO is insolvent."""
        require_solvent(self.state, self.token, self.address)

    def bootstrapping(self):
        """True while minting does not create debt."""
        return self.state.epoch <= self.config.bootstrapping_epoch_threshold

    def total_net(self):
        """Token supply not held by the DAO itself."""
        return self.token.total_supply() - self.token.balance_of(self.address)

    # Supply expansion

    def increase_supply(self, new_supply):
        """
        Distributes new supply: redeemable first, then debt, then bonded.

        Args:
            new_supply: Tokens to create this epoch

        Returns:
            (redeemable credited, debt eliminated, bonded payout, treasury payout)

            The bonded figure includes the pool cut of the redeemable top-up,
            so it is nonzero whenever that cut is, even if nothing is bonded
            and the rest of the supply is forfeited.
        """
        plan = plan_supply_increase(
            new_supply,
            self.state.total_redeemable,
            self.coupons.total_coupons(),
            self.state.total_debt,
            self.state.total_bonded,
            self.config.oracle_pool_ratio_pct,
            self.config.treasury_ratio_pct,
        )

        with atomic(self.state, self.token):
            self._apply(plan)

        if plan.forfeited:
            logger.warning("no bonded stake, forfeited %d of new supply", plan.forfeited)

        logger.info(
            "epoch %d supply increase %d: redeemable %d, debt -%d, bonded %d, treasury %d",
            self.state.epoch, new_supply, *plan.as_tuple()
        )
        return plan.as_tuple()

    def _apply(self, plan):
        self._mint_to_pool(plan.redeemable_pool_reward)
        self._mint_to_treasury(plan.redeemable_treasury_reward)
        self._mint_to_redeemable(plan.redeemable)

        if plan.less_debt:
            self._decrease_debt(plan.less_debt)

        self._mint_to_pool(plan.bonded_pool_reward)
        self._mint_to_treasury(plan.bonded_treasury_reward)
        self._mint_to_dao(plan.dao_reward)

        self.state.record(SupplyIncrease(self.state.epoch, *plan.as_tuple()))

    def shrink_supply(self, new_debt):
        """
        Contraction: records ``new_debt`` as protocol debt, subject to the cap.

        Returns:
            The outstanding debt after the cap is applied
        """
        self.increase_debt(new_debt)
        return self.state.total_debt

    # Debt

    def increase_debt(self, amount):
        """Adds debt, then trims it back to the debt ratio cap."""
        with atomic(self.state):
            self._increase_debt(amount)
            self.balance_check()
        return self.state.total_debt

    def reset_debt(self, target_ratio):
        """
        Lowers debt to ``target_ratio`` of token supply if it is above it.

        Returns:
            The amount of debt removed
        """
        with atomic(self.state):
            less_debt = self._reset_debt(target_ratio)
            self.balance_check()
        return less_debt

    def decrease_debt(self, amount):
        with atomic(self.state):
            self._decrease_debt(amount)
            self.balance_check()
        return self.state.total_debt

    def _increase_debt(self, amount):
        if amount < 0:
            raise PreconditionError("Comptroller: negative debt increase")

        self.state.increment_total_debt(amount)
        self.state.record(DebtChange(self.state.epoch, amount, self.state.total_debt))
        self._reset_debt(self.config.debt_ratio_cap)

    def _reset_debt(self, target_ratio):
        if not 0 <= Decimal(target_ratio) <= 1:
            raise PreconditionError(f"Comptroller: invalid debt ratio {target_ratio}")

        target_debt = int(Decimal(target_ratio) * self.token.total_supply())
        current_debt = self.state.total_debt

        if current_debt <= target_debt:
            return 0

        less_debt = current_debt - target_debt
        self._decrease_debt(less_debt)
        logger.info("debt reset to %d (cap %s of supply)", target_debt, target_ratio)
        return less_debt

    def _decrease_debt(self, amount):
        if amount < 0:
            raise PreconditionError("Comptroller: negative debt decrease")

        self.state.decrement_total_debt(amount, "Comptroller: not enough debt")
        self.state.record(DebtChange(self.state.epoch, -amount, self.state.total_debt))

    # Mint / burn / redeem

    def mint_to_account(self, account, amount):
        """
        Mints to an account. Outside the bootstrap period the minted amount
        is also recorded as debt.
        """
        with atomic(self.state, self.token):
            self.token.mint(account, amount, minter=self.address)
            if not self.bootstrapping():
                self._increase_debt(amount)
            self.balance_check()
        logger.debug("minted %d to account %s", amount, account)

    def burn_from_account(self, account, amount):
        """Pulls tokens from an account, burns them and retires as much debt."""
        with atomic(self.state, self.token):
            self.token.transfer_from(self.address, account, self.address, amount)
            self.token.burn(self.address, amount)
            self.state.decrement_total_debt(amount, "Comptroller: not enough outstanding debt")
            self.state.record(DebtChange(self.state.epoch, -amount, self.state.total_debt))
            self.balance_check()
        logger.debug("burned %d from account %s", amount, account)

    def redeem_to_account(self, account, amount):
        """Pays redeemable tokens out of custody to an account."""
        with atomic(self.state, self.token):
            self.state.decrement_total_redeemable(amount, "Comptroller: not enough redeemable balance")
            self.token.transfer(self.address, account, amount)
            self.balance_check()
        logger.debug("redeemed %d to account %s", amount, account)

    def burn_redeemable(self, amount):
        """Burns redeemable tokens held in custody, e.g. for expired coupons."""
        with atomic(self.state, self.token):
            self.state.decrement_total_redeemable(amount, "Comptroller: not enough redeemable balance")
            self.token.burn(self.address, amount)
            self.balance_check()
        logger.debug("burned %d redeemable", amount)

    def mint_to_bonded(self, amount):
        """Mints ``amount`` to the bonded pool, less the pool and treasury cuts."""
        pool_cut, treasury_cut, dao_cut = split_reward(
            amount, self.config.oracle_pool_ratio_pct, self.config.treasury_ratio_pct
        )
        with atomic(self.state, self.token):
            self._mint_to_pool(pool_cut)
            self._mint_to_treasury(treasury_cut)
            self._mint_to_dao(dao_cut)
        return pool_cut, treasury_cut, dao_cut

    def _mint_to_pool(self, amount):
        self._mint(self.config.pool_address, amount)

    def _mint_to_treasury(self, amount):
        self._mint(self.config.treasury_address, amount)

    def _mint_to_redeemable(self, amount):
        self._mint(self.address, amount)
        self.state.increment_total_redeemable(amount)
        self.balance_check()

    def _mint_to_dao(self, amount):
        self._mint(self.address, amount)
        self.state.increment_total_bonded(amount)
        self.balance_check()

    def _mint(self, recipient, amount):
        if amount > 0:
            self.token.mint(recipient, amount, minter=self.address)
            self.balance_check()
