"""
Economic Model for the Elastic Dollar protocol.

This main module wires the token, the external collaborators, the bonding
ledger and the comptroller into one DAO and provides simulation
capabilities: epochs are advanced with random supply expansions and
contractions and the resulting pool state is tracked and plotted.
"""

import logging

import numpy as np
import matplotlib.pyplot as plt

from bonding import BondingLedger
from collaborators import CouponLedger, EpochClock
from comptroller import Comptroller
from dollar_token import ElasticToken
from lockup import Lockup
from pool_state import PoolState, atomic
from protocol_config import ProtocolConfig

logger = logging.getLogger(__name__)

SUPPLY_CHANGE_LIMIT = 0.03  # max fraction of net supply created or destroyed per epoch


class ElasticDollarProtocol:
    """
    Complete economic model of the Elastic Dollar DAO.
    Combines all components and provides simulation capabilities.
    """

    def __init__(self, config=None, initial_epoch=0):
        self.config = (config or ProtocolConfig()).validate()

        # Create token; only the DAO may mint
        self.token = ElasticToken()
        self.token.set_owner(self)
        self.token.add_minter(self.config.dao_address)

        # External collaborators
        self.clock = EpochClock(initial_epoch)
        self.coupons = CouponLedger()
        self.lockup = Lockup(self.config.dao_exit_lockup_epochs)

        # DAO storage and components
        self.state = PoolState(epoch=initial_epoch)
        self.bonding = BondingLedger(self.state, self.token, self.lockup, self.clock, self.config)
        self.comptroller = Comptroller(self.state, self.token, self.coupons, self.config)

        # History tracking for simulations
        self.history = {key: [] for key in self._history_keys()}

    @property
    def address(self):
        return self.config.dao_address

    def fund(self, account, amount):
        """Mints tokens to an account (creates debt after bootstrapping)."""
        self.comptroller.mint_to_account(account, amount)

    def deposit_and_bond(self, account, amount):
        """
        Approves, deposits and bonds in one go.

        Returns:
            Number of shares granted
        """
        self.token.approve(account, self.address, amount)
        self.bonding.deposit(account, amount)
        return self.bonding.bond(account, amount)

    def purchase_coupons(self, account, amount):
        """
        Burns ``amount`` of the account's tokens against outstanding debt
        and issues the same number of coupons.
        """
        with atomic(self.state, self.token, self.coupons):
            self.token.approve(account, self.address, amount)
            self.comptroller.burn_from_account(account, amount)
            self.coupons.issue(account, amount)

    def redeem_coupons(self, account, amount):
        """Pays out redeemable tokens for coupons the account holds."""
        with atomic(self.state, self.token, self.coupons):
            self.coupons.retire(account, amount)
            self.comptroller.redeem_to_account(account, amount)

    def advance_epoch(self, supply_delta=0):
        """
        Moves the clock and the DAO to the next epoch, then applies the
        policy decision for it.

        Args:
            supply_delta: Positive to expand supply, negative to record new debt

        Returns:
            Dictionary describing what happened this epoch
        """
        self.clock.advance()
        self.bonding.step()

        result = {'epoch': self.state.epoch, 'supply_delta': supply_delta}
        if supply_delta > 0:
            redeemable, less_debt, bonded, treasury = self.comptroller.increase_supply(supply_delta)
            result.update(redeemable=redeemable, less_debt=less_debt, bonded=bonded, treasury=treasury)
        elif supply_delta < 0:
            result['total_debt'] = self.comptroller.shrink_supply(-supply_delta)

        self._update_history()
        return result

    def get_system_state(self):
        """
        Returns the current state of the system.

        Returns:
            Dictionary with system state
        """
        state = self.state
        share_value = state.total_bonded / state.total_shares if state.total_shares else 0.0

        return {
            'epoch': state.epoch,
            'total_supply': self.token.total_supply(),
            'total_net': self.comptroller.total_net(),
            'dao_balance': self.token.balance_of(self.address),
            'total_staged': state.total_staged,
            'total_bonded': state.total_bonded,
            'total_redeemable': state.total_redeemable,
            'total_debt': state.total_debt,
            'total_coupons': self.coupons.total_coupons(),
            'total_shares': state.total_shares,
            'share_value': share_value,
        }

    @staticmethod
    def _history_keys():
        return ('epoch', 'total_supply', 'total_bonded', 'total_staged',
                'total_redeemable', 'total_debt', 'total_coupons', 'share_value')

    def _update_history(self):
        """Updates history tracking for simulations."""
        system_state = self.get_system_state()
        for key in self._history_keys():
            self.history[key].append(system_state[key])

    def _holders(self):
        excluded = {self.address, self.config.pool_address, self.config.treasury_address}
        return [a for a, balance in self.token.balances.items() if balance > 0 and a not in excluded]

    def simulate_epochs(self, epochs, price_volatility=0.02, plot_results=True, seed=None):
        """
        Runs a simulation with random price movements for a number of epochs.

        Above peg the policy expands supply by the price deviation times the
        net supply; below peg it records the same amount as debt and a
        random holder buys coupons against it. Redeemable tokens are paid
        out to coupon holders as they become available.

        Args:
            epochs: Number of epochs to simulate
            price_volatility: Standard deviation of the per-epoch log price
            plot_results: Whether to plot the results
            seed: Seed for the random generator

        Returns:
            Dictionary with simulation results
        """
        rng = np.random.default_rng(seed)
        log_prices = rng.normal(0, price_volatility, epochs)
        prices = np.exp(log_prices)

        self.history = {key: [] for key in self._history_keys()}
        self._update_history()

        for i in range(epochs):
            deviation = float(np.clip(prices[i] - 1.0, -SUPPLY_CHANGE_LIMIT, SUPPLY_CHANGE_LIMIT))
            delta = int(deviation * self.comptroller.total_net())
            self.advance_epoch(delta)

            holders = self._holders()
            if delta < 0 and holders and self.state.total_debt > 0:
                buyer = holders[rng.integers(len(holders))]
                amount = min(self.state.total_debt, self.token.balance_of(buyer) // 10)
                if amount > 0:
                    self.purchase_coupons(buyer, amount)

            for holder, held in list(self.coupons.balances.items()):
                amount = min(held, self.state.total_redeemable)
                if amount > 0:
                    self.redeem_coupons(holder, amount)

        epoch_points = np.array(self.history['epoch'])

        if plot_results:
            fig, axs = plt.subplots(5, 1, figsize=(12, 20), sharex=True)

            axs[0].plot(epoch_points, self.history['total_supply'])
            axs[0].set_title('Total Supply')
            axs[0].set_ylabel('Dollars')

            axs[1].plot(epoch_points, self.history['total_bonded'], label='Bonded')
            axs[1].plot(epoch_points, self.history['total_staged'], label='Staged')
            axs[1].set_title('DAO Custody')
            axs[1].set_ylabel('Dollars')
            axs[1].legend()

            axs[2].plot(epoch_points, self.history['total_debt'])
            axs[2].set_title('Total Debt')
            axs[2].set_ylabel('Dollars')

            axs[3].plot(epoch_points, self.history['total_coupons'], label='Coupons')
            axs[3].plot(epoch_points, self.history['total_redeemable'], label='Redeemable')
            axs[3].set_title('Coupons and Redeemable')
            axs[3].set_ylabel('Dollars')
            axs[3].legend()

            axs[4].plot(epoch_points, self.history['share_value'])
            axs[4].set_title('Bonded Value per Share')
            axs[4].set_ylabel('Dollars')
            axs[4].set_xlabel('Epoch')

            plt.tight_layout()
            plt.show()

        final_state = self.get_system_state()
        logger.info("simulated %d epochs, final supply %d", epochs, final_state['total_supply'])

        return {
            'final_epoch': final_state['epoch'],
            'final_supply': final_state['total_supply'],
            'final_bonded': final_state['total_bonded'],
            'final_debt': final_state['total_debt'],
            'final_coupons': final_state['total_coupons'],
            'final_share_value': final_state['share_value'],
            'mean_price': float(prices.mean()) if epochs else 1.0,
        }
