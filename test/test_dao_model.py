"""
Integration tests for the Elastic Dollar economic model.
"""

import unittest
import sys
import os

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from dao_model import ElasticDollarProtocol
from protocol_config import ProtocolConfig
from protocol_errors import PreconditionError


class TestElasticDollarProtocol(unittest.TestCase):
    def setUp(self):
        """Initialize a protocol with two bonded holders"""
        self.protocol = ElasticDollarProtocol(ProtocolConfig(initial_stake_multiple=1))
        self.protocol.fund("alice", 10000)
        self.protocol.fund("bob", 10000)
        self.protocol.deposit_and_bond("alice", 3000)
        self.protocol.deposit_and_bond("bob", 1000)

    def assert_solvent(self):
        state = self.protocol.get_system_state()
        owed = state['total_bonded'] + state['total_staged'] + state['total_redeemable']
        self.assertGreaterEqual(state['dao_balance'], owed)

    def test_setup(self):
        state = self.protocol.get_system_state()

        self.assertEqual(state['total_supply'], 20000)
        self.assertEqual(state['total_bonded'], 4000)
        self.assertEqual(state['total_shares'], 4000)
        self.assertEqual(state['total_net'], 16000)
        self.assertEqual(state['share_value'], 1.0)

    def test_expansion_rewards_bonded_holders(self):
        """Test that an expansion raises every holder's bonded value pro rata"""
        result = self.protocol.advance_epoch(1000)

        # 20% pool, 5% treasury, 75% to the DAO
        self.assertEqual(result['epoch'], 1)
        self.assertEqual(result['bonded'], 1000)
        self.assertEqual(result['treasury'], 50)
        self.assertEqual(self.protocol.state.total_bonded, 4750)
        self.assertEqual(self.protocol.state.balance_of_bonded("alice"), 3562)
        self.assertEqual(self.protocol.state.balance_of_bonded("bob"), 1187)
        self.assert_solvent()

    def test_contraction_then_expansion(self):
        """Test a full debt, coupon and redemption cycle"""
        self.protocol.advance_epoch(-2000)
        self.assertEqual(self.protocol.state.total_debt, 2000)

        self.protocol.purchase_coupons("alice", 1500)
        self.assertEqual(self.protocol.state.total_debt, 500)
        self.assertEqual(self.protocol.coupons.total_coupons(), 1500)
        self.assertEqual(self.protocol.token.total_supply(), 18500)

        result = self.protocol.advance_epoch(5000)
        self.assertEqual(result['redeemable'], 1500)
        self.assertEqual(result['less_debt'], 500)
        self.assertEqual(self.protocol.state.total_debt, 0)

        self.protocol.redeem_coupons("alice", 1500)
        self.assertEqual(self.protocol.coupons.total_coupons(), 0)
        self.assertEqual(self.protocol.state.total_redeemable, 0)
        self.assert_solvent()

    def test_redeem_without_coupons_rolls_back(self):
        """Test that an account holding no coupons cannot take another's redemption"""
        self.protocol.advance_epoch(-2000)
        self.protocol.purchase_coupons("alice", 150)
        result = self.protocol.advance_epoch(1000)
        self.assertEqual(result['redeemable'], 150)

        with self.assertRaises(ValueError):
            self.protocol.redeem_coupons("dave", 150)

        self.assertEqual(self.protocol.state.total_redeemable, 150)
        self.assertEqual(self.protocol.token.balance_of("dave"), 0)
        self.assertEqual(self.protocol.coupons.balance_of_coupons("alice"), 150)

        self.protocol.redeem_coupons("alice", 150)
        self.assertEqual(self.protocol.state.total_redeemable, 0)
        self.assertEqual(self.protocol.coupons.total_coupons(), 0)
        self.assert_solvent()

    def test_failed_coupon_purchase_rolls_back(self):
        """Test that coupons are issued together with the burn or not at all"""
        self.protocol.advance_epoch(-2000)
        supply = self.protocol.token.total_supply()
        event_count = len(self.protocol.state.events)

        with self.assertRaises(ValueError):
            self.protocol.purchase_coupons("alice", 0)

        self.assertEqual(self.protocol.state.total_debt, 2000)
        self.assertEqual(self.protocol.token.total_supply(), supply)
        self.assertEqual(self.protocol.coupons.total_coupons(), 0)
        self.assertEqual(len(self.protocol.state.events), event_count)

    def test_epoch_snapshots(self):
        """Test that each closed epoch keeps its bonded total"""
        self.protocol.advance_epoch(0)
        self.protocol.advance_epoch(1000)
        self.protocol.advance_epoch(0)

        self.assertEqual(self.protocol.state.total_bonded_at(0), 4000)
        self.assertEqual(self.protocol.state.total_bonded_at(1), 4000)
        self.assertEqual(self.protocol.state.total_bonded_at(2), 4750)

    def test_step_without_clock(self):
        """Test that the DAO cannot step twice within one clock epoch"""
        self.protocol.clock.advance()
        self.protocol.bonding.step()

        with self.assertRaises(PreconditionError):
            self.protocol.bonding.step()

        self.assertEqual(self.protocol.state.epoch, 1)

    def test_history(self):
        self.protocol.advance_epoch(100)
        self.protocol.advance_epoch(-100)

        self.assertEqual(self.protocol.history['epoch'], [1, 2])
        self.assertEqual(len(self.protocol.history['total_debt']), 2)

    def test_market_simulation(self):
        """Test a random simulation without plotting"""
        results = self.protocol.simulate_epochs(60, price_volatility=0.03, plot_results=False, seed=7)

        self.assertEqual(results['final_epoch'], 60)
        self.assertEqual(len(self.protocol.history['epoch']), 61)
        self.assertIn('final_supply', results)
        self.assertIn('final_share_value', results)
        self.assertGreaterEqual(results['final_debt'], 0)
        self.assert_solvent()

        shares = sum(acct.shares for acct in self.protocol.state.accounts.values())
        self.assertEqual(shares, self.protocol.state.total_shares)


if __name__ == '__main__':
    unittest.main()
