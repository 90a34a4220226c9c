"""
Unit tests for the DAO storage and its rollback support.
"""

import unittest
import sys
import os

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from pool_state import Deposit, PoolState, atomic
from protocol_errors import InsufficientBalanceError, PreconditionError


class TestPoolState(unittest.TestCase):
    def setUp(self):
        self.state = PoolState()
        self.state.increment_staged("alice", 100)
        self.state.increment_shares("alice", 100)
        self.state.increment_total_bonded(100)

    def test_negative_amounts_rejected(self):
        """Test that no setter accepts a negative amount"""
        setters = [
            lambda: self.state.increment_staged("alice", -1),
            lambda: self.state.decrement_staged("alice", -1, "staged"),
            lambda: self.state.increment_shares("alice", -1),
            lambda: self.state.decrement_shares("alice", -1, "shares"),
            lambda: self.state.increment_total_bonded(-1),
            lambda: self.state.decrement_total_bonded(-1, "bonded"),
            lambda: self.state.increment_total_redeemable(-1),
            lambda: self.state.decrement_total_redeemable(-1, "redeemable"),
            lambda: self.state.increment_total_debt(-1),
            lambda: self.state.decrement_total_debt(-1, "debt"),
        ]
        for setter in setters:
            with self.assertRaises(PreconditionError):
                setter()

        self.assertEqual(self.state.summary()['total_staged'], 100)
        self.assertEqual(self.state.total_shares, 100)
        self.assertEqual(self.state.total_bonded, 100)
        self.assertEqual(self.state.total_debt, 0)

    def test_decrement_past_balance(self):
        with self.assertRaises(InsufficientBalanceError) as context:
            self.state.decrement_staged("alice", 101, "Bonding: insufficient staged balance")

        self.assertEqual(str(context.exception), "Bonding: insufficient staged balance")

    def test_atomic_rollback(self):
        """Test that a failed block restores totals, accounts and the event log"""
        self.state.record(Deposit("alice", 100))
        events = self.state.events

        with self.assertRaises(InsufficientBalanceError):
            with atomic(self.state):
                self.state.decrement_staged("alice", 60, "staged")
                self.state.increment_staged("bob", 60)
                self.state.snapshot_total_bonded()
                self.state.record(Deposit("bob", 60))
                self.state.decrement_total_debt(1, "debt")

        self.assertEqual(self.state.balance_of_staged("alice"), 100)
        self.assertEqual(self.state.total_staged, 100)
        self.assertNotIn("bob", self.state.accounts)
        self.assertIsNone(self.state.total_bonded_at(0))
        self.assertIs(self.state.events, events)
        self.assertEqual(self.state.events, [Deposit("alice", 100)])

    def test_atomic_commit(self):
        with atomic(self.state):
            self.state.increment_staged("bob", 10)
            self.state.record(Deposit("bob", 10))

        self.assertEqual(self.state.balance_of_staged("bob"), 10)
        self.assertEqual(len(self.state.events), 1)


if __name__ == '__main__':
    unittest.main()
