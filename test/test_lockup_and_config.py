"""
Unit tests for lockup status, protocol configuration and the epoch clock.
"""

import unittest
import sys
import os
from decimal import Decimal

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from collaborators import CouponLedger, EpochClock
from lockup import FROZEN_OR_FLUID, AccountStatus, Lockup, require_status
from protocol_config import ProtocolConfig
from protocol_errors import ConfigurationError, PreconditionError


class TestLockup(unittest.TestCase):
    def setUp(self):
        self.lockup = Lockup(fluid_epochs=15)

    def test_new_account_is_frozen(self):
        self.assertEqual(self.lockup.status_of("alice", 0), AccountStatus.FROZEN)

    def test_unfreeze_window(self):
        """Test that an account is fluid for the lockup window after acting"""
        self.lockup.unfreeze("alice", 10)

        self.assertEqual(self.lockup.status_of("alice", 10), AccountStatus.FLUID)
        self.assertEqual(self.lockup.status_of("alice", 24), AccountStatus.FLUID)
        self.assertEqual(self.lockup.status_of("alice", 25), AccountStatus.FROZEN)

    def test_lock_takes_precedence(self):
        """Test that a lock overrides the fluid window and is never shortened"""
        self.lockup.unfreeze("alice", 0)
        self.lockup.place_lock("alice", 20)
        self.lockup.place_lock("alice", 5)

        self.assertEqual(self.lockup.status_of("alice", 10), AccountStatus.LOCKED)
        self.assertEqual(self.lockup.status_of("alice", 19), AccountStatus.LOCKED)
        self.assertEqual(self.lockup.status_of("alice", 20), AccountStatus.FROZEN)

    def test_require_status(self):
        require_status(AccountStatus.FLUID, FROZEN_OR_FLUID, "Permission: Not frozen or fluid")

        with self.assertRaises(PreconditionError) as context:
            require_status(AccountStatus.LOCKED, FROZEN_OR_FLUID, "Permission: Not frozen or fluid")

        self.assertEqual(str(context.exception), "Permission: Not frozen or fluid: account is locked")


class TestProtocolConfig(unittest.TestCase):
    def test_defaults_are_valid(self):
        config = ProtocolConfig().validate()

        self.assertEqual(config.initial_stake_multiple, 10 ** 6)
        self.assertEqual(config.debt_ratio_cap, Decimal("0.20"))

    def test_ratios_must_leave_room_for_redemptions(self):
        """Test that pool and treasury cuts of 100% or more are rejected"""
        with self.assertRaises(ConfigurationError) as context:
            ProtocolConfig(oracle_pool_ratio_pct=95, treasury_ratio_pct=5).validate()

        self.assertIn("less than 100%", str(context.exception))

        ProtocolConfig(oracle_pool_ratio_pct=94, treasury_ratio_pct=5).validate()

    def test_invalid_values(self):
        invalid = [
            dict(initial_stake_multiple=0),
            dict(oracle_pool_ratio_pct=-1),
            dict(treasury_ratio_pct=-1),
            dict(debt_ratio_cap=Decimal("1.5")),
            dict(debt_ratio_cap=Decimal("-0.1")),
            dict(bootstrapping_epoch_threshold=-1),
            dict(dao_exit_lockup_epochs=-1),
        ]
        for kwargs in invalid:
            with self.subTest(**kwargs):
                with self.assertRaises(ConfigurationError):
                    ProtocolConfig(**kwargs).validate()


class TestCollaborators(unittest.TestCase):
    def test_manual_clock(self):
        clock = EpochClock()

        self.assertEqual(clock.epoch_time(), 0)
        self.assertEqual(clock.advance(3), 3)
        clock.set_epoch(10)
        self.assertEqual(clock.epoch_time(), 10)

        with self.assertRaises(ValueError):
            clock.advance(-1)

    def test_wall_clock(self):
        """Test deriving the epoch from elapsed time"""
        now = [1000]
        clock = EpochClock(epoch=5, start=1000, period=100, time_fn=lambda: now[0])

        self.assertEqual(clock.epoch_time(), 5)
        now[0] = 1250
        self.assertEqual(clock.epoch_time(), 7)

    def test_coupon_ledger(self):
        coupons = CouponLedger()
        coupons.issue("alice", 100)
        coupons.issue("bob", 50)
        coupons.retire("alice", 40)

        self.assertEqual(coupons.total_coupons(), 110)
        self.assertEqual(coupons.balance_of_coupons("alice"), 60)

        with self.assertRaises(ValueError):
            coupons.retire("bob", 51)
        with self.assertRaises(ValueError):
            coupons.issue("bob", 0)


if __name__ == '__main__':
    unittest.main()
