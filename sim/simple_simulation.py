"""
Simple simulation for the Elastic Dollar economic model.

This script walks through one expansion cycle: holders bond, the DAO
contracts and sells coupons, then an expansion pays coupon holders,
retires debt and rewards the bonded pool.
"""

import sys
import os

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from dao_model import ElasticDollarProtocol
from protocol_config import ProtocolConfig


def print_state(protocol):
    state = protocol.get_system_state()
    print(f"  Epoch: {state['epoch']}")
    print(f"  Total supply: {state['total_supply']:,}")
    print(f"  Bonded: {state['total_bonded']:,}  Staged: {state['total_staged']:,}")
    print(f"  Redeemable: {state['total_redeemable']:,}  Coupons: {state['total_coupons']:,}")
    print(f"  Debt: {state['total_debt']:,}")
    print(f"  Value per share: {state['share_value']:.8f}")


def run_basic_simulation():
    # Short bootstrap so the contraction below records debt
    config = ProtocolConfig(bootstrapping_epoch_threshold=0)
    protocol = ElasticDollarProtocol(config)

    print("Funding and bonding holders...")
    for i, amount in enumerate([50_000, 30_000, 20_000]):
        holder = f"user{i}"
        protocol.token.mint(holder, amount, minter=protocol.address)
        shares = protocol.deposit_and_bond(holder, amount // 2)
        print(f"{holder}: bonded {amount // 2:,} for {shares:,} shares")

    print("\nInitial protocol state:")
    print_state(protocol)

    print("\nContraction: recording 2,000 of debt")
    protocol.advance_epoch(-2_000)
    protocol.purchase_coupons("user0", 1_500)
    print("user0 bought 1,500 coupons")
    print_state(protocol)

    print("\nExpansion: creating 5,000 new dollars")
    result = protocol.advance_epoch(5_000)
    print(f"  Redeemable credited: {result['redeemable']:,}")
    print(f"  Debt eliminated: {result['less_debt']:,}")
    print(f"  Bonded payout: {result['bonded']:,}")
    print(f"  Treasury payout: {result['treasury']:,}")

    protocol.redeem_coupons("user0", protocol.state.total_redeemable)
    print("user0 redeemed coupons")

    print("\nFinal protocol state:")
    print_state(protocol)

    for i in range(3):
        holder = f"user{i}"
        print(f"  {holder} bonded value: {protocol.state.balance_of_bonded(holder):,}")


if __name__ == "__main__":
    run_basic_simulation()
