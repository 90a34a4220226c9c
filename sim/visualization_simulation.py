"""
Visualization simulation for the Elastic Dollar economic model.

This script runs a year of random epochs and plots the DAO's pool state.
"""

import sys
import os

import numpy as np

# Add the core directory to the path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "core"))
from dao_model import ElasticDollarProtocol


def run_visualization_simulation():
    protocol = ElasticDollarProtocol()
    rng = np.random.default_rng()

    print("Funding holders...")
    for i in range(10):
        holder = f"user{i}"
        amount = int(rng.uniform(10_000, 100_000))
        protocol.fund(holder, amount)

        # Bond between 20% and 80% of the balance
        bonded = int(amount * (0.2 + i * 0.6 / 10))
        shares = protocol.deposit_and_bond(holder, bonded)
        print(f"{holder}: {amount:,} dollars, bonded {bonded:,} for {shares:,} shares")

    print("\nRunning simulation with visualizations...")
    results = protocol.simulate_epochs(365, price_volatility=0.03, plot_results=True)

    print("\nSimulation Results:")
    for key, value in results.items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    run_visualization_simulation()
