"""
Protocol parameters for the Elastic Dollar model.

These are the policy constants the DAO consults but does not own: the
genesis share price, the pool and treasury cuts of new supply, the debt
cap and the length of the bootstrap period and lockup windows.
"""

from dataclasses import dataclass
from decimal import Decimal

from protocol_errors import ConfigurationError

# Defaults
INITIAL_STAKE_MULTIPLE = 10 ** 6  # shares per token for the first bonder
ORACLE_POOL_RATIO = 20            # % of new supply to the liquidity pool
TREASURY_RATIO = 5                # % of new supply to the treasury
DEBT_RATIO_CAP = Decimal("0.20")  # max debt as a fraction of token supply
BOOTSTRAPPING_PERIOD = 90         # epochs during which minting creates no debt
DAO_EXIT_LOCKUP_EPOCHS = 15       # fluid window after bond/unbond

POOL_ADDRESS = "pool"
TREASURY_ADDRESS = "treasury"
DAO_ADDRESS = "dao"


@dataclass
class ProtocolConfig:
    """
    Read-only policy constants shared by the bonding ledger and the comptroller.
    """
    initial_stake_multiple: int = INITIAL_STAKE_MULTIPLE
    oracle_pool_ratio_pct: int = ORACLE_POOL_RATIO
    treasury_ratio_pct: int = TREASURY_RATIO
    debt_ratio_cap: Decimal = DEBT_RATIO_CAP
    bootstrapping_epoch_threshold: int = BOOTSTRAPPING_PERIOD
    dao_exit_lockup_epochs: int = DAO_EXIT_LOCKUP_EPOCHS
    pool_address: str = POOL_ADDRESS
    treasury_address: str = TREASURY_ADDRESS
    dao_address: str = DAO_ADDRESS

    def validate(self) -> "ProtocolConfig":
        """
        Check that the parameters describe a usable protocol.

        The redeemable gross-up divides by ``100 - pool - treasury``, so the
        two cuts together must stay strictly below 100%.

        Returns:
            self, so construction and validation can be chained

        Raises:
            ConfigurationError: If any parameter is out of range
        """
        if self.initial_stake_multiple <= 0:
            raise ConfigurationError("Initial stake multiple must be greater than zero")

        if self.oracle_pool_ratio_pct < 0 or self.treasury_ratio_pct < 0:
            raise ConfigurationError("Pool and treasury ratios must not be negative")

        if self.oracle_pool_ratio_pct + self.treasury_ratio_pct >= 100:
            raise ConfigurationError(
                f"Pool and treasury ratios must sum to less than 100%, got "
                f"{self.oracle_pool_ratio_pct + self.treasury_ratio_pct}%"
            )

        if not Decimal(0) <= Decimal(self.debt_ratio_cap) <= Decimal(1):
            raise ConfigurationError(f"Debt ratio cap must be between 0 and 1, got {self.debt_ratio_cap}")

        if self.bootstrapping_epoch_threshold < 0 or self.dao_exit_lockup_epochs < 0:
            raise ConfigurationError("Epoch counts must not be negative")

        return self
