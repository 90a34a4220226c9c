"""
Elastic Token Model for the Elastic Dollar protocol.

This module simulates the elastic-supply dollar token. The DAO mints new
supply during expansions, burns it during contractions, and holds every
staged, bonded and redeemable token in its own custody.
"""

import logging

from protocol_errors import InsufficientBalanceError, PreconditionError

logger = logging.getLogger(__name__)


class ElasticToken:
    """
    Simulates the elastic dollar ERC20 contract.
    """

    def __init__(self, initial_supply=0, initial_holder=None):
        # Total token supply
        self.total_supply_amount = 0

        # Mapping of addresses to token balances
        self.balances = {}

        # Mapping of (owner, spender) pairs to remaining allowance
        self.allowances = {}

        # Mapping of accounts that are allowed to mint tokens
        self.minters = set()

        # Owner of the contract
        self.owner = None

        if initial_supply:
            self.mint(initial_holder, initial_supply)

    def set_owner(self, owner):
        """Sets the owner of the contract."""
        self.owner = owner

    def add_minter(self, minter):
        """
        Adds an address to the list of allowed minters.
        Only callable once an owner has been set.
        """
        if not self.owner:
            raise PreconditionError("Owner not set")

        self.minters.add(minter)

    def remove_minter(self, minter):
        """
        Removes an address from the list of allowed minters.
        """
        if not self.owner:
            raise PreconditionError("Owner not set")

        self.minters.discard(minter)

    def total_supply(self):
        """Returns the total token supply."""
        return self.total_supply_amount

    def balance_of(self, account):
        """Returns the token balance of the given account."""
        return self.balances.get(account, 0)

    def allowance(self, owner, spender):
        """Returns how much spender may still move out of owner's balance."""
        return self.allowances.get((owner, spender), 0)

    def approve(self, owner, spender, amount):
        """
        Sets the allowance of spender over owner's tokens.

        Args:
            owner: Address granting the allowance
            spender: Address allowed to call transfer_from
            amount: New allowance, replacing any previous one

        Returns:
            True if successful
        """
        self._check_amount(amount)
        self.allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender, recipient, amount):
        """
        Transfers tokens from sender to recipient.

        Args:
            sender: Address sending the tokens
            recipient: Address receiving the tokens
            amount: Amount of tokens to transfer

        Returns:
            True if successful
        """
        self._check_amount(amount)

        sender_balance = self.balances.get(sender, 0)

        if sender_balance < amount:
            raise InsufficientBalanceError("ERC20: transfer amount exceeds balance")

        # Update balances
        self.balances[sender] = sender_balance - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

        return True

    def transfer_from(self, spender, sender, recipient, amount):
        """
        Moves tokens out of sender's balance using spender's allowance.

        Args:
            spender: Address spending the allowance (usually the DAO)
            sender: Address whose tokens are moved
            recipient: Address receiving the tokens
            amount: Amount of tokens to transfer

        Returns:
            True if successful
        """
        self._check_amount(amount)

        allowed = self.allowance(sender, spender)
        if allowed < amount:
            raise InsufficientBalanceError("ERC20: transfer amount exceeds allowance")

        self.transfer(sender, recipient, amount)
        self.allowances[(sender, spender)] = allowed - amount

        return True

    def mint(self, recipient, amount, minter=None):
        """
        Mints new tokens to the recipient account.
        Once an owner is set, only registered minters may mint.

        Args:
            recipient: Address receiving the minted tokens
            amount: Amount of tokens to mint
            minter: Address requesting the mint

        Returns:
            True if successful
        """
        self._check_amount(amount)

        if self.owner and minter not in self.minters:
            raise PreconditionError(f"Not a minter: {minter}")

        # Update recipient balance
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

        # Update total supply
        self.total_supply_amount += amount

        logger.debug("minted %d to %s", amount, recipient)
        return True

    def burn(self, holder, amount):
        """
        Burns tokens from the holder's own balance.

        Args:
            holder: Address burning its tokens
            amount: Amount of tokens to burn

        Returns:
            True if successful
        """
        self._check_amount(amount)

        holder_balance = self.balances.get(holder, 0)

        if holder_balance < amount:
            raise InsufficientBalanceError("ERC20: burn amount exceeds balance")

        # Update balance
        self.balances[holder] = holder_balance - amount

        # Update total supply
        self.total_supply_amount -= amount

        logger.debug("burned %d from %s", amount, holder)
        return True

    def snapshot(self):
        """Returns a copy of the mutable token state."""
        return (self.total_supply_amount, dict(self.balances), dict(self.allowances))

    def restore(self, snapshot):
        """Restores token state captured by snapshot()."""
        total_supply, balances, allowances = snapshot
        self.total_supply_amount = total_supply
        self.balances = dict(balances)
        self.allowances = dict(allowances)

    @staticmethod
    def _check_amount(amount):
        if amount < 0:
            raise PreconditionError("Amount must not be negative")
