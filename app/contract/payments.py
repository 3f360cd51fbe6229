"""
Payment Converter
Turns a token deposit into paid games and a refundable remainder
"""
import logging

from config import MAX_GAME_AMOUNT
from app.contract.errors import InsufficientPayment, InvalidArgument, QuantityOverflow
from app.contract.ledger import CreditLedger
from app.contract.pricing import PricingTable

logger = logging.getLogger(__name__)


class PaymentConverter:
    def __init__(self, pricing: PricingTable, ledger: CreditLedger):
        self.pricing = pricing
        self.ledger = ledger

    def select_bundle(self, amount: int) -> int:
        """
        Best bundle tier the amount covers, or 0 when none does

        Tiers are scanned in storage order and the scan stops at the first
        tier the amount does not cover, even if a later tier would.
        """
        selected = 0
        for bundle_size, price in self.pricing.list():
            if amount // bundle_size >= price:
                selected = bundle_size
            else:
                break
        return selected

    def convert(self, payer_id: str, amount: int) -> int:
        """
        Credit `payer_id` with the games `amount` buys

        Returns the remainder to refund to the payer.
        """
        if amount < 0:
            raise InvalidArgument("Deposit amount must not be negative")

        # The single-game tier must exist for any purchase
        single_game_cost = self.pricing.price_for(1)

        bundle_size = self.select_bundle(amount)
        if bundle_size == 0:
            raise InsufficientPayment(
                f"Insufficient tokens sent {amount}. Sent at least {single_game_cost} tokens"
            )

        game_cost = self.pricing.price_for(bundle_size)
        games_bought = amount // game_cost
        if games_bought > MAX_GAME_AMOUNT:
            raise QuantityOverflow(f"Too many games bought. Limit is {MAX_GAME_AMOUNT}")

        self.ledger.add_paid(payer_id, games_bought)
        remainder = amount % game_cost

        logger.info(
            f"{payer_id} bought {games_bought} games at bundle {bundle_size} "
            f"(refund {remainder})"
        )
        return remainder
